from __future__ import annotations

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from src.core.errors.exceptions import (
    InstanceNotFoundException,
    InstanceProcessingException,
)
from src.core.schemas import SuccessResponse
from src.core.utils.security import verify_password
from src.user.auth.schemas import ChangePasswordModel
from src.user.usecases.delete_user import DeleteUserUseCase
from src.user.usecases.update_password import UpdateUserPasswordUseCase
from tests.factories.token_factory import build_issuer, build_validator
from tests.factories.user_factory import DEFAULT_PASSWORD, build_user
from tests.fakes.db import FakeAsyncSession, FakeUnitOfWork, InMemoryUserRepository

NEW_PASSWORD = "EvenStronger2?"


def build_uow(
    session: FakeAsyncSession, users_repo: InMemoryUserRepository
) -> FakeUnitOfWork:
    return FakeUnitOfWork(session=session, repositories={"users": users_repo})


@pytest.mark.asyncio
async def test_update_password_bumps_version_and_returns_new_refresh(
    fake_session: FakeAsyncSession,
) -> None:
    user = build_user(token_version=4)
    uow = build_uow(fake_session, InMemoryUserRepository([user]))
    use_case = UpdateUserPasswordUseCase(uow=uow, issuer=build_issuer())

    refresh = await use_case.execute(
        data=ChangePasswordModel(old_password=DEFAULT_PASSWORD, new_password=NEW_PASSWORD),
        user_id=user.id,
    )

    claims = build_validator().validate_refresh(refresh)
    assert claims.subject_id == user.id
    assert claims.version == 5
    assert user.token_version == 5
    assert await verify_password(NEW_PASSWORD, user.password_hash)
    uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_password_wrong_old_password(
    fake_session: FakeAsyncSession,
) -> None:
    user = build_user(token_version=1)
    uow = build_uow(fake_session, InMemoryUserRepository([user]))
    use_case = UpdateUserPasswordUseCase(uow=uow, issuer=build_issuer())

    with pytest.raises(InstanceProcessingException, match="Incorrect password"):
        await use_case.execute(
            data=ChangePasswordModel(old_password="Wrong1!pass", new_password=NEW_PASSWORD),
            user_id=user.id,
        )

    assert user.token_version == 1
    uow.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_password_user_not_found(
    fake_session: FakeAsyncSession,
) -> None:
    uow = build_uow(fake_session, InMemoryUserRepository())
    use_case = UpdateUserPasswordUseCase(uow=uow, issuer=build_issuer())

    with pytest.raises(InstanceNotFoundException):
        await use_case.execute(
            data=ChangePasswordModel(old_password=DEFAULT_PASSWORD, new_password=NEW_PASSWORD),
            user_id=uuid4(),
        )

    uow.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_password_user_deleted_concurrently(
    fake_session: FakeAsyncSession,
) -> None:
    user = build_user()
    users_repo = InMemoryUserRepository([user])
    users_repo.change_password = AsyncMock(return_value=None)  # type: ignore[method-assign]
    uow = build_uow(fake_session, users_repo)
    use_case = UpdateUserPasswordUseCase(uow=uow, issuer=build_issuer())

    with pytest.raises(InstanceNotFoundException):
        await use_case.execute(
            data=ChangePasswordModel(old_password=DEFAULT_PASSWORD, new_password=NEW_PASSWORD),
            user_id=user.id,
        )

    uow.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_user(fake_session: FakeAsyncSession) -> None:
    user = build_user()
    users_repo = InMemoryUserRepository([user])
    uow = build_uow(fake_session, users_repo)

    result = await DeleteUserUseCase(uow=uow).execute(user_id=user.id)

    assert result == SuccessResponse(success=True)
    assert users_repo.users == {}
    uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_user_not_found(fake_session: FakeAsyncSession) -> None:
    uow = build_uow(fake_session, InMemoryUserRepository())

    with pytest.raises(InstanceNotFoundException):
        await DeleteUserUseCase(uow=uow).execute(user_id=uuid4())

    uow.commit.assert_not_awaited()
