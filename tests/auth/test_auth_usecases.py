from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from src.core.errors.exceptions import (
    InstanceAlreadyExistsException,
    InstanceNotFoundException,
    PermissionDeniedException,
)
from src.user.auth.exceptions import TokenRevokedException
from src.user.auth.jwt_payload_schema import Claims
from src.user.auth.schemas import CreateUserModel, LoginUserModel
from src.user.auth.usecases.get_access_by_refresh import GetAccessByRefreshUseCase
from src.user.auth.usecases.login import LoginUserUseCase
from src.user.auth.usecases.register import RegisterUseCase
from src.user.auth.usecases.service_token import IssueServiceTokenUseCase
from tests.factories.token_factory import (
    NOW_MS,
    build_issuer,
    build_policy,
    build_validator,
)
from tests.factories.user_factory import DEFAULT_PASSWORD, build_user
from tests.fakes.db import FakeAsyncSession, FakeUnitOfWork, InMemoryUserRepository


def build_uow(users_repo: InMemoryUserRepository) -> FakeUnitOfWork:
    return FakeUnitOfWork(session=FakeAsyncSession(), repositories={"users": users_repo})


def refresh_claims_for(user_id, version: int) -> Claims:
    return Claims(
        expiry=NOW_MS + 1000, subject_id=user_id, is_refresh=True, version=version
    )


@pytest.mark.asyncio
async def test_login_issues_access_and_refresh_tokens() -> None:
    user = build_user(token_version=3)
    use_case = LoginUserUseCase(
        uow=build_uow(InMemoryUserRepository([user])), issuer=build_issuer()
    )

    tokens = await use_case.execute(
        LoginUserModel(email=user.email, password=DEFAULT_PASSWORD)
    )

    validator = build_validator()
    access = validator.validate_access(tokens.access_token)
    refresh = validator.validate_refresh(tokens.refresh_token)
    assert tokens.user_id == user.id
    assert tokens.expires == access.expiry
    assert access.subject_id == user.id
    assert refresh.version == 3


@pytest.mark.asyncio
async def test_login_normalizes_email() -> None:
    user = build_user(email="user@example.com")
    use_case = LoginUserUseCase(
        uow=build_uow(InMemoryUserRepository([user])), issuer=build_issuer()
    )

    tokens = await use_case.execute(
        LoginUserModel(email="  USER@Example.com ", password=DEFAULT_PASSWORD)
    )

    assert tokens.user_id == user.id


@pytest.mark.asyncio
async def test_login_wrong_password() -> None:
    user = build_user()
    use_case = LoginUserUseCase(
        uow=build_uow(InMemoryUserRepository([user])), issuer=build_issuer()
    )

    with pytest.raises(PermissionDeniedException, match="Incorrect email or password"):
        await use_case.execute(LoginUserModel(email=user.email, password="Wrong1!pass"))


@pytest.mark.asyncio
async def test_login_unknown_email_has_same_error() -> None:
    use_case = LoginUserUseCase(
        uow=build_uow(InMemoryUserRepository()), issuer=build_issuer()
    )

    with pytest.raises(PermissionDeniedException, match="Incorrect email or password"):
        await use_case.execute(
            LoginUserModel(email="nobody@example.com", password=DEFAULT_PASSWORD)
        )


@pytest.mark.asyncio
async def test_login_blocked_user() -> None:
    user = build_user(is_active=False)
    use_case = LoginUserUseCase(
        uow=build_uow(InMemoryUserRepository([user])), issuer=build_issuer()
    )

    with pytest.raises(PermissionDeniedException):
        await use_case.execute(LoginUserModel(email=user.email, password=DEFAULT_PASSWORD))


@pytest.mark.asyncio
async def test_refresh_issues_new_access_token() -> None:
    user = build_user(token_version=2)
    use_case = GetAccessByRefreshUseCase(
        uow=build_uow(InMemoryUserRepository([user])), issuer=build_issuer()
    )

    access = await use_case.execute(refresh_claims_for(user.id, 2))

    claims = build_validator().validate_access(access.access_token)
    assert claims.subject_id == user.id
    assert access.expires == claims.expiry


@pytest.mark.asyncio
async def test_refresh_with_stale_version_is_revoked() -> None:
    user = build_user(token_version=3)
    use_case = GetAccessByRefreshUseCase(
        uow=build_uow(InMemoryUserRepository([user])), issuer=build_issuer()
    )

    with pytest.raises(TokenRevokedException):
        await use_case.execute(refresh_claims_for(user.id, 2))


@pytest.mark.asyncio
async def test_refresh_for_deleted_user_is_revoked() -> None:
    use_case = GetAccessByRefreshUseCase(
        uow=build_uow(InMemoryUserRepository()), issuer=build_issuer()
    )

    with pytest.raises(TokenRevokedException):
        await use_case.execute(refresh_claims_for(uuid4(), 1))


@pytest.mark.asyncio
async def test_refresh_blocked_user() -> None:
    user = build_user(is_active=False)
    use_case = GetAccessByRefreshUseCase(
        uow=build_uow(InMemoryUserRepository([user])), issuer=build_issuer()
    )

    with pytest.raises(PermissionDeniedException):
        await use_case.execute(refresh_claims_for(user.id, user.token_version))


@pytest.mark.asyncio
async def test_register_creates_user_and_logs_in() -> None:
    users_repo = InMemoryUserRepository()
    uow = build_uow(users_repo)
    use_case = RegisterUseCase(uow=uow, issuer=build_issuer())

    user, tokens = await use_case.execute(
        CreateUserModel(
            email="New@Example.com", password=DEFAULT_PASSWORD, description="hello"
        )
    )

    assert user.email == "new@example.com"
    assert user.description == "hello"
    assert user.token_version == 1
    assert user.password_hash != DEFAULT_PASSWORD
    assert users_repo.users[user.id] is user
    assert build_validator().validate_refresh(tokens.refresh_token).version == 1
    assert tokens.user_id == user.id
    uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_register_duplicate_email() -> None:
    existing = build_user(email="taken@example.com")
    uow = build_uow(InMemoryUserRepository([existing]))
    use_case = RegisterUseCase(uow=uow, issuer=build_issuer())

    with pytest.raises(InstanceAlreadyExistsException):
        await use_case.execute(
            CreateUserModel(email="taken@example.com", password=DEFAULT_PASSWORD)
        )

    uow.commit.assert_not_awaited()


def build_service_use_case(secret: str | None) -> IssueServiceTokenUseCase:
    return IssueServiceTokenUseCase(
        issuer=build_issuer(),
        policy=build_policy(service=timedelta(weeks=10000)),
        service_secret=secret,
    )


def test_service_token_for_matching_secret() -> None:
    token = build_service_use_case("bot-secret").execute("bot-secret")

    claims = build_validator().validate_access(token)
    assert claims.is_service_identity
    assert claims.is_refresh is False
    assert claims.expiry == NOW_MS + 10000 * 7 * 24 * 60 * 60 * 1000


@pytest.mark.parametrize("presented", [None, "", "wrong-secret"])
def test_service_token_wrong_secret_is_not_found(presented: str | None) -> None:
    with pytest.raises(InstanceNotFoundException):
        build_service_use_case("bot-secret").execute(presented)


def test_service_token_unconfigured_is_not_found() -> None:
    with pytest.raises(InstanceNotFoundException):
        build_service_use_case(None).execute("anything")
