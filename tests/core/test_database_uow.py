from __future__ import annotations

import pytest

from src.core.database.transactions import safe_begin
from src.core.database.uow import ApplicationUnitOfWork, SQLAlchemyUnitOfWork, get_uow
from src.user.repositories import UserRepository
from tests.fakes.db import AsyncTransactionContext, FakeAsyncSession


class TrackingSession(FakeAsyncSession):
    def __init__(self, in_transaction: bool = False) -> None:
        super().__init__(in_transaction=in_transaction)
        self.begin_called = 0
        self.begin_nested_called = 0

    def begin(self) -> AsyncTransactionContext:
        self.begin_called += 1
        return super().begin()

    def begin_nested(self) -> AsyncTransactionContext:
        self.begin_nested_called += 1
        return super().begin_nested()


@pytest.mark.asyncio
async def test_safe_begin_uses_nested_transaction_when_active() -> None:
    session = TrackingSession(in_transaction=True)

    async with safe_begin(session):
        assert session.in_transaction() is True

    assert session.begin_called == 0
    assert session.begin_nested_called == 1


@pytest.mark.asyncio
async def test_safe_begin_uses_regular_transaction_when_inactive() -> None:
    session = TrackingSession(in_transaction=False)

    async with safe_begin(session):
        assert session.in_transaction() is True

    assert session.in_transaction() is False
    assert session.begin_called == 1


@pytest.mark.asyncio
async def test_uow_commit_marks_completed() -> None:
    session = FakeAsyncSession()
    uow = SQLAlchemyUnitOfWork(session)

    await uow.commit()

    assert uow.completed is True
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_uow_commit_twice_raises() -> None:
    uow = SQLAlchemyUnitOfWork(FakeAsyncSession())

    await uow.commit()

    with pytest.raises(RuntimeError):
        await uow.commit()


@pytest.mark.asyncio
async def test_uow_rollback_twice_raises() -> None:
    session = FakeAsyncSession()
    uow = SQLAlchemyUnitOfWork(session)

    await uow.rollback()

    with pytest.raises(RuntimeError):
        await uow.rollback()
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_uow_context_rolls_back_on_exception() -> None:
    session = TrackingSession()
    uow = SQLAlchemyUnitOfWork(session)

    with pytest.raises(RuntimeError):
        async with uow:
            raise RuntimeError("fail")

    session.rollback.assert_awaited_once()
    assert session.begin_called == 1


@pytest.mark.asyncio
async def test_uow_context_skips_rollback_when_committed() -> None:
    session = FakeAsyncSession()
    uow = SQLAlchemyUnitOfWork(session)

    with pytest.raises(RuntimeError):
        async with uow:
            await uow.commit()
            raise RuntimeError("fail")

    session.rollback.assert_not_awaited()


def test_application_uow_exposes_cached_user_repository() -> None:
    uow = ApplicationUnitOfWork(FakeAsyncSession())

    assert isinstance(uow.users, UserRepository)
    assert uow.users is uow.users


@pytest.mark.asyncio
async def test_get_uow_returns_application_uow() -> None:
    session = FakeAsyncSession()

    uow = await get_uow(session)

    assert isinstance(uow, ApplicationUnitOfWork)
    assert uow.session is session
