from __future__ import annotations

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from src.user.models import INITIAL_TOKEN_VERSION, User
from src.user.repositories import UserRepository
from tests.fakes.db import FakeAsyncSession


class FakeScalarResult:
    def __init__(self, value: int | None) -> None:
        self._value = value

    def scalar_one_or_none(self) -> int | None:
        return self._value


@pytest.mark.asyncio
async def test_change_password_returns_new_version() -> None:
    session = FakeAsyncSession()
    session.execute = AsyncMock(return_value=FakeScalarResult(3))

    result = await UserRepository().change_password(
        session, user_id=uuid4(), password_hash="hash"
    )

    assert result == 3
    session.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_change_password_missing_user_returns_none() -> None:
    session = FakeAsyncSession()
    session.execute = AsyncMock(return_value=FakeScalarResult(None))

    result = await UserRepository().change_password(
        session, user_id=uuid4(), password_hash="hash"
    )

    assert result is None


@pytest.mark.asyncio
async def test_change_password_is_single_atomic_update() -> None:
    session = FakeAsyncSession()
    session.execute = AsyncMock(return_value=FakeScalarResult(2))

    await UserRepository().change_password(session, user_id=uuid4(), password_hash="h")

    statement = session.execute.await_args.args[0]
    sql = str(statement.compile(dialect=postgresql.dialect()))
    assert sql.startswith("UPDATE users SET")
    assert "token_version=(users.token_version + " in sql
    assert "RETURNING users.token_version" in sql


def test_user_token_version_defaults() -> None:
    column = User.__table__.c.token_version

    assert INITIAL_TOKEN_VERSION == 1
    assert column.default.arg == INITIAL_TOKEN_VERSION
    assert column.server_default.arg.text == "1"
    assert column.nullable is False


def test_user_email_is_unique() -> None:
    assert User.__table__.c.email.unique is True
