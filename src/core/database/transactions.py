from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def safe_begin(session: AsyncSession) -> AsyncGenerator[None]:
    """
    Context manager that guarantees a transactional scope for ORM operations.

    - If the session is not already in a transaction, opens a regular transaction
      (BEGIN...COMMIT/ROLLBACK).
    - If the session is already in a transaction, creates a nested transaction
      (SAVEPOINT) so the unit of work can commit or roll back locally.

    Args:
        session (AsyncSession): The SQLAlchemy async session to manage.
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield
    else:
        async with session.begin():
            yield
