from contextlib import AsyncExitStack
from typing import Any, ClassVar, Generic, Protocol, Self, TypeVar, cast

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.repositories import BaseRepository
from src.core.database.transactions import safe_begin
from src.user.repositories import UserRepository


class RepositoryProtocol(Protocol):
    """Protocol defining the structure of a repository class."""

    model: ClassVar[Any]


R = TypeVar("R", bound=RepositoryProtocol)
RepositoryInstance = TypeVar("RepositoryInstance", bound=BaseRepository[Any])


class SQLAlchemyUnitOfWork(Generic[R]):
    """
    Transaction boundary over a single AsyncSession.

    Entering the context starts a transaction (or a SAVEPOINT when the session
    is already in one). Leaving it with an exception rolls back unless the work
    was already committed.
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._exit_stack = AsyncExitStack()
        self._is_completed = False

    async def __aenter__(self) -> Self:
        await self._exit_stack.__aenter__()
        await self._exit_stack.enter_async_context(safe_begin(self._session))
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is not None and not self._is_completed:
            await self.rollback()

        await self._exit_stack.__aexit__(exc_type, exc_val, exc_tb)

    async def commit(self) -> None:
        """
        Commit the transaction.

        Raises:
            RuntimeError: If the unit of work has already been completed
        """
        if self._is_completed:
            raise RuntimeError("This unit of work has already been completed")

        await self._session.commit()
        self._is_completed = True

    async def rollback(self) -> None:
        """
        Rollback the transaction.

        Raises:
            RuntimeError: If the unit of work has already been completed
        """
        if self._is_completed:
            raise RuntimeError("This unit of work has already been completed")

        await self._session.rollback()
        self._is_completed = True

    @property
    def completed(self) -> bool:
        return self._is_completed

    @property
    def session(self) -> AsyncSession:
        return self._session


class ApplicationUnitOfWork(SQLAlchemyUnitOfWork[R]):
    """Unit of Work exposing the application's repositories."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self._repositories: dict[type[BaseRepository[Any]], BaseRepository[Any]] = {}

    def _get_repository(
        self, repository_type: type[RepositoryInstance]
    ) -> RepositoryInstance:
        if repository_type not in self._repositories:
            self._repositories[repository_type] = repository_type()

        return cast(RepositoryInstance, self._repositories[repository_type])

    @property
    def users(self) -> UserRepository:
        return self._get_repository(UserRepository)


async def get_uow(session: AsyncSession) -> ApplicationUnitOfWork[RepositoryProtocol]:
    return ApplicationUnitOfWork(session)
