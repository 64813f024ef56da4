from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from loggers import get_logger
from src.core.database.repositories import BaseRepository
from src.user.models import User

logger = get_logger(__name__)


class UserRepository(BaseRepository[User]):

    model = User

    async def change_password(
        self, session: AsyncSession, user_id: UUID, password_hash: str
    ) -> int | None:
        """
        Store a new password hash and bump ``token_version`` in one statement.

        The increment is a single ``UPDATE ... RETURNING`` so concurrent changes
        for the same user never lose an increment.

        Returns:
            int | None: The new token version, or ``None`` if the user does not exist.
        """
        query = (
            update(User)
            .where(User.id == user_id)
            .values(
                password_hash=password_hash,
                token_version=User.token_version + 1,
            )
            .returning(User.token_version)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(query)
        new_version = result.scalar_one_or_none()
        if new_version is None:
            logger.debug("User password update skipped [NotFound]. id=%s", user_id)
            return None
        logger.debug("User %s token version bumped to %s", user_id, new_version)
        return int(new_version)
