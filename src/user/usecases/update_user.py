from uuid import UUID

from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork, RepositoryProtocol
from src.core.errors.exceptions import (
    InstanceAlreadyExistsException,
    InstanceNotFoundException,
)
from src.core.utils.security import mask_email
from src.user.models import User
from src.user.schemas import UpdateUserModel

logger = get_logger(__name__)


class UpdateUserUseCase:
    """
    Use case for editing the calling user's own profile.

    Email and description are replaced as given. Tokens are not affected,
    they are bound to the user id and not to the email.
    """

    def __init__(self, uow: ApplicationUnitOfWork[RepositoryProtocol]) -> None:
        self.uow = uow

    async def execute(self, data: UpdateUserModel, user_id: UUID) -> User:
        async with self.uow as uow:
            owner = await uow.users.get_single(uow.session, email=data.email)
            if owner and owner.id != user_id:
                logger.info(
                    "[UpdateUser] Email '%s' already registered.",
                    mask_email(data.email),
                )
                raise InstanceAlreadyExistsException("Email already exists")

            user = await uow.users.update(
                uow.session,
                data={"email": data.email, "description": data.description},
                id=user_id,
            )
            if not user:
                raise InstanceNotFoundException("User not found")

            # A concurrent claim of the same email fails here on the unique index
            await uow.session.flush()
            await uow.commit()
            logger.debug("[UpdateUser] User %s profile updated.", user_id)
            return user


def get_update_user_use_case(
    uow: ApplicationUnitOfWork[RepositoryProtocol] = Depends(get_unit_of_work),
) -> UpdateUserUseCase:
    return UpdateUserUseCase(uow=uow)
