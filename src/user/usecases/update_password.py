from uuid import UUID

from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork, RepositoryProtocol
from src.core.errors.exceptions import (
    InstanceNotFoundException,
    InstanceProcessingException,
)
from src.core.utils.security import hash_password_async, mask_email, verify_password
from src.user.auth.schemas import ChangePasswordModel
from src.user.auth.security import TokenIssuer, get_token_issuer

logger = get_logger(__name__)


class UpdateUserPasswordUseCase:
    """
    Use case for changing the password of the calling user.

    Storing the new hash also bumps the user's token version, which revokes
    every refresh token issued before. A fresh refresh token at the new
    version is returned so the calling session stays logged in.
    """

    def __init__(
        self,
        uow: ApplicationUnitOfWork[RepositoryProtocol],
        issuer: TokenIssuer,
    ) -> None:
        self.uow = uow
        self.issuer = issuer

    async def execute(self, data: ChangePasswordModel, user_id: UUID) -> str:
        async with self.uow as uow:
            user = await uow.users.get_single(uow.session, id=user_id)
            if not user:
                logger.info("[UpdateUserPassword] User not found.")
                raise InstanceNotFoundException("User not found")

            if not await verify_password(data.old_password, user.password_hash):
                logger.debug(
                    "[UpdateUserPassword] Wrong current password for %s.",
                    mask_email(user.email),
                )
                raise InstanceProcessingException("Incorrect password.")

            new_version = await uow.users.change_password(
                uow.session,
                user_id=user_id,
                password_hash=await hash_password_async(data.new_password),
            )
            if new_version is None:
                # Deleted between the read and the update
                raise InstanceNotFoundException("User not found")

            await uow.commit()
            logger.debug(
                "[UpdateUserPassword] %s password updated, token version is now %s.",
                mask_email(user.email),
                new_version,
            )

        return self.issuer.issue_refresh(user_id, new_version)


def get_update_user_password_use_case(
    uow: ApplicationUnitOfWork[RepositoryProtocol] = Depends(get_unit_of_work),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> UpdateUserPasswordUseCase:
    return UpdateUserPasswordUseCase(uow=uow, issuer=issuer)
