from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork, RepositoryProtocol
from src.core.errors.exceptions import PermissionDeniedException
from src.core.utils.security import hash_password, mask_email, verify_password
from src.user.auth.schemas import IssuedTokens, LoginUserModel
from src.user.auth.security import TokenIssuer, get_token_issuer

INVALID_CREDENTIALS_MESSAGE = "Incorrect email or password."
# Verified against when the email is unknown so both failures take equally long
INVALID_CREDENTIALS_PASSWORD_HASH = hash_password("dummy-password")
logger = get_logger(__name__)


class LoginUserUseCase:
    """Use case for logging in user."""

    def __init__(
        self,
        uow: ApplicationUnitOfWork[RepositoryProtocol],
        issuer: TokenIssuer,
    ) -> None:
        self.uow = uow
        self.issuer = issuer

    async def execute(self, data: LoginUserModel) -> IssuedTokens:
        async with self.uow as uow:
            user = await uow.users.get_single(uow.session, email=data.email)
            if not user:
                logger.debug(
                    "[LoginUser] User with email '%s' not found.",
                    mask_email(data.email),
                )
                await verify_password(data.password, INVALID_CREDENTIALS_PASSWORD_HASH)
                raise PermissionDeniedException(INVALID_CREDENTIALS_MESSAGE)

            correct_password = await verify_password(data.password, user.password_hash)
            if not correct_password:
                logger.debug(
                    "[LoginUser] Incorrect password for user '%s'",
                    mask_email(data.email),
                )
                raise PermissionDeniedException(INVALID_CREDENTIALS_MESSAGE)

            if not user.is_active:
                logger.info(
                    "[LoginUser] User with email '%s' is blocked.",
                    mask_email(data.email),
                )
                raise PermissionDeniedException("User is blocked")

            access_token, expires = self.issuer.issue_access(user.id)
            refresh_token = self.issuer.issue_refresh(user.id, user.token_version)
            logger.debug(
                "[LoginUser] Issued tokens for '%s' at version %s",
                mask_email(data.email),
                user.token_version,
            )

            return IssuedTokens(
                user_id=user.id,
                access_token=access_token,
                refresh_token=refresh_token,
                expires=expires,
            )


def get_login_user_use_case(
    uow: ApplicationUnitOfWork[RepositoryProtocol] = Depends(get_unit_of_work),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> LoginUserUseCase:
    return LoginUserUseCase(uow=uow, issuer=issuer)
