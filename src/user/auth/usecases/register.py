from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork, RepositoryProtocol
from src.core.errors.exceptions import InstanceAlreadyExistsException
from src.core.utils.security import hash_password_async, mask_email
from src.user.auth.schemas import CreateUserModel, IssuedTokens
from src.user.auth.security import TokenIssuer, get_token_issuer
from src.user.models import INITIAL_TOKEN_VERSION, User

logger = get_logger(__name__)


class RegisterUseCase:
    """Use case for user registration. The new account is logged in right away."""

    def __init__(
        self,
        uow: ApplicationUnitOfWork[RepositoryProtocol],
        issuer: TokenIssuer,
    ) -> None:
        self.uow = uow
        self.issuer = issuer

    async def execute(self, data: CreateUserModel) -> tuple[User, IssuedTokens]:
        async with self.uow as uow:
            if await uow.users.exists(uow.session, email=data.email):
                logger.info(
                    "[RegisterUser] Email '%s' already registered.",
                    mask_email(data.email),
                )
                raise InstanceAlreadyExistsException("Email already exists")

            user = await uow.users.create(
                session=uow.session,
                data={
                    "email": data.email,
                    "password_hash": await hash_password_async(data.password),
                    "description": data.description,
                    "token_version": INITIAL_TOKEN_VERSION,
                },
            )
            await uow.session.flush()
            await uow.commit()
            logger.info(
                "[RegisterUser] User '%s' registered successfully.",
                mask_email(user.email),
            )

        access_token, expires = self.issuer.issue_access(user.id)
        refresh_token = self.issuer.issue_refresh(user.id, user.token_version)
        return user, IssuedTokens(
            user_id=user.id,
            access_token=access_token,
            refresh_token=refresh_token,
            expires=expires,
        )


def get_register_use_case(
    uow: ApplicationUnitOfWork[RepositoryProtocol] = Depends(get_unit_of_work),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> RegisterUseCase:
    return RegisterUseCase(uow=uow, issuer=issuer)
