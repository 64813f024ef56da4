from typing import Annotated

from fastapi import Depends, Security
from fastapi.security.api_key import APIKeyHeader
from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork, RepositoryProtocol
from src.core.errors.exceptions import PermissionDeniedException
from src.user.auth.exceptions import MissingCredentialException, TokenRevokedException
from src.user.auth.jwt_payload_schema import Claims
from src.user.auth.validation import TokenValidator, get_token_validator
from src.user.models import User

logger = get_logger(__name__)

access_token_header = APIKeyHeader(
    name="Authorization", scheme_name="access-token", auto_error=False
)
refresh_token_header = APIKeyHeader(
    name="Authorization", scheme_name="refresh-token", auto_error=False
)


def extract_bearer_token(authorization: str | None) -> str:
    """
    Return the token part of an ``Authorization: Bearer <token>`` header value.

    Raises:
        MissingCredentialException: If the header is absent, empty or not a bearer credential
    """
    if not authorization:
        raise MissingCredentialException()

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise MissingCredentialException()
    return token


# Token checks are plain ``def`` dependencies: FastAPI runs them in its worker
# thread pool, so signature verification never blocks the event loop.
def get_access_claims(
    authorization: Annotated[str | None, Security(access_token_header)],
    validator: Annotated[TokenValidator, Depends(get_token_validator)],
) -> Claims:
    """Claims of a valid, unexpired access token. Refresh tokens are refused."""
    return validator.validate_access(extract_bearer_token(authorization))


def get_refresh_claims(
    authorization: Annotated[str | None, Security(refresh_token_header)],
    validator: Annotated[TokenValidator, Depends(get_token_validator)],
) -> Claims:
    """
    Claims of a valid, unexpired refresh token. Access tokens are refused.

    The revocation version is not checked here; the renewal use-case compares
    it against storage.
    """
    return validator.validate_refresh(extract_bearer_token(authorization))


def get_human_claims(
    claims: Annotated[Claims, Depends(get_access_claims)],
) -> Claims:
    if claims.is_service_identity:
        logger.info("[Auth] Service identity refused on a user-only endpoint")
        raise PermissionDeniedException("Service identity is not allowed here")
    return claims


def get_service_claims(
    claims: Annotated[Claims, Depends(get_access_claims)],
) -> Claims:
    if not claims.is_service_identity:
        logger.info("[Auth] User %s refused on a service-only endpoint", claims.subject_id)
        raise PermissionDeniedException("Only the service identity may call this endpoint")
    return claims


async def get_current_user(
    claims: Annotated[Claims, Depends(get_human_claims)],
    uow: ApplicationUnitOfWork[RepositoryProtocol] = Depends(get_unit_of_work),
) -> User:
    """
    Load the user behind a human access token.

    Raises:
        TokenRevokedException: If the account no longer exists
        PermissionDeniedException: If the account is blocked
    """
    user = await uow.users.get_single(uow.session, id=claims.subject_id)
    if not user:
        raise TokenRevokedException("User no longer exists")
    if not user.is_active:
        raise PermissionDeniedException("User is blocked")
    return user
