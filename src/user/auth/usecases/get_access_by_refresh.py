from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork, RepositoryProtocol
from src.core.errors.exceptions import PermissionDeniedException
from src.user.auth.exceptions import TokenRevokedException
from src.user.auth.jwt_payload_schema import Claims
from src.user.auth.schemas import AccessToken
from src.user.auth.security import TokenIssuer, get_token_issuer
from src.user.auth.validation import ensure_current_version

logger = get_logger(__name__)


class GetAccessByRefreshUseCase:
    """
    Use case for renewing an access token with a refresh token.

    The refresh claims are already signature-, expiry- and kind-checked; this
    adds the single storage read that enforces revocation.
    """

    def __init__(
        self,
        uow: ApplicationUnitOfWork[RepositoryProtocol],
        issuer: TokenIssuer,
    ) -> None:
        self.uow = uow
        self.issuer = issuer

    async def execute(self, claims: Claims) -> AccessToken:
        async with self.uow as uow:
            user = await uow.users.get_single(uow.session, id=claims.subject_id)

        stored_version = user.token_version if user else None
        try:
            ensure_current_version(claims, stored_version)
        except TokenRevokedException:
            logger.info(
                "[RefreshAccess] Stale refresh token for user %s (token=%s, stored=%s)",
                claims.subject_id,
                claims.version,
                stored_version,
            )
            raise

        if user is not None and not user.is_active:
            logger.info("[RefreshAccess] Blocked user %s attempted refresh", user.id)
            raise PermissionDeniedException("User is blocked")

        access_token, expires = self.issuer.issue_access(claims.subject_id)
        return AccessToken(access_token=access_token, expires=expires)


def get_access_by_refresh_use_case(
    uow: ApplicationUnitOfWork[RepositoryProtocol] = Depends(get_unit_of_work),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> GetAccessByRefreshUseCase:
    return GetAccessByRefreshUseCase(uow=uow, issuer=issuer)
