import hmac

from fastapi import Depends

from loggers import get_logger
from src.core.errors.exceptions import InstanceNotFoundException
from src.main.config import config
from src.user.auth.jwt_payload_schema import SERVICE_IDENTITY
from src.user.auth.security import (
    TokenIssuer,
    TokenLifetimePolicy,
    get_token_issuer,
    get_token_lifetime_policy,
)

logger = get_logger(__name__)


class IssueServiceTokenUseCase:
    """
    Exchange the shared service secret for a long-lived service-identity token.

    The token is never a refresh token and is bound to the reserved nil subject.
    An unknown secret, or no secret configured at all, looks like a missing route.
    """

    def __init__(
        self,
        issuer: TokenIssuer,
        policy: TokenLifetimePolicy,
        service_secret: str | None,
    ) -> None:
        self.issuer = issuer
        self.policy = policy
        self.service_secret = service_secret

    def execute(self, presented_secret: str | None) -> str:
        if not self.service_secret or not presented_secret:
            raise InstanceNotFoundException("Not found")

        if not hmac.compare_digest(
            presented_secret.encode("utf-8"), self.service_secret.encode("utf-8")
        ):
            logger.warning("[ServiceToken] Rejected service token request")
            raise InstanceNotFoundException("Not found")

        logger.info("[ServiceToken] Issued service identity token")
        return self.issuer.issue_with_custom_lifetime(
            SERVICE_IDENTITY, self.policy.service
        )


def get_issue_service_token_use_case(
    issuer: TokenIssuer = Depends(get_token_issuer),
    policy: TokenLifetimePolicy = Depends(get_token_lifetime_policy),
) -> IssueServiceTokenUseCase:
    return IssueServiceTokenUseCase(
        issuer=issuer,
        policy=policy,
        service_secret=config.jwt.SERVICE_TOKEN_SECRET,
    )
