from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from fastapi import Depends

from loggers import get_logger
from src.core.utils.datetime_utils import duration_to_millis, get_utc_now_millis
from src.main.config import JWTConfig, config
from src.user.auth.codec import encode_claims
from src.user.auth.jwt_payload_schema import Claims
from src.user.auth.keys import SigningKey, get_signing_key

logger = get_logger(__name__)

Clock = Callable[[], int]


@dataclass(frozen=True, slots=True)
class TokenLifetimePolicy:
    """Lifetimes applied uniformly to every caller."""

    access: timedelta
    refresh: timedelta
    service: timedelta

    @classmethod
    def from_config(cls, jwt_config: JWTConfig) -> "TokenLifetimePolicy":
        access_minutes = jwt_config.ACCESS_TOKEN_EXPIRE_MINUTES
        if jwt_config.JWT_DIAGNOSTIC_MODE:
            access_minutes = jwt_config.DIAGNOSTIC_ACCESS_TOKEN_EXPIRE_MINUTES
            logger.warning(
                "Diagnostic token mode enabled: access tokens live %s minutes",
                access_minutes,
            )
        return cls(
            access=timedelta(minutes=access_minutes),
            refresh=timedelta(minutes=jwt_config.REFRESH_TOKEN_EXPIRE_MINUTES),
            service=timedelta(minutes=jwt_config.SERVICE_TOKEN_EXPIRE_MINUTES),
        )


class TokenIssuer:
    """
    Mints signed access and refresh tokens.

    Lifetimes, key and clock are all injected so issuance is deterministic
    under test.
    """

    def __init__(
        self,
        key: SigningKey,
        policy: TokenLifetimePolicy,
        clock: Clock = get_utc_now_millis,
    ) -> None:
        self.key = key
        self.policy = policy
        self.clock = clock

    def issue_access(self, user_id: UUID) -> tuple[str, int]:
        """
        Create a short-lived access token.

        Returns:
            tuple[str, int]: The token and its absolute expiry in epoch milliseconds
        """
        return self._issue(user_id, is_refresh=False, lifetime=self.policy.access)

    def issue_refresh(self, user_id: UUID, version: int) -> str:
        """Create a long-lived refresh token bound to the user's current ``version``."""
        token, _ = self._issue(
            user_id, is_refresh=True, lifetime=self.policy.refresh, version=version
        )
        return token

    def issue_with_custom_lifetime(self, user_id: UUID, duration: timedelta) -> str:
        """Create a non-refresh token with an explicit lifetime (service callers)."""
        if duration <= timedelta(0):
            raise ValueError("Token lifetime must be positive")
        token, _ = self._issue(user_id, is_refresh=False, lifetime=duration)
        return token

    def _issue(
        self,
        user_id: UUID,
        *,
        is_refresh: bool,
        lifetime: timedelta,
        version: int | None = None,
    ) -> tuple[str, int]:
        expiry = self.clock() + duration_to_millis(lifetime)
        claims = Claims(
            expiry=expiry,
            subject_id=user_id,
            is_refresh=is_refresh,
            version=version,
        )
        return encode_claims(claims, self.key), expiry


def get_token_lifetime_policy() -> TokenLifetimePolicy:
    return TokenLifetimePolicy.from_config(config.jwt)


def get_token_issuer(
    key: SigningKey = Depends(get_signing_key),
    policy: TokenLifetimePolicy = Depends(get_token_lifetime_policy),
) -> TokenIssuer:
    return TokenIssuer(key=key, policy=policy)
