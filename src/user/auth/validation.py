from fastapi import Depends

from src.core.utils.datetime_utils import get_utc_now_millis
from src.user.auth.codec import decode_claims
from src.user.auth.exceptions import (
    TokenExpiredException,
    TokenRevokedException,
    WrongTokenKindException,
)
from src.user.auth.jwt_payload_schema import Claims
from src.user.auth.keys import SigningKey, get_signing_key
from src.user.auth.security import Clock


class TokenValidator:
    """
    Verifies bearer tokens without touching storage.

    ``validate`` checks signature and expiry only; the ``validate_access`` and
    ``validate_refresh`` variants add the token-kind check each endpoint needs.
    Refresh tokens must additionally pass ``ensure_current_version``.
    """

    def __init__(self, key: SigningKey, clock: Clock = get_utc_now_millis) -> None:
        self.key = key
        self.clock = clock

    def validate(self, token: str) -> Claims:
        claims = decode_claims(token, self.key)
        if claims.expiry < self.clock():
            raise TokenExpiredException()
        return claims

    def validate_access(self, token: str) -> Claims:
        claims = self.validate(token)
        if claims.is_refresh:
            raise WrongTokenKindException("Refresh tokens cannot be used here")
        return claims

    def validate_refresh(self, token: str) -> Claims:
        claims = self.validate(token)
        if not claims.is_refresh:
            raise WrongTokenKindException("A refresh token is required")
        return claims


def ensure_current_version(claims: Claims, stored_version: int | None) -> None:
    """
    Refuse a refresh token minted before the user's latest password change.

    ``stored_version`` is ``None`` when the user no longer exists.
    """
    if stored_version is None or claims.version != stored_version:
        raise TokenRevokedException()


def get_token_validator(
    key: SigningKey = Depends(get_signing_key),
) -> TokenValidator:
    return TokenValidator(key=key)
