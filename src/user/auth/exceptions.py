from typing import Any

from src.core.errors.exceptions import UnauthorizedException


class TokenException(UnauthorizedException):
    """Base for every way a presented bearer token can be refused."""

    default_message = "Could not validate credentials"

    def __init__(
        self, message: str | None = None, additional_info: dict[str, Any] | None = None
    ):
        super().__init__(message or self.default_message, additional_info)


class MissingCredentialException(TokenException):
    reason = "auth/no-token"


class InvalidSignatureException(TokenException):
    # Same reason and message as a missing token: callers learn nothing about
    # why verification failed.
    reason = "auth/no-token"


class TokenExpiredException(TokenException):
    reason = "auth/expired"
    default_message = "Token expired, please renew it"


class WrongTokenKindException(TokenException):
    reason = "auth/wrong-token-kind"
    default_message = "Wrong token kind for this endpoint"


class TokenRevokedException(TokenException):
    reason = "auth/revoked"
    default_message = "Token has been revoked, please log in again"
