from dataclasses import dataclass, field

from fastapi import Request

from src.core.errors.exceptions import InfrastructureException
from src.main.config import JWT_SECRET_MIN_LENGTH, JWTConfig

SIGNING_ALGORITHM = "HS512"


@dataclass(frozen=True, slots=True)
class SigningKey:
    """
    Process-wide HMAC secret shared by the token issuer and validator.

    Built once at startup and never mutated; the secret is kept out of ``repr``.
    """

    secret: bytes = field(repr=False)
    algorithm: str = SIGNING_ALGORITHM

    @classmethod
    def from_secret(
        cls, secret: str, algorithm: str = SIGNING_ALGORITHM
    ) -> "SigningKey":
        if len(secret) < JWT_SECRET_MIN_LENGTH:
            raise InfrastructureException(
                f"JWT secret must be at least {JWT_SECRET_MIN_LENGTH} characters long"
            )
        return cls(secret=secret.encode("utf-8"), algorithm=algorithm)


def load_signing_key(jwt_config: JWTConfig) -> SigningKey:
    """Build the signing key from configuration. A missing or short secret is fatal."""
    if not jwt_config.JWT_SECRET:
        raise InfrastructureException("JWT_SECRET is not configured")
    return SigningKey.from_secret(
        jwt_config.JWT_SECRET, algorithm=jwt_config.ALGORITHM
    )


def get_signing_key(request: Request) -> SigningKey:
    """FastAPI dependency returning the key loaded by ``get_application``."""
    return request.app.state.signing_key
