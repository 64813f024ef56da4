"""
Signing and verification of token claims.

Tokens are compact JWTs signed with HMAC-SHA-512. Decoding trusts nothing
until the signature has been checked, and every kind of failure (bad
base64, bad JSON, wrong algorithm, wrong key, missing or mistyped claims) is
reported as the same ``InvalidSignatureException``.
"""

import jwt
from pydantic import ValidationError

from loggers import get_logger
from src.core.errors.exceptions import InfrastructureException
from src.user.auth.exceptions import InvalidSignatureException
from src.user.auth.jwt_payload_schema import Claims
from src.user.auth.keys import SigningKey

logger = get_logger(__name__)

REQUIRED_CLAIMS = ["exp", "uid", "refresh"]


def encode_claims(claims: Claims, key: SigningKey) -> str:
    try:
        return jwt.encode(claims.to_payload(), key.secret, algorithm=key.algorithm)
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        logger.error("[TokenCodec] Failed to sign token: %s", type(exc).__name__)
        raise InfrastructureException("Token signing failed") from exc


def decode_claims(token: str, key: SigningKey) -> Claims:
    try:
        payload = jwt.decode(
            token,
            key.secret,
            algorithms=[key.algorithm],
            options={
                # ``exp`` is in milliseconds; the validator checks it
                "verify_exp": False,
                "require": REQUIRED_CLAIMS,
            },
        )
    except jwt.PyJWTError as exc:
        logger.debug("[TokenCodec] Token rejected: %s", type(exc).__name__)
        raise InvalidSignatureException() from exc

    try:
        return Claims.model_validate(payload)
    except ValidationError as exc:
        logger.debug("[TokenCodec] Token payload does not match claims schema")
        raise InvalidSignatureException() from exc
