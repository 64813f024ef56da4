from typing import Any, NotRequired, TypedDict
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Reserved subject of the non-human service caller (the chat-bot)
SERVICE_IDENTITY = UUID(int=0)


class JWTPayload(TypedDict):
    """Wire layout of the signed payload"""

    exp: int  # Expiration, milliseconds since epoch
    uid: str  # Subject, canonical UUID
    refresh: bool  # True for refresh tokens
    ver: NotRequired[int]  # Revocation version, refresh tokens only


class Claims(BaseModel):
    """
    Structured form of a token payload.

    Python names are used in code, the short wire names (``exp``, ``uid``,
    ``refresh``, ``ver``) only in the signed JSON.
    """

    expiry: int = Field(alias="exp", strict=True)
    subject_id: UUID = Field(alias="uid")
    is_refresh: bool = Field(alias="refresh", strict=True)
    version: int | None = Field(default=None, alias="ver", strict=True)

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("subject_id", mode="before")
    @classmethod
    def require_canonical_uuid(cls, value: Any) -> Any:
        # Only the hyphenated lowercase form is accepted on the wire
        if isinstance(value, str) and str(UUID(value)) != value:
            raise ValueError("uid must be a canonical UUID string")
        return value

    @property
    def is_service_identity(self) -> bool:
        return self.subject_id == SERVICE_IDENTITY

    def to_payload(self) -> JWTPayload:
        payload: JWTPayload = {
            "exp": self.expiry,
            "uid": str(self.subject_id),
            "refresh": self.is_refresh,
        }
        if self.version is not None:
            payload["ver"] = self.version
        return payload
