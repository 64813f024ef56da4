from uuid import UUID

from pydantic import EmailStr, Field

from src.core.schemas import (
    Base,
    EmailNormalizationMixin,
    StrongPasswordValidationMixin,
)
from src.core.validations import DESCRIPTION_MAX_LENGTH


class CreateUserModel(StrongPasswordValidationMixin, EmailNormalizationMixin, Base):
    email: EmailStr
    password: str
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)


class LoginUserModel(EmailNormalizationMixin, Base):
    email: EmailStr
    password: str


class ChangePasswordModel(StrongPasswordValidationMixin, Base):
    old_password: str
    new_password: str


class AccessToken(Base):
    access_token: str
    expires: int  # epoch milliseconds


class IssuedTokens(AccessToken):
    user_id: UUID
    refresh_token: str


class LoginResponse(Base):
    user_id: UUID
    expires: int


class AccessTokenResponse(Base):
    expires: int
