from uuid import UUID

from pydantic import EmailStr, Field

from src.core.schemas import Base, EmailNormalizationMixin
from src.core.validations import DESCRIPTION_MAX_LENGTH


class UserProfileViewModel(Base):
    id: UUID
    email: EmailStr
    description: str | None = None


class UserCreatedViewModel(UserProfileViewModel):
    expires: int  # access-token expiry, epoch milliseconds


class UpdateUserModel(EmailNormalizationMixin, Base):
    email: EmailStr
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
