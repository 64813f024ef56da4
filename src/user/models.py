from sqlalchemy import Boolean, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base
from src.core.database.mixins import TimestampMixin, UUIDIDMixin

INITIAL_TOKEN_VERSION = 1


class User(Base, UUIDIDMixin, TimestampMixin):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Revocation counter embedded in refresh tokens as ``ver``.
    # Only ever incremented, see UserRepository.change_password.
    token_version: Mapped[int] = mapped_column(
        Integer,
        default=INITIAL_TOKEN_VERSION,
        server_default=text(str(INITIAL_TOKEN_VERSION)),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={str(self.id)}, email={self.email!r}, token_version={self.token_version})>"
