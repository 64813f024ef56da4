from functools import lru_cache
import json
import logging
import os
from typing import Any, Self

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

# HS512 produces a 512-bit digest; shorter HMAC keys weaken it
JWT_SECRET_MIN_LENGTH = 64


class SentryConfig(BaseModel):
    SENTRY_DSN: str | None = None
    SENTRY_ENV: str = "development"
    SENTRY_ENABLED: bool = False

    model_config = ConfigDict(extra="ignore")


class JWTConfig(BaseModel):
    JWT_SECRET: str = Field(min_length=JWT_SECRET_MIN_LENGTH)
    ALGORITHM: str = "HS512"

    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, gt=0)
    REFRESH_TOKEN_EXPIRE_MINUTES: int = Field(1000 * 7 * 24 * 60, gt=0)
    SERVICE_TOKEN_EXPIRE_MINUTES: int = Field(10000 * 7 * 24 * 60, gt=0)
    SERVICE_TOKEN_SECRET: str | None = None

    # Non-production only: longer-lived access tokens for debugging clients
    JWT_DIAGNOSTIC_MODE: bool = False
    DIAGNOSTIC_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(24 * 60, gt=0)

    model_config = ConfigDict(extra="ignore")

    @field_validator("ALGORITHM")
    @classmethod
    def validate_algorithm(cls, value: str) -> str:
        if value != "HS512":
            raise ValueError("Only HS512 is supported for token signing")
        return value

    @field_validator("SERVICE_TOKEN_SECRET", mode="before")
    @classmethod
    def empty_secret_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class PostgresConfig(BaseModel):
    DB_ECHO: bool = False

    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_HOST: str
    POSTGRES_PORT: int
    POSTGRES_DB: str

    model_config = ConfigDict(extra="ignore")

    @property
    def dsn_async(self) -> str:
        return (
            f"postgresql+asyncpg://"
            f"{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )


class AppConfig(BaseModel):
    VERSION: str
    DEBUG: bool = False
    TESTING: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_LEVEL_FILE: str = "WARNING"

    CORS_ALLOWED_ORIGINS: list[str] = Field(["*"])
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOWED_METHODS: list[str] = Field(["*"])
    CORS_ALLOWED_HEADERS: list[str] = Field(["*"])
    CORS_EXPOSE_HEADERS: list[str] = Field(["Token", "Refresh-Token"])

    PROJECT_NAME: str

    model_config = ConfigDict(extra="ignore")

    @field_validator(
        "CORS_ALLOWED_ORIGINS",
        "CORS_ALLOWED_METHODS",
        "CORS_ALLOWED_HEADERS",
        "CORS_EXPOSE_HEADERS",
        mode="before",
    )
    @classmethod
    def parse_cors_list(cls, v: Any) -> list[str]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip().startswith("[") and v.strip().endswith("]"):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(item) for item in parsed]
            except json.JSONDecodeError:
                pass
        sep = "," if "," in v else ";"
        return [item.strip() for item in v.split(sep) if item.strip()]


class Config(BaseModel):
    app: AppConfig
    jwt: JWTConfig
    sentry: SentryConfig
    postgres: PostgresConfig

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def forbid_diagnostic_tokens_in_production(self) -> Self:
        if self.jwt.JWT_DIAGNOSTIC_MODE and self.sentry.SENTRY_ENV == "production":
            raise ValueError("JWT_DIAGNOSTIC_MODE must not be enabled in production")
        return self


@lru_cache
def get_settings() -> Config:
    """
    Cached settings factory. Override in tests via monkeypatching or dependency overrides.
    """
    env_filename = ".env.test" if os.getenv("TESTING") == "true" else ".env"
    env_file_values = dotenv_values(env_filename)
    merged_env: dict[str, Any] = {
        k: v
        for k, v in {**env_file_values, **dict(os.environ)}.items()
        if v is not None
    }

    return Config(
        app=AppConfig(**merged_env),
        jwt=JWTConfig(**merged_env),
        sentry=SentryConfig(**merged_env),
        postgres=PostgresConfig(**merged_env),
    )


config = get_settings()
