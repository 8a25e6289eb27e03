from __future__ import annotations

from typing import Literal, Self

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # HTTP server
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    # Message store. DATABASE_URL, when set, wins over the POSTGRES_* parts.
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DATABASE_URL: str | None = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    # Identity tokens issued by the marketplace
    JWT_VERIFY_MODE: Literal["hs256", "jwks"] = "hs256"
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWKS_URL: str | None = None

    # Messaging
    WS_HANDSHAKE_TIMEOUT_SECONDS: float = 10.0
    MESSAGE_MAX_LENGTH: int = 5000

    @model_validator(mode="after")
    def _check_token_settings(self) -> Self:
        if self.JWT_VERIFY_MODE == "jwks" and not self.JWKS_URL:
            raise ValueError("JWKS_URL must be set when JWT_VERIFY_MODE=jwks")
        return self

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()  # type: ignore[call-arg]
