from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "VA Referral Tracker"

    # Database
    DATABASE_URL: str = "sqlite:///./data/app.db"

    # CRM relay
    GHL_WEBHOOK_URL: Optional[str] = None
    WEBHOOK_TIMEOUT_SECONDS: float = 10.0

    # Session gate
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin"
    SESSION_COOKIE_NAME: str = "va_session"

    # Referral attribution
    ATTRIBUTION_COOKIE_DOMAIN: Optional[str] = None
    ATTRIBUTION_MAX_AGE_DAYS: int = 30

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 10000

    # Static dashboard build
    STATIC_DIR: str = "dist"

    # Comma separated
    BACKEND_CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("GHL_WEBHOOK_URL", "ATTRIBUTION_COOKIE_DOMAIN", mode="before")
    @classmethod
    def blank_as_none(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def cors_origins(self) -> List[str]:
        return [i.strip() for i in self.BACKEND_CORS_ORIGINS.split(",") if i.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
