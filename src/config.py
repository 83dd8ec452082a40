from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.email.sender import PRODUCT_NAME
from src.handlers.errors import ServerConfigurationError


class Settings(BaseSettings):
    database_url: str | None = None
    cors_allow_origins: str = "*"
    email_http_timeout_seconds: float = 10.0

    max_signups: int = 30

    resend_api_key: str | None = None
    email_from: str = "onboarding@resend.dev"
    email_from_name: str | None = None
    product_name: str = PRODUCT_NAME

    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout_seconds: int = 30
    db_echo_sql: bool = False

    ops_event_buffer_size: int = 500
    ops_console_enabled: bool = False
    ops_console_token: str | None = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("max_signups")
    @classmethod
    def validate_max_signups(cls, value: int) -> int:
        if value < 0:
            raise ValueError("MAX_SIGNUPS must not be negative")
        return value

    def cors_allow_origin_list(self) -> list[str]:
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]

    def email_sender_address(self) -> str:
        """Compose the From header; an address that already carries a name is used as-is."""
        address = self.email_from.strip()
        if self.email_from_name and self.email_from_name.strip() and "<" not in address:
            return f"{self.email_from_name.strip()} <{address}>"
        return address


@dataclass(frozen=True)
class SignupConfig:
    max_signups: int
    email_from: str
    email_http_timeout_seconds: float
    product_name: str = PRODUCT_NAME
    resend_api_key: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings, *, require_notifier: bool) -> SignupConfig:
        if not (settings.database_url or "").strip():
            raise ServerConfigurationError("Missing database credentials")
        if require_notifier and not (settings.resend_api_key or "").strip():
            raise ServerConfigurationError("Missing email API key")
        return cls(
            max_signups=settings.max_signups,
            email_from=settings.email_sender_address(),
            email_http_timeout_seconds=settings.email_http_timeout_seconds,
            product_name=settings.product_name,
            resend_api_key=settings.resend_api_key,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
