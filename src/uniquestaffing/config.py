from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

PLACEHOLDER_BACKEND_URLS = {"https://placeholder.supabase.co"}
PLACEHOLDER_ANON_KEYS = {"placeholder-anon-key"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Unique Staffing Professionals"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 5000
    log_level: str = "INFO"
    secret_key: str = "change-me"
    cors_origins: str = "http://127.0.0.1:5000"

    database_url: str = "sqlite:///./data/uniquestaffing.db"
    data_dir: Path = Path("./data")
    storage_dir: Path = Path("./data/storage")

    backend_url: str = ""
    backend_anon_key: str = ""
    backend_timeout_sec: int = 15
    demo_mode: bool | None = None
    demo_admin_email: str = "demo@uniquestaffing.com"
    demo_admin_password: str = "demo123"
    seed_demo_data: bool = True

    session_ttl_min: int = 720
    verification_token_ttl_hours: int = 24
    signed_url_ttl_sec: int = 60
    talent_modal_cooldown_hours: int = 24

    public_base_url: str = "http://127.0.0.1:5000"
    mail_from: str = "no-reply@uniquestaffing.com"
    admin_notify_email: str = ""
    smtp_host: str = ""
    smtp_port: int = 25

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("backend_url")
    @classmethod
    def strip_backend_url(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def backend_configured(self) -> bool:
        if not self.backend_url or not self.backend_anon_key:
            return False
        if self.backend_url in PLACEHOLDER_BACKEND_URLS:
            return False
        return self.backend_anon_key not in PLACEHOLDER_ANON_KEYS

    @property
    def is_demo_mode(self) -> bool:
        if self.demo_mode is None:
            return not self.backend_configured
        if not self.demo_mode and not self.backend_configured:
            raise ValueError("demo_mode is disabled but no hosted backend is configured")
        return self.demo_mode

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
