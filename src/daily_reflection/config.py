# ABOUTME: Centralized configuration using Pydantic Settings.
# ABOUTME: Loads admin, storage, mail, web and logging settings from environment and .env file.

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Admin panel
    admin_password: SecretStr | None = None
    session_ttl_hours: int = 24

    # Storage
    store_backend: Literal["json", "sql"] = "json"
    data_file: Path = Path("data.json")

    # Database (only required when store_backend is "sql")
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "reflections"
    db_user: str = "reflections"
    db_password: SecretStr | None = None
    db_pool_size: int = 5
    db_pool_max_overflow: int = 10

    @property
    def database_url(self) -> str:
        """Build async PostgreSQL connection URL."""
        password = self.db_password.get_secret_value() if self.db_password else ""
        return f"postgresql+asyncpg://{self.db_user}:{password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # Email / SMTP
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: SecretStr | None = None
    smtp_password: SecretStr | None = None
    smtp_timeout: float = 15.0

    # Email / HTTP API (takes precedence over SMTP when the key is set)
    mail_api_key: SecretStr | None = None
    mail_api_url: str = "https://api.resend.com/emails"
    mail_api_timeout: float = 30.0

    sender_email: str = "reflexion@example.com"
    sender_name: str = "Reflexión del Día"
    bounce_email: str | None = None

    # Web
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]
    web_dir: Path = Path("web")
    templates_dir: Path = PACKAGE_DIR / "email" / "templates"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded from environment variables and .env file.
    The admin password is optional; without it every login attempt is rejected.
    """
    return Settings()
