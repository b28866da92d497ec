"""Runtime configuration for GradeVault.

Settings are read from ``GRADEVAULT_*`` environment variables (or a ``.env``
file) and handed to :func:`gradevault.main.create_app` explicitly.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GRADEVAULT_", env_file=".env", extra="ignore")

    # ---- App ----
    app_name: str = "GradeVault"
    api_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:4200", "https://localhost:4200"])

    # ---- DB ----
    database_url: str = "sqlite:///./gradevault.db"
    db_echo: bool = False

    # ---- Tokens ----
    secret_key: str = "CHANGE_ME"
    access_token_expire_minutes: int = 60
    remember_me_expire_minutes: int = 60 * 24 * 14
    password_reset_expire_minutes: int = 30

    # ---- Lockout ----
    lockout_max_attempts: int = 5
    lockout_minutes: int = 15

    # ---- Email ----
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_sender_email: str = "no-reply@gradevault.local"
    smtp_sender_name: str = "GradeVault"
    smtp_use_tls: bool = True
    smtp_timeout_seconds: float = 10.0
    frontend_url: str = "http://localhost:4200"
