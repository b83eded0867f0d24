"""
Configuration module for environment variables.
"""
from functools import lru_cache
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = Field(
        default="sqlite:///./taskboard.db",
        description="SQLAlchemy connection URL (SQLite or PostgreSQL)"
    )

    # Session tokens
    secret_key: str = Field(default="CHANGE_THIS_SECRET")
    algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60)
    session_refresh_window_minutes: int = Field(
        default=10,
        description="Tokens closer than this to expiry are rotated on use"
    )
    email_token_expire_minutes: int = Field(
        default=60 * 24,
        description="Lifetime of email confirmation tokens"
    )
    password_reset_expire_minutes: int = Field(default=30)

    # Identity backend: "token" (JWT) or "fixture" (static token map)
    auth_backend: str = Field(default="token")
    fixture_sessions: Dict[str, str] = Field(
        default_factory=dict,
        description="Fixture backend only: session token -> user id"
    )

    # Backend-privileged provisioning endpoints
    provisioning_key: Optional[str] = Field(
        default=None,
        description="If set, required in X-Provisioning-Key for account provisioning"
    )

    # Brevo transactional email
    brevo_api_url: str = Field(default="https://api.brevo.com/v3/smtp/email")
    brevo_api_key: str = Field(default="")
    brevo_sender_email: str = Field(default="no-reply@yourdomain.com")
    brevo_sender_name: str = Field(default="Task Management System")

    # Links embedded in emails
    app_base_url: str = Field(default="http://localhost:3000")

    # Application Settings
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Convenience function for direct access
settings = get_settings()
