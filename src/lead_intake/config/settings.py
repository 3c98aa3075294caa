"""
Lead intake configuration.
Environment variables (prefix INTAKE_) and an optional .env file.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Supported enrollment store backends."""

    JSON = "json"
    SQL = "sql"
    SUPABASE = "supabase"


class IntakeSettings(BaseSettings):
    """
    Lead intake service configuration.

    Priority order:
    1. Constructor arguments
    2. Environment variables
    3. .env file
    4. Default values
    """

    # === Application ===
    app_name: str = Field(default="Lead Intake", description="Service name")
    environment: str = Field(default="development", description="Deployment environment")
    debug: bool = Field(default=False, description="Debug mode")

    # === Server Configuration ===
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Emit JSON structured logs")

    # === Webhook ===
    webhook_secret: str | None = Field(
        default=None,
        description="Shared secret used to sign Framer webhooks",
        validation_alias=AliasChoices(
            "webhook_secret", "INTAKE_WEBHOOK_SECRET", "FRAMER_WEBHOOK_SECRET"
        ),
    )

    # === Storage ===
    storage_backend: StorageBackend = Field(
        default=StorageBackend.SQL, description="Enrollment store backend"
    )
    json_path: Path = Field(
        default=Path("data/enrolled.json"), description="JSON store file path"
    )
    database_url: str = Field(
        default="sqlite:///data/enrolled.db", description="SQLAlchemy database URL"
    )
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_key: str | None = Field(default=None, description="Supabase service key")
    supabase_table: str = Field(
        default="enrolled_users", description="Supabase table name"
    )

    # === SMS ===
    sms_enabled: bool = Field(default=False, description="Send confirmation SMS")
    require_telephone: bool = Field(
        default=False, description="Reject submissions without a telephone"
    )
    twilio_account_sid: str | None = Field(default=None, description="Twilio account SID")
    twilio_auth_token: str | None = Field(default=None, description="Twilio auth token")
    twilio_from_number: str | None = Field(
        default=None, description="Sender phone number for confirmation SMS"
    )
    sms_timeout: float = Field(default=10.0, description="SMS request timeout in seconds")

    # === Security ===
    cors_origins: str = Field(
        default="*", description="Comma separated CORS allowed origins"
    )

    model_config = SettingsConfigDict(
        env_prefix="INTAKE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def sms_configured(self) -> bool:
        return bool(
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_from_number
        )

    def validate_config(self) -> dict[str, Any]:
        """Validate configuration for the selected backend and features."""
        errors = []
        warnings = []

        if not self.webhook_secret:
            errors.append("Webhook secret is required (FRAMER_WEBHOOK_SECRET)")

        if self.storage_backend == StorageBackend.SUPABASE:
            if not self.supabase_url or not self.supabase_key:
                errors.append("Supabase URL and key are required for the supabase backend")
        elif self.storage_backend == StorageBackend.JSON:
            warnings.append("JSON file store is only suitable for a single host")

        if self.sms_enabled and not self.sms_configured:
            errors.append("Twilio credentials and sender number are required when SMS is enabled")

        if self.sms_enabled and not self.require_telephone:
            warnings.append("SMS is enabled but telephone is optional; some enrollments get no SMS")

        if self.is_production:
            if self.debug:
                errors.append("Debug mode must be disabled in production")
            if "*" in self.cors_origin_list:
                warnings.append("CORS origins include '*' in production")

        return {
            "valid": len(errors) == 0,
            "errors": errors,
            "warnings": warnings,
            "service": "lead-intake",
        }


@lru_cache
def get_settings() -> IntakeSettings:
    """Load settings once per process."""
    return IntakeSettings()
