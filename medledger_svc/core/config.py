"""
Configuration module for the MedLedger service.
Uses Pydantic BaseSettings for validation - app fails fast if required config is missing.
"""
import sys
import logging
from pathlib import Path
from typing import List, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_CORE_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """
    Application settings with validation.
    Required fields will cause the app to fail fast if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    medledger_host: str = Field(default="0.0.0.0", description="API host")
    medledger_port: int = Field(default=8000, description="API port")
    medledger_reload: bool = Field(default=False, description="Enable hot reload")

    # OTP Configuration
    medledger_otp_store: Literal["memory", "redis"] = Field(
        default="memory",
        description="Backing store for issued OTPs ('memory' for single-instance dev, 'redis' otherwise)",
    )
    medledger_otp_ttl_seconds: int = Field(default=300, ge=1, description="OTP validity window in seconds")
    medledger_otp_retention_seconds: int = Field(
        default=600,
        ge=1,
        description="How long an OTP record is retained before the store evicts it",
    )
    medledger_otp_max_attempts: int = Field(default=3, ge=1, description="Attempts allowed per issuance window")
    medledger_identifier_registry_path: str = Field(
        default=str(_CORE_DIR / "identifiers.yaml"),
        description="YAML file mapping registered identifiers to phone numbers",
    )

    # Redis & Celery Configuration
    medledger_redis_url: str = Field(default="redis://localhost:6379", description="Redis URL")
    medledger_redis_db: int = Field(default=0, description="Redis database number")
    medledger_celery_task_serializer: str = Field(default="json", description="Celery task serializer")
    medledger_celery_result_serializer: str = Field(default="json", description="Celery result serializer")
    medledger_celery_accept_content: str = Field(default="json", description="Celery accepted content types (comma-separated)")
    medledger_celery_timezone: str = Field(default="UTC", description="Celery timezone")
    medledger_celery_enable_utc: bool = Field(default=True, description="Enable UTC for Celery")

    # SMS Gateway Configuration (Optional)
    sms_gateway_url: str = Field(default="", description="SMS gateway endpoint used for OTP delivery")
    sms_gateway_api_key: str = Field(default="", description="SMS gateway API key")
    sms_gateway_timeout: float = Field(default=10.0, description="SMS gateway timeout in seconds")

    # Google Gemini API Configuration (Required for the health advisor)
    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    gemini_model: str = Field(default="gemini-1.5-flash", description="Gemini model name")

    # DigiLocker OAuth Configuration (Optional)
    digilocker_client_id: str = Field(default="", description="DigiLocker OAuth client id")
    digilocker_client_secret: str = Field(default="", description="DigiLocker OAuth client secret")
    digilocker_redirect_uri: str = Field(
        default="http://localhost:3000/api/digilocker/callback",
        description="Redirect URI registered with DigiLocker",
    )
    digilocker_base_url: str = Field(
        default="https://api.digitallocker.gov.in/public/oauth2/1",
        description="DigiLocker OAuth2 API base URL",
    )
    digilocker_timeout: float = Field(default=15.0, description="DigiLocker timeout in seconds")

    # Analytics Configuration
    medledger_analytics_timezone: str = Field(
        default="UTC",
        description="IANA timezone used to bucket observations by time of day",
    )

    # Upload Configuration
    medledger_upload_max_size: int = Field(default=10485760, description="Max image upload size in bytes (10MB)")

    # API Authentication Configuration
    medledger_api_key: str = Field(
        ...,  # Required - no default means fail fast if missing
        description="API key for authenticating requests to the MedLedger API",
        min_length=32,
    )

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """
        Validate configuration at startup and fail fast with clear error messages.
        """
        errors = []

        if not self.gemini_api_key:
            logger.warning(
                "GEMINI_API_KEY not set - health advisor endpoints will be unavailable"
            )

        if not self.sms_gateway_url:
            logger.warning(
                "SMS_GATEWAY_URL not set - OTPs will not be delivered to phones"
            )

        if not self.digilocker_client_id or not self.digilocker_client_secret:
            logger.warning(
                "DigiLocker client credentials not set - identity verification will not work"
            )

        if self.medledger_otp_retention_seconds < self.medledger_otp_ttl_seconds:
            errors.append(
                "MEDLEDGER_OTP_RETENTION_SECONDS must be >= MEDLEDGER_OTP_TTL_SECONDS"
            )

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            logger.critical(error_msg)
            sys.exit(1)

        return self

    @property
    def redis_connection_url(self) -> str:
        """Get the Redis URL with database selection."""
        return f"{self.medledger_redis_url}/{self.medledger_redis_db}"

    @property
    def celery_accept_content_list(self) -> List[str]:
        """Get the Celery accepted content types as a list."""
        return [c.strip() for c in self.medledger_celery_accept_content.split(",")]


# Create global settings instance - fails fast if required config is missing
settings = Settings()

# Module-level exports used across the service
API_HOST = settings.medledger_host
API_PORT = settings.medledger_port
API_RELOAD = settings.medledger_reload

REDIS_URL = settings.medledger_redis_url
REDIS_DB = settings.medledger_redis_db
CELERY_BROKER_URL = settings.redis_connection_url
CELERY_RESULT_BACKEND = settings.redis_connection_url
CELERY_TASK_SERIALIZER = settings.medledger_celery_task_serializer
CELERY_RESULT_SERIALIZER = settings.medledger_celery_result_serializer
CELERY_ACCEPT_CONTENT = settings.celery_accept_content_list
CELERY_TIMEZONE = settings.medledger_celery_timezone
CELERY_ENABLE_UTC = settings.medledger_celery_enable_utc

GEMINI_API_KEY = settings.gemini_api_key

API_KEY = settings.medledger_api_key
