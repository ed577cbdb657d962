"""
Core module for application configuration, logging, and shared constants.

This module provides:
- Settings: Application configuration via pydantic-settings
- Dependency injection: FastAPI Depends() functions for services and stores
- Exceptions: Domain-specific exception classes with HTTP status codes
- Datetime utilities: UTC-first datetime handling
- Registries: metric thresholds and registered identifiers
"""
from core.config import settings, Settings

# Dependency injection - import functions for FastAPI Depends()
from core.dependencies import (
    get_otp_store,
    get_identifier_registry,
    get_otp_service,
    get_analytics_service,
    get_advisor_service,
    get_digilocker_service,
    get_prescription_store,
    get_prescription_service,
    reset_otp_store,
    reset_prescription_store,
)

# Exception classes for consistent error handling
from core.exceptions import (
    MedLedgerError,
    OtpError,
    OtpValidationError,
    OtpRateLimitError,
    OtpNotFoundError,
    InvalidOtpError,
    OtpExpiredError,
    OtpStoreUnavailableError,
    UnknownStrategyError,
    PrescriptionNotFoundError,
    InvalidRequestError,
    InvalidFileTypeError,
    FileTooLargeError,
    ServiceNotConfiguredError,
    ExternalServiceError,
    DigiLockerError,
    SmsDeliveryError,
    setup_exception_handlers,
)

# UTC datetime utilities
from core.datetime_utils import (
    utc_now,
    to_utc,
    from_epoch_seconds,
    format_iso,
    format_date,
    resolve_timezone,
)
from core.config import (
    # Backwards-compatible exports
    API_HOST,
    API_PORT,
    API_RELOAD,
    REDIS_URL,
    REDIS_DB,
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_SERIALIZER,
    CELERY_RESULT_SERIALIZER,
    CELERY_ACCEPT_CONTENT,
    CELERY_TIMEZONE,
    CELERY_ENABLE_UTC,
    GEMINI_API_KEY,
)

# Registry exports
from core.metric_thresholds import (
    MetricDefinition,
    find_metric,
    get_metric,
    list_metrics,
    normalize_metric_name,
)
from core.identifier_registry import IdentifierRegistry, is_valid_identifier

__all__ = [
    # Settings
    "settings",
    "Settings",
    # Dependency injection
    "get_otp_store",
    "get_identifier_registry",
    "get_otp_service",
    "get_analytics_service",
    "get_advisor_service",
    "get_digilocker_service",
    "get_prescription_store",
    "get_prescription_service",
    "reset_otp_store",
    "reset_prescription_store",
    # Exceptions
    "MedLedgerError",
    "OtpError",
    "OtpValidationError",
    "OtpRateLimitError",
    "OtpNotFoundError",
    "InvalidOtpError",
    "OtpExpiredError",
    "OtpStoreUnavailableError",
    "UnknownStrategyError",
    "PrescriptionNotFoundError",
    "InvalidRequestError",
    "InvalidFileTypeError",
    "FileTooLargeError",
    "ServiceNotConfiguredError",
    "ExternalServiceError",
    "DigiLockerError",
    "SmsDeliveryError",
    "setup_exception_handlers",
    # Datetime utilities
    "utc_now",
    "to_utc",
    "from_epoch_seconds",
    "format_iso",
    "format_date",
    "resolve_timezone",
    # Backwards-compatible exports
    "API_HOST",
    "API_PORT",
    "API_RELOAD",
    "REDIS_URL",
    "REDIS_DB",
    "CELERY_BROKER_URL",
    "CELERY_RESULT_BACKEND",
    "CELERY_TASK_SERIALIZER",
    "CELERY_RESULT_SERIALIZER",
    "CELERY_ACCEPT_CONTENT",
    "CELERY_TIMEZONE",
    "CELERY_ENABLE_UTC",
    "GEMINI_API_KEY",
    # Registry exports
    "MetricDefinition",
    "find_metric",
    "get_metric",
    "list_metrics",
    "normalize_metric_name",
    "IdentifierRegistry",
    "is_valid_identifier",
]
