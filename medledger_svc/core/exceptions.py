"""
Shared exception classes and error handling utilities for the MedLedger API.

This module provides:
- Custom exception hierarchy for domain-specific errors
- Consistent error response formatting (``detail`` + machine-readable ``error``)
- Exception handlers for FastAPI integration

Usage:
    from core.exceptions import OtpExpiredError

    # In service layer - raise domain exceptions
    raise OtpExpiredError()

    # In FastAPI - register handlers via setup_exception_handlers(app)
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================

class MedLedgerError(Exception):
    """
    Base exception for all MedLedger domain errors.

    Carries an HTTP status code, a human-readable detail, a stable
    machine-readable ``error`` kind, and optional context for logs.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"
    error: str = "internal_error"

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context, logged but never sent to clients.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {"detail": self.detail, "error": self.error}


# =============================================================================
# OTP EXCEPTIONS
# =============================================================================

class OtpError(MedLedgerError):
    """Base class for OTP gate failures. All are client-facing and non-retriable."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "OTP request failed"
    error = "otp_error"


class OtpValidationError(OtpError):
    """Raised when an identifier or code is malformed."""

    detail = "Invalid identifier format"
    error = "validation_error"


class OtpRateLimitError(OtpError):
    """Raised when the attempt ceiling for the current issuance window is reached."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    detail = "Too many attempts. Please try again later."
    error = "rate_limited"


class OtpNotFoundError(OtpError):
    """Raised when verification is attempted with no outstanding code."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "No OTP found. Please request a new one."
    error = "not_found"


class InvalidOtpError(OtpError):
    """Raised when the submitted code does not match."""

    detail = "Invalid OTP"
    error = "invalid_code"


class OtpExpiredError(OtpError):
    """Raised when the code is past its validity window."""

    detail = "OTP expired. Please request a new one."
    error = "expired"


# =============================================================================
# ANALYTICS EXCEPTIONS
# =============================================================================

class UnknownStrategyError(MedLedgerError):
    """Raised when an analytics strategy name is not registered."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Unknown analytics strategy"
    error = "unknown_strategy"

    def __init__(self, strategy: Optional[str] = None, **kwargs: Any):
        detail = f"Unknown analytics strategy '{strategy}'" if strategy else self.detail
        super().__init__(detail=detail, strategy=strategy, **kwargs)


# =============================================================================
# REQUEST VALIDATION EXCEPTIONS
# =============================================================================

class InvalidRequestError(MedLedgerError):
    """Raised when request content fails domain validation."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid request"
    error = "invalid_request"


class InvalidFileTypeError(InvalidRequestError):
    """Raised when an uploaded file has an unsupported type."""

    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    detail = "Unsupported file type"
    error = "unsupported_file_type"


class FileTooLargeError(InvalidRequestError):
    """Raised when an uploaded file exceeds the size limit."""

    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    detail = "File size exceeds maximum allowed"
    error = "file_too_large"


# =============================================================================
# PRESCRIPTION EXCEPTIONS
# =============================================================================

class PrescriptionNotFoundError(MedLedgerError):
    """Raised when a prescription id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Prescription not found"
    error = "not_found"

    def __init__(self, prescription_id: Optional[str] = None, **kwargs: Any):
        detail = f"Prescription not found: {prescription_id}" if prescription_id else self.detail
        super().__init__(detail=detail, prescription_id=prescription_id, **kwargs)


# =============================================================================
# EXTERNAL SERVICE EXCEPTIONS
# =============================================================================

class ServiceNotConfiguredError(MedLedgerError):
    """Raised when a feature needs credentials that are not configured."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Service not configured"
    error = "not_configured"

    def __init__(self, service: Optional[str] = None, **kwargs: Any):
        detail = f"{service} is not configured" if service else self.detail
        super().__init__(detail=detail, service=service, **kwargs)


class ExternalServiceError(MedLedgerError):
    """Raised when an external service call fails."""

    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "External service error"
    error = "external_service_error"


class DigiLockerError(ExternalServiceError):
    """Raised when the DigiLocker OAuth exchange fails."""

    detail = "DigiLocker verification failed"


class SmsDeliveryError(ExternalServiceError):
    """Raised when the SMS gateway rejects or cannot receive a message."""

    detail = "SMS delivery failed"


class OtpStoreUnavailableError(MedLedgerError):
    """Raised when the OTP backing store cannot be reached."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "OTP store unavailable"
    error = "store_unavailable"


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def medledger_exception_handler(
    request: Request,
    exc: MedLedgerError
) -> JSONResponse:
    """
    Handle MedLedgerError exceptions and return consistent JSON responses.
    """
    logger.warning(
        f"{exc.__class__.__name__}: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "error": exc.error,
            "context": exc.context
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


# Routes whose malformed bodies answer 400 validation_error instead of 422
OTP_PATH_PREFIX = "/api/v1/otp"


def describe_validation_error(exc: RequestValidationError) -> str:
    """Turn the first pydantic error into a short message such as "Invalid action"."""
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    fields = [str(part) for part in first.get("loc", ()) if part != "body" and not isinstance(part, int)]
    if not fields:
        return "Invalid request body"
    verb = "Missing" if first.get("type") == "missing" else "Invalid"
    return f"{verb} {fields[-1]}"


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Report malformed OTP requests with the OTP error body; other routes keep
    FastAPI's default 422 response.
    """
    if not request.url.path.startswith(OTP_PATH_PREFIX):
        return await request_validation_exception_handler(request, exc)
    return await medledger_exception_handler(request, OtpValidationError(describe_validation_error(exc)))


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Example:
        app = FastAPI()
        setup_exception_handlers(app)
    """
    app.add_exception_handler(MedLedgerError, medledger_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
