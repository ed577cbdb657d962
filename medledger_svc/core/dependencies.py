"""
FastAPI Dependency Injection configuration for the MedLedger Service API.

This module provides the dependency injection (DI) infrastructure. It enables:
- Clean separation between API, Service, and Store layers
- Easy testing with fake stores, clocks and providers
- Centralized configuration of all dependencies

Architecture Flow:
    API Layer (Routers)
         ↓ Depends()
    Service Layer (Business Logic)
         ↓ Injected
    Store Layer (OTP key-value store)
         ↓ Injected
    Memory / Redis

Usage in Routers:
    from core.dependencies import get_otp_service

    @router.post("/otp")
    async def otp(
        request: OtpRequest,
        otp_service: OtpService = Depends(get_otp_service)
    ):
        ...

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_otp_service] = lambda: fake_service
"""
import logging
from functools import lru_cache
from typing import Optional

from core.config import settings
from core.datetime_utils import resolve_timezone
from core.exceptions import ServiceNotConfiguredError, SmsDeliveryError
from core.logging_config import mask_phone

logger = logging.getLogger(__name__)


# =============================================================================
# OTP STORE DEPENDENCY
# =============================================================================

# Process-wide store; created on first use
_otp_store_instance: Optional["OtpStore"] = None


def get_otp_store() -> "OtpStore":
    """
    Get the process-wide OTP store (singleton).

    The backend is selected by MEDLEDGER_OTP_STORE: ``memory`` keeps codes in
    this process only, ``redis`` shares them across instances.
    """
    global _otp_store_instance

    if _otp_store_instance is None:
        if settings.medledger_otp_store == "redis":
            from stores.redis_store import RedisOtpStore

            logger.info("Initializing Redis OTP store", extra={"redis_url": settings.medledger_redis_url})
            _otp_store_instance = RedisOtpStore.from_url(settings.redis_connection_url)
        else:
            from stores.memory_store import InMemoryOtpStore

            logger.info("Initializing in-memory OTP store")
            _otp_store_instance = InMemoryOtpStore()

    return _otp_store_instance


def reset_otp_store() -> None:
    """
    Reset the OTP store instance (for testing only).
    """
    global _otp_store_instance
    _otp_store_instance = None


# =============================================================================
# PRESCRIPTION STORE DEPENDENCY
# =============================================================================

_prescription_store_instance: Optional["InMemoryPrescriptionStore"] = None


def get_prescription_store() -> "InMemoryPrescriptionStore":
    """
    Get the process-wide prescription store (singleton).

    Prescriptions are kept in this process only and are lost on restart.
    """
    global _prescription_store_instance

    if _prescription_store_instance is None:
        from stores.prescription_store import InMemoryPrescriptionStore

        logger.info("Initializing in-memory prescription store")
        _prescription_store_instance = InMemoryPrescriptionStore()

    return _prescription_store_instance


def reset_prescription_store() -> None:
    """
    Reset the prescription store instance (for testing only).
    """
    global _prescription_store_instance
    _prescription_store_instance = None


# =============================================================================
# REGISTRY DEPENDENCIES
# =============================================================================

@lru_cache(maxsize=1)
def get_identifier_registry() -> "IdentifierRegistry":
    """
    Load the identifier -> phone registry once per process.

    Raises:
        FileNotFoundError: If the registry file is missing.
    """
    from core.identifier_registry import IdentifierRegistry

    return IdentifierRegistry.from_yaml(settings.medledger_identifier_registry_path)


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

def enqueue_otp_delivery(phone: str, code: str) -> None:
    """
    Hand a generated code to the celery SMS task.

    Raises:
        SmsDeliveryError: If the task cannot be queued.
    """
    from tasks.otp_tasks import deliver_otp

    try:
        deliver_otp.delay(phone, code)
    except Exception as e:
        logger.error(
            f"Failed to queue OTP delivery: {type(e).__name__}",
            extra={"phone": mask_phone(phone)}
        )
        raise SmsDeliveryError("Could not dispatch OTP") from e


def get_otp_service() -> "OtpService":
    """
    Get an OtpService with the shared store and registry injected.

    Returns:
        OtpService: Service for issuing and verifying OTPs.
    """
    from core.middleware import get_metrics_collector
    from services.otp_service import OtpService

    return OtpService(
        store=get_otp_store(),
        registry=get_identifier_registry(),
        notifier=enqueue_otp_delivery,
        ttl_seconds=settings.medledger_otp_ttl_seconds,
        retention_seconds=settings.medledger_otp_retention_seconds,
        max_attempts=settings.medledger_otp_max_attempts,
        metrics=get_metrics_collector(),
    )


def get_analytics_service() -> "AnalyticsService":
    """
    Get an AnalyticsService.

    AnalyticsService is stateless and doesn't require store injection.
    """
    from services.analytics import AnalyticsService

    return AnalyticsService(timezone=resolve_timezone(settings.medledger_analytics_timezone))


def get_prescription_service() -> "PrescriptionService":
    """
    Get a PrescriptionService backed by the shared prescription store.
    """
    from services.prescription_service import PrescriptionService

    return PrescriptionService(store=get_prescription_store())


def get_advisor_service() -> "AdvisorService":
    """
    Get an AdvisorService for Gemini-backed health advice.

    Raises:
        ServiceNotConfiguredError: If GEMINI_API_KEY is not configured.
    """
    if not settings.gemini_api_key:
        raise ServiceNotConfiguredError("Health advisor")

    from services.advisor_service import AdvisorService

    return AdvisorService(api_key=settings.gemini_api_key, model_name=settings.gemini_model)


_digilocker_instance: Optional["DigiLockerService"] = None


def get_digilocker_service() -> "DigiLockerService":
    """
    Get the DigiLockerService (singleton, since it tracks issued OAuth states).

    Raises:
        ServiceNotConfiguredError: If DigiLocker client credentials are missing.
    """
    global _digilocker_instance

    if not settings.digilocker_client_id or not settings.digilocker_client_secret:
        raise ServiceNotConfiguredError("DigiLocker")

    if _digilocker_instance is None:
        from services.digilocker_service import DigiLockerService

        _digilocker_instance = DigiLockerService()

    return _digilocker_instance


# =============================================================================
# DEPENDENCY OVERRIDE HELPERS (FOR TESTING)
# =============================================================================

class DependencyOverrides:
    """
    Context manager for temporarily overriding dependencies in tests.

    Usage:
        with DependencyOverrides(app) as overrides:
            overrides.set(get_otp_service, lambda: fake_service)
            # Run tests with overridden dependency
        # Dependencies restored after context exits
    """

    def __init__(self, app):
        self.app = app
        self._original_overrides = {}

    def __enter__(self):
        self._original_overrides = self.app.dependency_overrides.copy()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.app.dependency_overrides = self._original_overrides

    def set(self, dependency, override):
        """Set a dependency override."""
        self.app.dependency_overrides[dependency] = override

    def clear(self):
        """Clear all overrides."""
        self.app.dependency_overrides = self._original_overrides.copy()
