"""
Celery tasks for OTP delivery.

Note: Celery tasks run outside the FastAPI request context, so they cannot
use FastAPI's Depends() mechanism. The SMS service is constructed directly
from settings.

Observability:
    - Task success/failure metrics are recorded via MetricsCollector
    - Phone numbers are masked in every log line; the code is never logged
"""
import logging
from typing import Optional

from celery import shared_task

# Registers the configured app before any task is dispatched
from celery_app import celery_app  # noqa: F401
from core.config import settings
from core.exceptions import SmsDeliveryError
from core.logging_config import mask_phone
from services.sms_service import SmsService

logger = logging.getLogger(__name__)

DEFAULT_RETRY_BASE_DELAY = 2  # seconds
MAX_RETRIES = 3


def _record_task_metrics(success: bool) -> None:
    """
    Record task completion metrics.

    Safe to call even if the metrics collector is not initialized.
    """
    try:
        from core.middleware import get_metrics_collector
        get_metrics_collector().record_task_result(success=success)
    except Exception as e:
        # Metrics must never fail the task
        logger.warning(f"Failed to record task metrics: {e}")


def _calculate_retry_delay(retry_count: int, base_delay: int = DEFAULT_RETRY_BASE_DELAY) -> int:
    """Exponential backoff: base_delay ** retry_count seconds."""
    return base_delay ** retry_count


def send_otp_sms(phone: str, code: str, sms_service: Optional[SmsService] = None) -> None:
    """Deliver a code synchronously (used by the task and by tests)."""
    service = sms_service or SmsService()
    service.send_otp(phone, code, ttl_seconds=settings.medledger_otp_ttl_seconds)


@shared_task(bind=True, max_retries=MAX_RETRIES)
def deliver_otp(self, phone: str, code: str) -> None:
    """
    Deliver an OTP code by SMS.

    Retries on gateway failures with exponential backoff up to MAX_RETRIES.
    Returns nothing so the code never lands in the result backend.
    """
    try:
        send_otp_sms(phone, code)
        logger.info(
            "OTP delivered",
            extra={"task_id": self.request.id, "phone": mask_phone(phone)},
        )
        _record_task_metrics(success=True)

    except SmsDeliveryError as exc:
        if self.request.retries >= MAX_RETRIES:
            logger.error(
                "Max retries exhausted for OTP delivery",
                extra={
                    "task_id": self.request.id,
                    "phone": mask_phone(phone),
                    "retries": self.request.retries,
                },
            )
            _record_task_metrics(success=False)
            raise
        logger.warning(
            "Retrying OTP delivery",
            extra={
                "task_id": self.request.id,
                "phone": mask_phone(phone),
                "retry_count": self.request.retries + 1,
            },
        )
        raise self.retry(exc=exc, countdown=_calculate_retry_delay(self.request.retries))
