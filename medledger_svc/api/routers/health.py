"""
Health, readiness, and metrics endpoints for operational visibility.

This module provides:
- /health: Liveness probe (is the app running?)
- /ready: Readiness probe (are dependencies available?)
- /metrics: Prometheus-compatible metrics for Grafana scraping

No authentication is required; these endpoints are for infrastructure use.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Dict, Any, List

import redis
from fastapi import APIRouter, Response
from pydantic import BaseModel

from core.config import settings
from core.middleware import get_metrics_collector

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health & Observability"])

SERVICE_VERSION = "1.0.0"


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str  # "healthy" or "unhealthy"
    version: str
    timestamp: str  # ISO 8601 UTC


class DependencyStatus(BaseModel):
    """Status of a single dependency."""
    name: str
    status: str  # "ok", "degraded", "unavailable"
    latency_ms: float | None = None
    message: str | None = None


class ReadyResponse(BaseModel):
    """Response model for /ready endpoint."""
    status: str  # "ready", "degraded", "not_ready"
    dependencies: List[DependencyStatus]
    timestamp: str


class MetricsResponse(BaseModel):
    """Response model for JSON metrics endpoint."""
    http_requests_total: int
    http_requests_2xx_total: int
    http_requests_4xx_total: int
    http_requests_5xx_total: int
    http_request_duration_ms_p50: float
    http_request_duration_ms_p95: float
    http_request_duration_ms_p99: float
    otp_events_total: Dict[str, int]
    background_tasks_success_total: int
    background_tasks_failure_total: int


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# HEALTH ENDPOINT (LIVENESS)
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Check if the application is running. Returns immediately without checking dependencies."
)
async def health_check() -> HealthResponse:
    """
    Liveness probe - is the application process alive?

    Always returns 200 if the app is running. Dependencies are checked by /ready.
    """
    return HealthResponse(
        status="healthy",
        version=SERVICE_VERSION,
        timestamp=_utc_timestamp()
    )


# =============================================================================
# READINESS ENDPOINT
# =============================================================================

async def _check_otp_store() -> DependencyStatus:
    """
    Ping the OTP store. The OTP gate cannot work without it, so it is critical.
    """
    from core.dependencies import get_otp_store

    start = time.perf_counter()
    try:
        healthy = get_otp_store().ping()
    except Exception as e:
        logger.error("OTP store health check failed", extra={"error": str(e)})
        healthy = False

    latency_ms = round((time.perf_counter() - start) * 1000, 2)
    if healthy:
        return DependencyStatus(
            name="otp_store",
            status="ok",
            latency_ms=latency_ms,
            message=f"{settings.medledger_otp_store} store healthy"
        )
    return DependencyStatus(
        name="otp_store",
        status="unavailable",
        latency_ms=latency_ms,
        message=f"{settings.medledger_otp_store} store unreachable"
    )


async def _check_celery() -> DependencyStatus:
    """
    Check the Redis broker used for OTP delivery tasks.

    Returns "degraded" if Redis is down: codes can still be verified, but new
    codes will not reach phones.
    """
    start = time.perf_counter()
    try:
        client = redis.from_url(settings.redis_connection_url, socket_timeout=2)
        client.ping()

        latency_ms = (time.perf_counter() - start) * 1000
        return DependencyStatus(
            name="celery_broker",
            status="ok",
            latency_ms=round(latency_ms, 2),
            message="Redis broker healthy"
        )
    except redis.RedisError as e:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.warning("Celery broker health check failed", extra={"error": str(e)})
        return DependencyStatus(
            name="celery_broker",
            status="degraded",
            latency_ms=round(latency_ms, 2),
            message=f"Broker unavailable: {type(e).__name__}"
        )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Check if the application is ready to serve requests. "
                "Verifies the OTP store (critical) and the message broker (non-critical). "
                "Returns 503 if not ready."
)
async def readiness_check(response: Response) -> ReadyResponse:
    """
    Readiness probe - can the application handle requests?

    Returns:
    - 200 with status="ready" if all dependencies are healthy
    - 200 with status="degraded" if the broker is down
    - 503 with status="not_ready" if the OTP store is down
    """
    store_status = await _check_otp_store()
    celery_status = await _check_celery()

    dependencies = [store_status, celery_status]

    critical_down = store_status.status == "unavailable"
    any_degraded = any(d.status in ("degraded", "unavailable") for d in dependencies)

    if critical_down:
        status = "not_ready"
        response.status_code = 503
    elif any_degraded:
        status = "degraded"
    else:
        status = "ready"

    return ReadyResponse(
        status=status,
        dependencies=dependencies,
        timestamp=_utc_timestamp()
    )


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Export metrics in Prometheus text format for Grafana scraping. "
                "Includes HTTP request counts, latency percentiles, OTP outcomes and task stats."
)
async def get_metrics() -> Response:
    """
    Export metrics in Prometheus text format.

    Metrics exposed:
    - http_requests_total: Total request count
    - http_requests_by_status{status="2xx|4xx|5xx"}: Requests by status category
    - http_request_duration_ms{quantile="0.5|0.95|0.99"}: Latency percentiles
    - otp_events_total{outcome="..."}: OTP gate outcomes
    - background_tasks_total{result="success|failure"}: Task completion counts
    """
    collector = get_metrics_collector()
    return Response(
        content=collector.get_prometheus_format(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@router.get(
    "/metrics/json",
    response_model=MetricsResponse,
    summary="JSON metrics",
    description="Export metrics in JSON format for custom dashboards or API consumers."
)
async def get_metrics_json() -> MetricsResponse:
    collector = get_metrics_collector()
    return MetricsResponse(**collector.get_summary())


# =============================================================================
# ROOT ENDPOINT
# =============================================================================

@router.get(
    "/",
    summary="API root",
    description="Root endpoint with basic API information."
)
async def root() -> Dict[str, Any]:
    """
    Root endpoint - basic API information.
    """
    return {
        "service": "MedLedger Service API",
        "version": SERVICE_VERSION,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
        "metrics": "/metrics"
    }
