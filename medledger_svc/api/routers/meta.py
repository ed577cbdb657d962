"""
Meta router - metric threshold definitions.

Exposes the static alert thresholds from metric_thresholds.yaml so clients
can show normal ranges without hardcoding them.

No authentication required for read-only metadata access.
"""
import logging
from typing import List

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from core.metric_thresholds import MetricDefinition, find_metric, list_metrics

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/meta",
    tags=["Metadata"],
    # No authentication - these are public read-only endpoints
)


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class MetricThresholdResponse(BaseModel):
    """Single metric threshold definition."""
    canonical_name: str
    display_name: str
    unit: str
    low: float
    high: float
    aliases: List[str]


class ThresholdListResponse(BaseModel):
    metrics: List[MetricThresholdResponse]


def _metric_to_response(metric: MetricDefinition) -> MetricThresholdResponse:
    """Convert internal MetricDefinition to API response model."""
    return MetricThresholdResponse(
        canonical_name=metric.canonical_name,
        display_name=metric.display_name,
        unit=metric.unit,
        low=metric.low,
        high=metric.high,
        aliases=list(metric.aliases),
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/thresholds",
    response_model=ThresholdListResponse,
    summary="List metric thresholds",
    description="All metric types that raise HIGH_VALUE / LOW_VALUE alerts, with their normal ranges."
)
async def list_thresholds() -> ThresholdListResponse:
    return ThresholdListResponse(
        metrics=[_metric_to_response(m) for m in list_metrics().values()]
    )


@router.get(
    "/thresholds/{metric_name}",
    response_model=MetricThresholdResponse,
    summary="Get a metric threshold",
    description="Look up one metric by canonical name or alias (case-insensitive)."
)
async def get_threshold(metric_name: str) -> MetricThresholdResponse:
    """
    Examples:
    - GET /api/v1/meta/thresholds/heart_rate
    - GET /api/v1/meta/thresholds/pulse (alias for heart_rate)
    """
    metric = find_metric(metric_name)
    if metric is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown metric: '{metric_name}'"
        )
    return _metric_to_response(metric)
