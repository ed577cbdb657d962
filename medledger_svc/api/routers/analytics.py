"""
Analytics router - heuristic summaries over health metrics.

All endpoints require API key authentication.

Architecture:
    HTTP Request → Router (this file) → AnalyticsService → strategy
"""
import logging

from fastapi import APIRouter, Depends

from core.auth import verify_api_key
from core.dependencies import get_analytics_service
from schemas import AnalyticsRequest, AnalyticsResponse, ErrorResponse, ReportResponse
from services import AnalyticsService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/analytics",
    tags=["Analytics"],
    dependencies=[Depends(verify_api_key)],  # Require API key for all endpoints
)


@router.post(
    "/{strategy}",
    response_model=AnalyticsResponse,
    summary="Analyze health metrics",
    description="Compute trend, alerts, patterns and recommendations. "
                "Use strategy=value for scalar readings (one report per metric type) "
                "or strategy=frequency for prescription records (a single report).",
    responses={400: {"model": ErrorResponse, "description": "Unknown strategy"}},
)
async def analyze_metrics(
    strategy: str,
    request: AnalyticsRequest,
    analytics_service: AnalyticsService = Depends(get_analytics_service)
) -> AnalyticsResponse:
    """
    Analyze a batch of metrics with the named strategy.

    Path Parameters:
    - **strategy**: "value" or "frequency"

    An empty metrics list yields neutral reports, never an error.
    """
    metrics = [m.to_domain() for m in request.metrics]
    reports = analytics_service.analyze(metrics, strategy)
    return AnalyticsResponse(
        strategy=strategy.lower(),
        reports=[ReportResponse.from_domain(r) for r in reports],
    )
