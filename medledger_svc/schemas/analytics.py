"""
Pydantic schemas for metric analytics.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.datetime_utils import MAX_EPOCH_SECONDS
from services.analytics.models import (
    AnalyticsReport,
    HealthAlert,
    HealthMetric,
    HealthPattern,
    HealthRecommendation,
    TrendAnalysis,
)


class HealthMetricIn(BaseModel):
    """Schema for one observation or prescription record."""
    type: str = Field(..., min_length=1, description="Metric type", example="blood_pressure_systolic")
    value: float = Field(..., allow_inf_nan=False, description="Numeric reading", example=120)
    timestamp: int = Field(
        ..., ge=0, le=MAX_EPOCH_SECONDS, description="Epoch seconds (not milliseconds)", example=1735725600
    )
    notes: str = Field("", description="Free-text notes", example="Diagnosis: Hypertension, recheck in 2 weeks")
    hospital: Optional[str] = Field(None, description="Issuing hospital", example="City Hospital")
    diagnosis: Optional[str] = Field(None, description="Structured diagnosis; derived from notes if omitted")

    def to_domain(self) -> HealthMetric:
        return HealthMetric.create(
            type=self.type,
            value=self.value,
            timestamp=self.timestamp,
            notes=self.notes,
            hospital=self.hospital,
            diagnosis=self.diagnosis,
        )


class AnalyticsRequest(BaseModel):
    """Schema for an analytics request."""
    metrics: List[HealthMetricIn] = Field(default_factory=list, description="Records to analyze")

    class Config:
        json_schema_extra = {
            "example": {
                "metrics": [
                    {"type": "blood_pressure_systolic", "value": 120, "timestamp": 1735725600},
                    {"type": "blood_pressure_systolic", "value": 150, "timestamp": 1735812000}
                ]
            }
        }


class TrendResponse(BaseModel):
    direction: str
    rate_per_day: float
    rate_of_change: str
    recent_value: float
    average_value: float
    volatility: float
    sample_count: int

    @classmethod
    def from_domain(cls, trend: TrendAnalysis) -> "TrendResponse":
        return cls(
            direction=trend.direction.value,
            rate_per_day=trend.rate_per_day,
            rate_of_change=trend.rate_of_change,
            recent_value=trend.recent_value,
            average_value=trend.average_value,
            volatility=trend.volatility,
            sample_count=trend.sample_count,
        )


class AlertResponse(BaseModel):
    type: str
    severity: str
    message: str
    timestamp: int

    @classmethod
    def from_domain(cls, alert: HealthAlert) -> "AlertResponse":
        return cls(type=alert.type, severity=alert.severity.value, message=alert.message, timestamp=alert.timestamp)


class PatternResponse(BaseModel):
    type: str
    description: str
    significance: str
    frequency: int
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, pattern: HealthPattern) -> "PatternResponse":
        return cls(
            type=pattern.type,
            description=pattern.description,
            significance=pattern.significance.value,
            frequency=pattern.frequency,
            details=dict(pattern.details),
        )


class RecommendationResponse(BaseModel):
    type: str
    priority: str
    description: str
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, recommendation: HealthRecommendation) -> "RecommendationResponse":
        return cls(
            type=recommendation.type,
            priority=recommendation.priority.value,
            description=recommendation.description,
            details=dict(recommendation.details),
        )


class ReportResponse(BaseModel):
    """Analysis of one metric group; ``metric_type`` is null for frequency reports."""
    metric_type: Optional[str]
    trend: TrendResponse
    alerts: List[AlertResponse]
    patterns: List[PatternResponse]
    recommendations: List[RecommendationResponse]

    @classmethod
    def from_domain(cls, report: AnalyticsReport) -> "ReportResponse":
        return cls(
            metric_type=report.metric_type,
            trend=TrendResponse.from_domain(report.trend),
            alerts=[AlertResponse.from_domain(a) for a in report.alerts],
            patterns=[PatternResponse.from_domain(p) for p in report.patterns],
            recommendations=[RecommendationResponse.from_domain(r) for r in report.recommendations],
        )


class AnalyticsResponse(BaseModel):
    """Schema for an analytics response."""
    strategy: str = Field(..., description="Strategy that produced the reports", example="value")
    reports: List[ReportResponse]
