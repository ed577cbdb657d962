"""
Metric analytics heuristics.

Two strategies over the same HealthMetric shape:
- ValueThresholdStrategy: scalar readings against static thresholds
- FrequencyStrategy: event counts over prescription records
"""
from services.analytics.base import AnalyticsStrategy
from services.analytics.frequency_strategy import FrequencyStrategy
from services.analytics.models import (
    AnalyticsReport,
    HealthAlert,
    HealthMetric,
    HealthPattern,
    HealthRecommendation,
    Priority,
    Severity,
    Significance,
    TrendAnalysis,
    TrendDirection,
    parse_diagnosis,
)
from services.analytics.service import AnalyticsService
from services.analytics.value_strategy import ValueThresholdStrategy

__all__ = [
    "AnalyticsService",
    "AnalyticsStrategy",
    "ValueThresholdStrategy",
    "FrequencyStrategy",
    "HealthMetric",
    "TrendAnalysis",
    "TrendDirection",
    "HealthAlert",
    "HealthPattern",
    "HealthRecommendation",
    "AnalyticsReport",
    "Severity",
    "Significance",
    "Priority",
    "parse_diagnosis",
]
