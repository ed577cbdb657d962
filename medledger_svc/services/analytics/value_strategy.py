"""
Value-threshold analytics for scalar health observations.

Compares readings against the metric threshold registry
(core/metric_thresholds.yaml), derives a per-day value trend, and reports
time-of-day and range patterns.
"""
import logging
import statistics
from collections import defaultdict
from datetime import tzinfo
from typing import Dict, List, Optional, Sequence

from core.datetime_utils import from_epoch_seconds, resolve_timezone
from core.metric_thresholds import find_metric, normalize_metric_name
from services.analytics.base import AnalyticsStrategy, elapsed_days, sort_by_timestamp
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
)

logger = logging.getLogger(__name__)

TREND_THRESHOLD = 0.1  # value delta per day
RAPID_CHANGE_THRESHOLD = 5.0
VOLATILITY_THRESHOLD = 10.0
WIDE_RANGE = 20.0
MODERATE_RANGE = 10.0

# (name, start hour inclusive, end hour exclusive); anything else is night
TIME_OF_DAY_BUCKETS = (
    ("morning", 5, 12),
    ("afternoon", 12, 17),
    ("evening", 17, 22),
)


def time_of_day(hour: int) -> str:
    for name, start, end in TIME_OF_DAY_BUCKETS:
        if start <= hour < end:
            return name
    return "night"


def consecutive_deltas(ordered: Sequence[HealthMetric]) -> List[float]:
    return [b.value - a.value for a, b in zip(ordered, ordered[1:])]


def volatility(deltas: Sequence[float]) -> float:
    """Population standard deviation of ``deltas``; 0 with fewer than two."""
    if len(deltas) < 2:
        return 0.0
    return statistics.pstdev(deltas)


class ValueThresholdStrategy(AnalyticsStrategy):
    """
    Threshold-based analysis of numeric readings.

    Args:
        timezone: Zone used for the time-of-day buckets.
        clock: Epoch-seconds clock for alert timestamps.
    """

    name = "value"

    def __init__(self, timezone: Optional[tzinfo] = None, **kwargs):
        super().__init__(**kwargs)
        self.timezone = timezone or resolve_timezone("UTC")

    # =========================================================================
    # TREND
    # =========================================================================

    def analyze_trend(self, metrics: Sequence[HealthMetric]) -> TrendAnalysis:
        if not metrics:
            return TrendAnalysis.neutral()

        ordered = sort_by_timestamp(metrics)
        rate = (ordered[-1].value - ordered[0].value) / elapsed_days(ordered)

        if rate > TREND_THRESHOLD:
            direction = TrendDirection.INCREASING
        elif rate < -TREND_THRESHOLD:
            direction = TrendDirection.DECREASING
        else:
            direction = TrendDirection.STABLE

        return TrendAnalysis(
            direction=direction,
            rate_per_day=rate,
            recent_value=ordered[-1].value,
            average_value=statistics.fmean(m.value for m in ordered),
            volatility=volatility(consecutive_deltas(ordered)),
            sample_count=len(ordered),
        )

    # =========================================================================
    # ALERTS
    # =========================================================================

    def check_metric(self, metric: HealthMetric, trend: TrendAnalysis) -> List[HealthAlert]:
        """Alerts for a single reading in the context of its series trend."""
        alerts: List[HealthAlert] = []
        now = self.now()
        definition = find_metric(metric.type)

        if definition is not None:
            if definition.is_high(metric.value):
                alerts.append(HealthAlert(
                    type="HIGH_VALUE",
                    severity=Severity.HIGH,
                    message=f"{definition.display_name} is above normal range ({metric.value:g} {definition.unit})",
                    timestamp=now,
                ))
            elif definition.is_low(metric.value):
                alerts.append(HealthAlert(
                    type="LOW_VALUE",
                    severity=Severity.HIGH,
                    message=f"{definition.display_name} is below normal range ({metric.value:g} {definition.unit})",
                    timestamp=now,
                ))

        if abs(trend.rate_per_day) > RAPID_CHANGE_THRESHOLD:
            alerts.append(HealthAlert(
                type="RAPID_CHANGE",
                severity=Severity.MEDIUM,
                message=f"Rapid change detected in {metric.type} ({trend.rate_of_change})",
                timestamp=now,
            ))

        if trend.volatility > VOLATILITY_THRESHOLD:
            alerts.append(HealthAlert(
                type="HIGH_VOLATILITY",
                severity=Severity.MEDIUM,
                message=f"Unusual variations detected in {metric.type}",
                timestamp=now,
            ))

        return alerts

    def check_for_alerts(self, metrics: Sequence[HealthMetric], trend: TrendAnalysis) -> List[HealthAlert]:
        if not metrics:
            return []
        return self.check_metric(sort_by_timestamp(metrics)[-1], trend)

    # =========================================================================
    # PATTERNS
    # =========================================================================

    def _group_by_time_of_day(self, ordered: Sequence[HealthMetric]) -> Dict[str, List[float]]:
        groups: Dict[str, List[float]] = defaultdict(list)
        for metric in ordered:
            hour = from_epoch_seconds(metric.timestamp, tz=self.timezone).hour
            groups[time_of_day(hour)].append(metric.value)
        return groups

    def recognize_patterns(self, metrics: Sequence[HealthMetric]) -> List[HealthPattern]:
        if len(metrics) < 3:
            return []

        ordered = sort_by_timestamp(metrics)
        patterns: List[HealthPattern] = []

        groups = self._group_by_time_of_day(ordered)
        for bucket in ("morning", "afternoon", "evening", "night"):
            values = groups.get(bucket)
            if not values:
                continue
            average = statistics.fmean(values)
            patterns.append(HealthPattern(
                type="DAILY",
                description=f"Typical {bucket} value: {average:.1f}",
                significance=Significance.HIGH if len(values) >= 3 else Significance.MEDIUM,
                frequency=len(values),
                details={"time_of_day": bucket, "average": round(average, 2)},
            ))

        low = min(m.value for m in ordered)
        high = max(m.value for m in ordered)
        width = high - low
        if width > WIDE_RANGE:
            significance = Significance.HIGH
        elif width > MODERATE_RANGE:
            significance = Significance.MEDIUM
        else:
            significance = Significance.LOW
        patterns.append(HealthPattern(
            type="RANGE",
            description=f"Values typically between {low:.1f} and {high:.1f}",
            significance=significance,
            frequency=len(ordered),
            details={"min": low, "max": high},
        ))

        return patterns

    # =========================================================================
    # RECOMMENDATIONS
    # =========================================================================

    def generate_recommendations(
        self,
        metrics: Sequence[HealthMetric],
        patterns: Sequence[HealthPattern],
    ) -> List[HealthRecommendation]:
        recommendations: List[HealthRecommendation] = []
        if not metrics:
            return recommendations

        ordered = sort_by_timestamp(metrics)
        latest = ordered[-1]
        definition = find_metric(latest.type)
        if definition is not None:
            if definition.is_high(latest.value):
                recommendations.append(HealthRecommendation(
                    type="LIFESTYLE",
                    priority=Priority.HIGH,
                    description=f"Consider lifestyle changes to lower your {definition.display_name.lower()}",
                    details={"reason": f"Your {definition.display_name.lower()} is above the normal range"},
                ))
            elif definition.is_low(latest.value):
                recommendations.append(HealthRecommendation(
                    type="CONSULTATION",
                    priority=Priority.HIGH,
                    description=f"Consult with your healthcare provider about your {definition.display_name.lower()}",
                    details={"reason": f"Your {definition.display_name.lower()} is below the normal range"},
                ))

        for pattern in patterns:
            if pattern.significance == Significance.HIGH:
                recommendations.append(HealthRecommendation(
                    type="PATTERN",
                    priority=Priority.MEDIUM,
                    description=f"Monitor your {pattern.type.lower()} pattern closely",
                    details={"reason": pattern.description},
                ))

        trend = self.analyze_trend(ordered)
        if trend.direction != TrendDirection.STABLE:
            recommendations.append(HealthRecommendation(
                type="TREND",
                priority=Priority.MEDIUM if trend.direction == TrendDirection.INCREASING else Priority.LOW,
                description="Keep tracking your measurements regularly",
                details={"reason": f"Your values show a {trend.direction.value} trend"},
            ))

        return recommendations

    def analyze(self, metrics: Sequence[HealthMetric]) -> List[AnalyticsReport]:
        """One report per metric type; types are grouped by normalized name."""
        groups: Dict[str, List[HealthMetric]] = {}
        for metric in metrics:
            definition = find_metric(metric.type)
            key = definition.canonical_name if definition else normalize_metric_name(metric.type)
            groups.setdefault(key, []).append(metric)

        logger.debug(f"Value analysis over {len(metrics)} metrics in {len(groups)} groups")
        return [self.build_report(metric_type, group) for metric_type, group in groups.items()]
