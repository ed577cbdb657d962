"""
Frequency analytics for prescription records.

Treats each record as an event and reasons about how often events occur,
grouped by the structured diagnosis attached to each record.
"""
from typing import Dict, List, Sequence

from core.datetime_utils import SECONDS_PER_DAY, format_date, from_epoch_seconds
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

INCREASING_RATE = 1.0  # events per day
DECREASING_RATE = 0.5
HIGH_COUNT = 5
RECENT_WINDOW_DAYS = 7
RECENT_COUNT = 3
FREQUENT_DIAGNOSIS = 3


def group_by_diagnosis(metrics: Sequence[HealthMetric]) -> Dict[str, List[HealthMetric]]:
    """Group records by diagnosis in first-seen order; records without one are skipped."""
    groups: Dict[str, List[HealthMetric]] = {}
    for metric in metrics:
        if metric.diagnosis:
            groups.setdefault(metric.diagnosis, []).append(metric)
    return groups


class FrequencyStrategy(AnalyticsStrategy):
    """Event-count analysis over prescription history."""

    name = "frequency"

    def analyze_trend(self, metrics: Sequence[HealthMetric]) -> TrendAnalysis:
        if not metrics:
            return TrendAnalysis.neutral()

        ordered = sort_by_timestamp(metrics)
        rate = len(ordered) / elapsed_days(ordered)

        if rate > INCREASING_RATE:
            direction = TrendDirection.INCREASING
        elif rate < DECREASING_RATE:
            direction = TrendDirection.DECREASING
        else:
            direction = TrendDirection.STABLE

        return TrendAnalysis(
            direction=direction,
            rate_per_day=rate,
            recent_value=float(len(ordered)),
            average_value=rate,
            sample_count=len(ordered),
        )

    def check_for_alerts(self, metrics: Sequence[HealthMetric], trend: TrendAnalysis) -> List[HealthAlert]:
        alerts: List[HealthAlert] = []
        if not metrics:
            return alerts

        now = self.now()
        count = len(metrics)
        if count > HIGH_COUNT:
            alerts.append(HealthAlert(
                type="HIGH_PRESCRIPTION_COUNT",
                severity=Severity.MEDIUM,
                message=f"You have {count} prescriptions recorded. Consider reviewing your medication regimen.",
                timestamp=now,
            ))

        window = RECENT_WINDOW_DAYS * SECONDS_PER_DAY
        recent = sum(1 for m in metrics if abs(now - m.timestamp) <= window)
        if recent >= RECENT_COUNT:
            alerts.append(HealthAlert(
                type="FREQUENT_RECENT_PRESCRIPTIONS",
                severity=Severity.HIGH,
                message=f"You have {recent} prescriptions in the last {RECENT_WINDOW_DAYS} days. Please consult your doctor.",
                timestamp=now,
            ))

        return alerts

    def recognize_patterns(self, metrics: Sequence[HealthMetric]) -> List[HealthPattern]:
        if len(metrics) < 3:
            return []

        patterns: List[HealthPattern] = []
        for diagnosis, records in group_by_diagnosis(metrics).items():
            if len(records) < 2:
                continue
            last_prescribed = format_date(from_epoch_seconds(max(r.timestamp for r in records)))
            patterns.append(HealthPattern(
                type="PRESCRIPTION",
                description=f"{diagnosis}: {len(records)} prescriptions",
                significance=Significance.HIGH if len(records) > FREQUENT_DIAGNOSIS else Significance.MEDIUM,
                frequency=len(records),
                details={"diagnosis": diagnosis, "last_prescribed": last_prescribed},
            ))
        return patterns

    def generate_recommendations(
        self,
        metrics: Sequence[HealthMetric],
        patterns: Sequence[HealthPattern],
    ) -> List[HealthRecommendation]:
        recommendations: List[HealthRecommendation] = []
        if not metrics:
            return recommendations

        days = elapsed_days(sort_by_timestamp(metrics))
        for diagnosis, records in group_by_diagnosis(metrics).items():
            count = len(records)
            per_day = count / days
            recommendations.append(HealthRecommendation(
                type="PRESCRIPTION_MANAGEMENT",
                priority=Priority.HIGH if count > FREQUENT_DIAGNOSIS else Priority.MEDIUM,
                description=f"Monitor {diagnosis} treatment closely",
                details={
                    "diagnosis": diagnosis,
                    "prescriptions": count,
                    "days": days,
                    "per_day": round(per_day, 2),
                    "summary": (
                        f"You have {count} prescriptions over {days} days. "
                        f"Average of {per_day:.2f} prescriptions per day for this condition."
                    ),
                },
            ))

        recommendations.append(HealthRecommendation(
            type="GENERAL_HEALTH",
            priority=Priority.MEDIUM,
            description="Regular health check-ups",
            details={"summary": "Consider scheduling regular health check-ups to monitor your overall health status."},
        ))
        return recommendations

    def analyze(self, metrics: Sequence[HealthMetric]) -> List[AnalyticsReport]:
        """A single report over all records."""
        return [self.build_report(None, metrics)]
