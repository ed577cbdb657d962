"""
Base class for analytics strategies.

A strategy turns a list of HealthMetric records into a trend, alerts,
patterns and recommendations. Every operation is total: empty or short
input yields neutral or empty output, never an exception.
"""
import math
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Sequence

from core.datetime_utils import SECONDS_PER_DAY
from services.analytics.models import (
    AnalyticsReport,
    HealthAlert,
    HealthMetric,
    HealthPattern,
    HealthRecommendation,
    TrendAnalysis,
)


def sort_by_timestamp(metrics: Sequence[HealthMetric]) -> List[HealthMetric]:
    """Stable ascending sort by timestamp."""
    return sorted(metrics, key=lambda m: m.timestamp)


def elapsed_days(ordered: Sequence[HealthMetric]) -> int:
    """Whole days spanned by ``ordered``, rounded up, never less than 1."""
    if len(ordered) < 2:
        return 1
    span = ordered[-1].timestamp - ordered[0].timestamp
    return max(1, math.ceil(span / SECONDS_PER_DAY))


class AnalyticsStrategy(ABC):
    """
    Common pipeline for metric analysis.

    Args:
        clock: Returns the current time in epoch seconds; used for alert
            timestamps and recency checks.
    """

    name: str = ""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    @abstractmethod
    def analyze_trend(self, metrics: Sequence[HealthMetric]) -> TrendAnalysis:
        ...

    @abstractmethod
    def check_for_alerts(self, metrics: Sequence[HealthMetric], trend: TrendAnalysis) -> List[HealthAlert]:
        ...

    @abstractmethod
    def recognize_patterns(self, metrics: Sequence[HealthMetric]) -> List[HealthPattern]:
        ...

    @abstractmethod
    def generate_recommendations(
        self,
        metrics: Sequence[HealthMetric],
        patterns: Sequence[HealthPattern],
    ) -> List[HealthRecommendation]:
        ...

    @abstractmethod
    def analyze(self, metrics: Sequence[HealthMetric]) -> List[AnalyticsReport]:
        """Produce one or more reports for ``metrics``."""

    def build_report(self, metric_type, metrics: Sequence[HealthMetric]) -> AnalyticsReport:
        """Run the full pipeline over one group of metrics."""
        trend = self.analyze_trend(metrics)
        patterns = self.recognize_patterns(metrics)
        return AnalyticsReport(
            metric_type=metric_type,
            trend=trend,
            alerts=self.check_for_alerts(metrics, trend),
            patterns=patterns,
            recommendations=self.generate_recommendations(metrics, patterns),
        )
