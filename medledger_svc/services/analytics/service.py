"""
Strategy selection for metric analytics.
"""
import logging
import time
from datetime import tzinfo
from typing import Callable, Dict, List, Optional, Sequence

from core.exceptions import UnknownStrategyError
from services.analytics.base import AnalyticsStrategy
from services.analytics.frequency_strategy import FrequencyStrategy
from services.analytics.models import AnalyticsReport, HealthMetric
from services.analytics.value_strategy import ValueThresholdStrategy

logger = logging.getLogger(__name__)


class AnalyticsService:
    """
    Runs a named analytics strategy over a batch of metrics.

    Stateless apart from its configuration; safe to share between requests.
    """

    def __init__(self, timezone: Optional[tzinfo] = None, clock: Callable[[], float] = time.time):
        self._strategies: Dict[str, AnalyticsStrategy] = {
            ValueThresholdStrategy.name: ValueThresholdStrategy(timezone=timezone, clock=clock),
            FrequencyStrategy.name: FrequencyStrategy(clock=clock),
        }

    @property
    def strategy_names(self) -> List[str]:
        return sorted(self._strategies)

    def get_strategy(self, name: str) -> AnalyticsStrategy:
        """
        Raises:
            UnknownStrategyError: If ``name`` is not a registered strategy.
        """
        strategy = self._strategies.get((name or "").lower())
        if strategy is None:
            raise UnknownStrategyError(name)
        return strategy

    def analyze(self, metrics: Sequence[HealthMetric], strategy_name: str) -> List[AnalyticsReport]:
        strategy = self.get_strategy(strategy_name)
        reports = strategy.analyze(metrics)
        logger.info(
            "Analytics computed",
            extra={"strategy": strategy.name, "metric_count": len(metrics), "report_count": len(reports)},
        )
        return reports
