"""
Value types for metric analytics.

All types are immutable; strategies build them and never mutate them.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Patterns and recommendations share the same three-level scale
Significance = Severity
Priority = Severity


def parse_diagnosis(notes: Optional[str]) -> Optional[str]:
    """
    Extract a diagnosis name from notes following ``"Diagnosis: <name>, ..."``.

    Only the first comma-delimited segment is considered. It must split on
    ``:`` into exactly two parts, the key must be ``diagnosis`` (any case)
    and the name must be non-empty after stripping.

    Example:
        >>> parse_diagnosis("Diagnosis: Hypertension, follow up in 2 weeks")
        'Hypertension'
        >>> parse_diagnosis("BP check") is None
        True
    """
    if not notes:
        return None
    first_segment = notes.split(",", 1)[0]
    parts = first_segment.split(":")
    if len(parts) != 2:
        return None
    key, name = parts[0].strip(), parts[1].strip()
    if key.lower() != "diagnosis" or not name:
        return None
    return name


@dataclass(frozen=True)
class HealthMetric:
    """
    One observation or prescription record.

    Attributes:
        type: Metric type, e.g. "blood_pressure_systolic" or "prescription"
        value: Numeric reading
        timestamp: Epoch seconds
        notes: Free text
        hospital: Issuing hospital, if any
        diagnosis: Structured diagnosis; derived from notes when not given
    """
    type: str
    value: float
    timestamp: int
    notes: str = ""
    hospital: Optional[str] = None
    diagnosis: Optional[str] = None

    @classmethod
    def create(
        cls,
        type: str,
        value: float,
        timestamp: int,
        notes: str = "",
        hospital: Optional[str] = None,
        diagnosis: Optional[str] = None,
    ) -> "HealthMetric":
        """Build a metric, deriving ``diagnosis`` from ``notes`` when absent."""
        if diagnosis is not None:
            diagnosis = diagnosis.strip() or None
        if diagnosis is None:
            diagnosis = parse_diagnosis(notes)
        return cls(
            type=type,
            value=float(value),
            timestamp=int(timestamp),
            notes=notes or "",
            hospital=hospital,
            diagnosis=diagnosis,
        )


@dataclass(frozen=True)
class TrendAnalysis:
    direction: TrendDirection = TrendDirection.STABLE
    rate_per_day: float = 0.0
    recent_value: float = 0.0
    average_value: float = 0.0
    volatility: float = 0.0
    sample_count: int = 0

    @property
    def rate_of_change(self) -> str:
        """Human-readable rate, e.g. ``"1.50 per day"``."""
        return f"{self.rate_per_day:.2f} per day"

    @classmethod
    def neutral(cls) -> "TrendAnalysis":
        return cls()


@dataclass(frozen=True)
class HealthAlert:
    type: str
    severity: Severity
    message: str
    timestamp: int


@dataclass(frozen=True)
class HealthPattern:
    type: str
    description: str
    significance: Significance
    frequency: int
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class HealthRecommendation:
    type: str
    priority: Priority
    description: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalyticsReport:
    """Full analysis of one metric group."""
    metric_type: Optional[str]
    trend: TrendAnalysis
    alerts: List[HealthAlert] = field(default_factory=list)
    patterns: List[HealthPattern] = field(default_factory=list)
    recommendations: List[HealthRecommendation] = field(default_factory=list)
