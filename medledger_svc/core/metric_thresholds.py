"""
Metric threshold registry - single source of truth for alert thresholds.

This module provides:
- YAML-based loading and validation of ``metric_thresholds.yaml``
- MetricDefinition dataclass with ``is_high`` / ``is_low`` checks
- Normalized lookup by canonical name or alias (no fuzzy matching)

Usage:
    from core.metric_thresholds import find_metric, list_metrics

    definition = find_metric("Blood Pressure Systolic")  # None if unknown
    if definition and definition.is_high(150):
        ...
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricDefinition:
    """
    Immutable threshold definition for a health metric.

    Attributes:
        canonical_name: Primary identifier (snake_case)
        display_name: Human-readable name
        unit: Measurement unit (e.g., "mmHg")
        low: Values strictly below this are low
        high: Values strictly above this are high
        aliases: Alternative names that resolve to this metric
    """
    canonical_name: str
    display_name: str
    unit: str
    low: float
    high: float
    aliases: Tuple[str, ...]

    def is_high(self, value: float) -> bool:
        return value > self.high

    def is_low(self, value: float) -> bool:
        return value < self.low


# =============================================================================
# YAML CONFIGURATION LOADING & VALIDATION
# =============================================================================

def _get_config_path() -> Path:
    """Get the path to the thresholds configuration file."""
    return Path(__file__).parent / "metric_thresholds.yaml"


def _load_yaml_config() -> Dict[str, Any]:
    """
    Load and parse the YAML configuration file.

    Raises:
        FileNotFoundError: If the file is not found
        yaml.YAMLError: If YAML parsing fails
    """
    config_path = _get_config_path()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error("Metric thresholds file not found", extra={"path": str(config_path)})
        raise
    except yaml.YAMLError as e:
        logger.error("Failed to parse metric thresholds", extra={"path": str(config_path), "error": str(e)})
        raise


def _validate_metric_entry(raw: Dict[str, Any], index: int) -> None:
    """
    Validate a single metric entry from YAML.

    Raises:
        ValueError: If required fields are missing or thresholds are inconsistent
    """
    for field in ("canonical_name", "low", "high"):
        if field not in raw:
            raise ValueError(f"Metric at index {index} is missing required field: '{field}'")

    try:
        low = float(raw["low"])
        high = float(raw["high"])
    except (TypeError, ValueError):
        raise ValueError(f"Metric '{raw['canonical_name']}' has non-numeric thresholds")

    if low > high:
        raise ValueError(f"Metric '{raw['canonical_name']}' has low threshold above high threshold")


def _parse_metric_entry(raw: Dict[str, Any]) -> MetricDefinition:
    """Parse a single metric entry from YAML into a MetricDefinition."""
    canonical_name = raw["canonical_name"]
    return MetricDefinition(
        canonical_name=canonical_name,
        display_name=raw.get("display_name", canonical_name.replace("_", " ").title()),
        unit=raw.get("unit", ""),
        low=float(raw["low"]),
        high=float(raw["high"]),
        aliases=tuple(raw.get("aliases") or ()),
    )


@lru_cache(maxsize=1)
def _load_registry() -> Tuple[MetricDefinition, ...]:
    """Load and cache all metric definitions. The YAML file is read once."""
    config = _load_yaml_config()
    definitions: List[MetricDefinition] = []
    for i, raw in enumerate(config.get("metrics", [])):
        _validate_metric_entry(raw, i)
        definitions.append(_parse_metric_entry(raw))
    return tuple(definitions)


# =============================================================================
# NORMALIZATION & LOOKUP
# =============================================================================

def normalize_metric_name(name: str) -> str:
    """
    Normalize a metric name for consistent lookup.

    Rules:
    - Lowercase, strip
    - Treat underscores and hyphens as spaces
    - Remove remaining non-alphanumeric chars except spaces
    - Collapse whitespace

    Example:
        >>> normalize_metric_name("Blood_Pressure-Systolic ")
        'blood pressure systolic'
    """
    if not name:
        return ""
    normalized = name.lower().strip()
    normalized = re.sub(r"[_\-]", " ", normalized)
    normalized = re.sub(r"[^a-z0-9\s]", "", normalized)
    normalized = re.sub(r"\s+", " ", normalized)
    return normalized.strip()


@lru_cache(maxsize=1)
def _build_metric_lookup() -> Dict[str, MetricDefinition]:
    """Build a normalized lookup map from all canonical names and aliases."""
    lookup: Dict[str, MetricDefinition] = {}
    for metric in _load_registry():
        key = normalize_metric_name(metric.canonical_name)
        if key in lookup:
            logger.warning(
                "Duplicate metric key detected",
                extra={"key": key, "existing": lookup[key].canonical_name}
            )
        lookup[key] = metric

        for alias in metric.aliases:
            alias_key = normalize_metric_name(alias)
            if alias_key and alias_key not in lookup:
                lookup[alias_key] = metric
            elif alias_key in lookup and lookup[alias_key] != metric:
                logger.warning(
                    "Alias collision detected",
                    extra={"alias": alias_key, "existing": lookup[alias_key].canonical_name}
                )
    return lookup


def find_metric(metric_name: str) -> Optional[MetricDefinition]:
    """
    Look up a metric definition by canonical name or alias.

    Returns:
        The definition, or None for metric types without thresholds.
    """
    return _build_metric_lookup().get(normalize_metric_name(metric_name))


def get_metric(metric_name: str) -> MetricDefinition:
    """
    Get metric definition by name.

    Raises:
        KeyError: If the metric is not in the registry
    """
    metric = find_metric(metric_name)
    if metric is None:
        raise KeyError(f"Unknown metric: '{metric_name}'")
    return metric


def list_metrics() -> Dict[str, MetricDefinition]:
    """Map canonical metric names to their definitions."""
    return {m.canonical_name: m for m in _load_registry()}
