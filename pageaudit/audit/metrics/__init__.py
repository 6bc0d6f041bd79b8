"""Metric provider registry and the built-in observed-trace strategies."""

from .base import (
    ALL_THROTTLING_METHODS,
    MetricInputs,
    MetricRegistry,
    MetricStrategy,
)
from .interactivity import (
    EstimatedInputLatency,
    FirstCpuIdle,
    Interactive,
    MaxPotentialFid,
    TotalBlockingTime,
    find_quiet_window,
    network_busy_periods,
    risk_to_responsiveness,
)
from .layout import CumulativeLayoutShift
from .paint import (
    FirstContentfulPaint,
    FirstMeaningfulPaint,
    LargestContentfulPaint,
    SpeedIndex,
    speed_index,
)


DEFAULT_STRATEGIES = (
    FirstContentfulPaint,
    FirstCpuIdle,
    Interactive,
    FirstMeaningfulPaint,
    MaxPotentialFid,
    EstimatedInputLatency,
    TotalBlockingTime,
    SpeedIndex,
    LargestContentfulPaint,
    CumulativeLayoutShift,
)


def create_metric_registry() -> MetricRegistry:
    """Registry with one built-in strategy per metric."""
    registry = MetricRegistry()
    for strategy_class in DEFAULT_STRATEGIES:
        registry.register(strategy_class())
    return registry


# Shared registry used by the audits
metric_registry = create_metric_registry()


__all__ = [
    "ALL_THROTTLING_METHODS",
    "MetricInputs",
    "MetricRegistry",
    "MetricStrategy",
    "DEFAULT_STRATEGIES",
    "create_metric_registry",
    "metric_registry",

    # Strategies
    "CumulativeLayoutShift",
    "EstimatedInputLatency",
    "FirstContentfulPaint",
    "FirstCpuIdle",
    "FirstMeaningfulPaint",
    "Interactive",
    "LargestContentfulPaint",
    "MaxPotentialFid",
    "SpeedIndex",
    "TotalBlockingTime",

    # Algorithms
    "find_quiet_window",
    "network_busy_periods",
    "risk_to_responsiveness",
    "speed_index",
]
