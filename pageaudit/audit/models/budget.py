"""Budget and run settings models.

Budgets follow the ``budget.json`` shape: a list of entries, each scoped to a
URL path pattern and carrying per-metric timing ceilings in milliseconds
(CLS is unitless).
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MetricId(str, Enum):
    """Timing metrics that can carry a budget."""
    FIRST_CONTENTFUL_PAINT = "first-contentful-paint"
    FIRST_CPU_IDLE = "first-cpu-idle"
    INTERACTIVE = "interactive"
    FIRST_MEANINGFUL_PAINT = "first-meaningful-paint"
    MAX_POTENTIAL_FID = "max-potential-fid"
    ESTIMATED_INPUT_LATENCY = "estimated-input-latency"
    TOTAL_BLOCKING_TIME = "total-blocking-time"
    SPEED_INDEX = "speed-index"
    LARGEST_CONTENTFUL_PAINT = "largest-contentful-paint"
    CUMULATIVE_LAYOUT_SHIFT = "cumulative-layout-shift"

    @property
    def label(self) -> str:
        """Human-readable metric name."""
        return METRIC_LABELS[self]


METRIC_LABELS = {
    MetricId.FIRST_CONTENTFUL_PAINT: "First Contentful Paint",
    MetricId.FIRST_CPU_IDLE: "First CPU Idle",
    MetricId.INTERACTIVE: "Time to Interactive",
    MetricId.FIRST_MEANINGFUL_PAINT: "First Meaningful Paint",
    MetricId.MAX_POTENTIAL_FID: "Max Potential First Input Delay",
    MetricId.ESTIMATED_INPUT_LATENCY: "Estimated Input Latency",
    MetricId.TOTAL_BLOCKING_TIME: "Total Blocking Time",
    MetricId.SPEED_INDEX: "Speed Index",
    MetricId.LARGEST_CONTENTFUL_PAINT: "Largest Contentful Paint",
    MetricId.CUMULATIVE_LAYOUT_SHIFT: "Cumulative Layout Shift",
}


class ThrottlingMethod(str, Enum):
    """Where metric values come from."""
    DEVTOOLS = "devtools"   # Observed under DevTools throttling
    PROVIDED = "provided"   # Observed with externally provided conditions


class TimingBudget(BaseModel):
    """Ceiling for a single metric."""

    metric: MetricId = Field(description="Metric the budget applies to")
    budget: float = Field(ge=0, description="Ceiling in milliseconds (unitless for CLS)")


class Budget(BaseModel):
    """Timing budgets for pages whose path matches ``path``."""

    path: str = Field(default="/", description="URL path pattern (prefix, '*' and trailing '$' supported)")
    timings: Optional[List[TimingBudget]] = Field(
        default=None,
        description="Metric ceilings; None when the entry only budgets resources"
    )

    @field_validator('path')
    @classmethod
    def validate_path(cls, v):
        """Validate the path pattern syntax."""
        if not v.startswith('/'):
            raise ValueError(f"Invalid budget path '{v}': path must start with '/'")
        if v.count('*') > 1:
            raise ValueError(f"Invalid budget path '{v}': path can only contain one '*'")
        if v.count('$') > 1:
            raise ValueError(f"Invalid budget path '{v}': path can only contain one '$'")
        if '$' in v and not v.endswith('$'):
            raise ValueError(f"Invalid budget path '{v}': '$' must be at the end of the path")
        return v

    @field_validator('timings')
    @classmethod
    def validate_unique_metrics(cls, v):
        """Each metric may only be budgeted once per entry."""
        if v is None:
            return v
        seen = set()
        for timing in v:
            if timing.metric in seen:
                raise ValueError(f"Budget has duplicate entry for metric '{timing.metric.value}'")
            seen.add(timing.metric)
        return v


class Settings(BaseModel):
    """Run settings consumed by the audits."""

    model_config = ConfigDict(populate_by_name=True)

    throttling_method: ThrottlingMethod = Field(
        default=ThrottlingMethod.DEVTOOLS,
        alias="throttlingMethod",
        description="Selects the metric strategy family"
    )
    budgets: Optional[List[Budget]] = Field(
        default=None,
        description="Configured budgets; None disables budget audits"
    )
