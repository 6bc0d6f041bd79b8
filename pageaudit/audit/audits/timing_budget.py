"""Timing budget audit.

Compares the page's timing metrics against the budget that applies to its
path. The result is informational: it carries a table of metrics sorted by
how far they exceed their budget, but no score.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from ..budgets.selector import select_budget, url_path
from ..context import RunContext
from ..errors import MissingArtifactError
from ..metrics import MetricInputs, MetricRegistry, metric_registry
from ..models.artifacts import Artifacts, DevtoolsLog, Trace
from ..models.budget import Budget, MetricId, ThrottlingMethod
from ..models.results import (
    AuditResult,
    Heading,
    HeadingType,
    Measurement,
    ScoreDisplayMode,
    TableDetails,
)
from .base import Audit, AuditMeta, register_audit


logger = logging.getLogger(__name__)


class TimingBudgetItem(BaseModel):
    """One row of the timing budget table."""

    model_config = ConfigDict(populate_by_name=True)

    metric: MetricId
    label: str
    measurement: Optional[Measurement] = None
    over_budget: Optional[float] = Field(default=None, alias="overBudget")

    @field_serializer('measurement')
    def serialize_measurement(self, measurement):
        # The renderer expects a bare number, or the structured CLS object.
        return measurement.report_value() if measurement is not None else None


def over_budget(measurement: Optional[Measurement], limit: float) -> Optional[float]:
    """Amount by which a measurement exceeds its limit, None when within it."""
    if measurement is None:
        return None
    overage = measurement.numeric_value - limit
    return overage if overage > 0 else None


def sort_by_overage(items: Sequence[TimingBudgetItem]) -> List[TimingBudgetItem]:
    """Descending by overage, rows without overage last, ties in input order."""
    return sorted(
        items,
        key=lambda item: (item.over_budget is not None, item.over_budget or 0),
        reverse=True
    )


@register_audit
class TimingBudgetAudit(Audit):
    """Timing metrics measured against the matching budget."""

    meta = AuditMeta(
        id="timing-budget",
        title="Timing budget",
        description="Keep timing metrics under the thresholds set by a performance budget.",
        score_display_mode=ScoreDisplayMode.INFORMATIVE
    )

    HEADINGS = [
        Heading(key="label", item_type=HeadingType.TEXT, text="Metric"),
        Heading(key="measurement", item_type=HeadingType.MS, text="Measurement"),
        Heading(key="overBudget", item_type=HeadingType.MS, text="Over Budget"),
    ]

    def __init__(self, registry: Optional[MetricRegistry] = None):
        self.registry = registry or metric_registry

    async def audit(self, artifacts: Artifacts, context: RunContext) -> AuditResult:
        if artifacts.url is None:
            raise MissingArtifactError("URL")

        page_path = url_path(artifacts.url.page_url)
        budget = select_budget(context.settings.budgets, page_path)
        if budget is None:
            logger.info(f"No timing budget applies to {page_path}")
            return AuditResult.not_applicable_result()

        if budget.timings is None:
            logger.info(f"Budget for {budget.path} has no timings")
            return AuditResult.not_applicable_result()

        trace = self.get_pass_artifact(artifacts.traces, "trace")
        devtools_log = self.get_pass_artifact(artifacts.devtools_logs, "devtoolsLog")
        return await self.evaluate(budget, trace, devtools_log, context.settings.throttling_method, context)

    async def evaluate(self, budget: Budget, trace: Trace, devtools_log: DevtoolsLog,
                       throttling_method: ThrottlingMethod, context: RunContext) -> AuditResult:
        """Build the budget table for an already selected budget."""
        inputs = MetricInputs(trace, devtools_log, ThrottlingMethod(throttling_method))
        timings = budget.timings or []

        # Resolve every measurement first; rows are then built in one synchronous step.
        measurements = await asyncio.gather(*(
            self.registry.request(timing.metric, inputs, context)
            for timing in timings
        ))

        items = []
        for timing, measurement in zip(timings, measurements):
            if measurement is None:
                logger.warning(f"{timing.metric.value} could not be computed; row has no measurement")
            items.append(TimingBudgetItem(
                metric=timing.metric,
                label=timing.metric.label,
                measurement=measurement,
                over_budget=over_budget(measurement, timing.budget)
            ))

        return AuditResult(
            score=None,
            score_display_mode=ScoreDisplayMode.INFORMATIVE,
            details=TableDetails(headings=list(self.HEADINGS), items=sort_by_overage(items))
        )
