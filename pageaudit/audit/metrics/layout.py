"""Cumulative layout shift."""

from typing import Optional

from ..computed.processed_trace import ProcessedTraceArtifact
from ..models.budget import MetricId
from ..models.results import Measurement, StructuredMeasurement
from .base import MetricInputs, MetricStrategy


class CumulativeLayoutShift(MetricStrategy):
    """Sum of layout shift scores not caused by recent user input."""

    metric_id = MetricId.CUMULATIVE_LAYOUT_SHIFT

    async def compute(self, inputs: MetricInputs, context, registry) -> Optional[Measurement]:
        processed = await ProcessedTraceArtifact.request(inputs.trace, context=context)
        shifts = [s for s in processed.layout_shifts if not s.had_recent_input]
        return StructuredMeasurement(
            value=sum(s.score for s in shifts),
            details={"shiftCount": len(shifts)}
        )
