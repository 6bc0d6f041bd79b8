"""Paint milestone metrics: FCP, FMP, LCP and Speed Index."""

import logging
from typing import List, Optional

from ..computed.processed_trace import PaintSample, ProcessedTraceArtifact
from ..models.budget import MetricId
from ..models.results import Measurement
from .base import MetricInputs, MetricStrategy


logger = logging.getLogger(__name__)


class FirstContentfulPaint(MetricStrategy):
    metric_id = MetricId.FIRST_CONTENTFUL_PAINT

    async def compute(self, inputs: MetricInputs, context, registry) -> Optional[Measurement]:
        processed = await ProcessedTraceArtifact.request(inputs.trace, context=context)
        return self.scalar(processed.first_contentful_paint)


class FirstMeaningfulPaint(MetricStrategy):
    """First meaningful paint, falling back to the last FMP candidate."""

    metric_id = MetricId.FIRST_MEANINGFUL_PAINT

    async def compute(self, inputs: MetricInputs, context, registry) -> Optional[Measurement]:
        processed = await ProcessedTraceArtifact.request(inputs.trace, context=context)
        return self.scalar(processed.first_meaningful_paint)


class LargestContentfulPaint(MetricStrategy):
    """Last LCP candidate; not computable when the trace has none or it was invalidated."""

    metric_id = MetricId.LARGEST_CONTENTFUL_PAINT

    async def compute(self, inputs: MetricInputs, context, registry) -> Optional[Measurement]:
        processed = await ProcessedTraceArtifact.request(inputs.trace, context=context)
        if processed.largest_contentful_paint is None:
            logger.warning("Trace has no valid largest contentful paint candidate")
        return self.scalar(processed.largest_contentful_paint)


def speed_index(paints: List[PaintSample]) -> Optional[float]:
    """Area under the visual-incompleteness curve.

    Visual progress at each paint is the share of total painted area so far;
    ``SI = sum((1 - progress_before) * elapsed)`` up to the final paint.
    """
    if not paints:
        return None
    total_area = sum(p.area for p in paints)
    if total_area <= 0:
        return None

    result = 0.0
    previous_time = 0.0
    progress = 0.0
    painted = 0.0
    for paint in sorted(paints, key=lambda p: p.time):
        result += (1 - progress) * (paint.time - previous_time)
        painted += paint.area
        progress = painted / total_area
        previous_time = paint.time
    return result


class SpeedIndex(MetricStrategy):
    metric_id = MetricId.SPEED_INDEX

    async def compute(self, inputs: MetricInputs, context, registry) -> Optional[Measurement]:
        processed = await ProcessedTraceArtifact.request(inputs.trace, context=context)
        return self.scalar(speed_index(processed.paints))
