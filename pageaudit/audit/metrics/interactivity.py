"""Main-thread responsiveness metrics.

Time to Interactive, First CPU Idle, Total Blocking Time, Max Potential FID
and Estimated Input Latency, all derived from the top-level main-thread tasks
of the processed trace. TTI additionally requires the network to be quiet.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..computed.network_records import NetworkRecords
from ..computed.processed_trace import ProcessedTrace, ProcessedTraceArtifact, TaskSpan
from ..models.artifacts import NetworkRecord
from ..models.budget import MetricId
from ..models.results import Measurement
from .base import MetricInputs, MetricStrategy


logger = logging.getLogger(__name__)


LONG_TASK_THRESHOLD_MS = 50
QUIET_WINDOW_MS = 5000
ALLOWED_CONCURRENT_REQUESTS = 2
BASE_RESPONSE_LATENCY_MS = 16
INPUT_LATENCY_PERCENTILE = 0.9


@dataclass(frozen=True)
class BusyPeriod:
    """Span during which more requests than allowed were in flight."""
    start: float
    end: float


def network_busy_periods(records: Iterable[NetworkRecord], processed: ProcessedTrace,
                         allowed: int = ALLOWED_CONCURRENT_REQUESTS) -> List[BusyPeriod]:
    """Find spans with more than ``allowed`` requests in flight.

    Unfinished requests count as in flight until the end of the trace.
    """
    boundaries = []
    for record in records:
        if record.start_time is None:
            continue
        start = processed.protocol_time_ms(record.start_time)
        end = processed.protocol_time_ms(record.end_time) if record.end_time is not None else processed.trace_end
        boundaries.append((start, 1))
        boundaries.append((max(end, start), -1))

    # Ends sort before starts at the same instant.
    boundaries.sort(key=lambda b: (b[0], b[1]))

    periods = []
    in_flight = 0
    busy_start = None
    for time, delta in boundaries:
        in_flight += delta
        if in_flight > allowed and busy_start is None:
            busy_start = time
        elif in_flight <= allowed and busy_start is not None:
            periods.append(BusyPeriod(busy_start, time))
            busy_start = None
    if busy_start is not None:
        periods.append(BusyPeriod(busy_start, processed.trace_end))
    return periods


def long_tasks(tasks: Iterable[TaskSpan]) -> List[TaskSpan]:
    return sorted((t for t in tasks if t.duration > LONG_TASK_THRESHOLD_MS), key=lambda t: t.start)


def find_quiet_window(tasks: Sequence[TaskSpan], start: float, trace_end: float,
                      busy_periods: Sequence[BusyPeriod] = (),
                      window_ms: float = QUIET_WINDOW_MS) -> Optional[float]:
    """Start of the first window of ``window_ms`` after ``start`` free of long
    tasks and network busy periods, or None if the trace ends first.
    """
    candidate = start
    while True:
        window_end = candidate + window_ms
        if window_end > trace_end:
            return None

        blocking = next((t for t in tasks if t.end > candidate and t.start < window_end), None)
        if blocking is not None:
            candidate = max(candidate, blocking.end)
            continue

        busy = next((p for p in busy_periods if p.end > candidate and p.start < window_end), None)
        if busy is not None:
            candidate = max(candidate, busy.end)
            continue

        return candidate


def _interactive_time(tasks: Sequence[TaskSpan], lower_bound: float, window_start: float,
                      floor: Iterable[Optional[float]] = ()) -> float:
    # The end of the last long task before the quiet window, never before the bounds.
    ends = [t.end for t in tasks if t.end <= window_start]
    candidates = ends + [lower_bound] + [f for f in floor if f is not None]
    return max(candidates)


def risk_to_responsiveness(durations: Iterable[float], total_time: float,
                           percentile: float = INPUT_LATENCY_PERCENTILE) -> float:
    """Queueing delay an input would see at ``percentile`` of ``total_time``.

    An input landing inside a task of duration ``d`` waits uniformly between
    0 and ``d``; an input landing in idle time does not wait. Solves
    ``idle + sum(min(w, d_i)) = percentile * total_time`` for ``w``.
    """
    if total_time <= 0:
        return 0.0
    ordered = sorted(d for d in durations if d > 0)
    idle = max(total_time - sum(ordered), 0.0)
    target = percentile * total_time
    if idle >= target:
        return 0.0

    below = 0.0
    lower = 0.0
    remaining = len(ordered)
    for duration in ordered:
        wait = (target - idle - below) / remaining
        if wait <= duration:
            return max(wait, lower)
        below += duration
        lower = duration
        remaining -= 1
    return ordered[-1]


class Interactive(MetricStrategy):
    """Time to Interactive: CPU and network quiet for five seconds after FCP."""

    metric_id = MetricId.INTERACTIVE

    async def compute(self, inputs: MetricInputs, context, registry) -> Optional[Measurement]:
        processed = await ProcessedTraceArtifact.request(inputs.trace, context=context)
        fcp = processed.first_contentful_paint
        if fcp is None:
            return None

        records = await NetworkRecords.request(inputs.devtools_log, context=context)
        tasks = long_tasks(processed.main_thread_tasks)
        window_start = find_quiet_window(
            tasks, fcp, processed.trace_end,
            busy_periods=network_busy_periods(records, processed)
        )
        if window_start is None:
            logger.warning("Trace ends before a quiet window for time to interactive")
            return None

        return self.scalar(_interactive_time(tasks, fcp, window_start, [processed.dom_content_loaded]))


class FirstCpuIdle(MetricStrategy):
    """First CPU Idle: main thread quiet for five seconds after FMP."""

    metric_id = MetricId.FIRST_CPU_IDLE

    async def compute(self, inputs: MetricInputs, context, registry) -> Optional[Measurement]:
        processed = await ProcessedTraceArtifact.request(inputs.trace, context=context)
        fmp = processed.first_meaningful_paint
        if fmp is None:
            return None

        tasks = long_tasks(processed.main_thread_tasks)
        window_start = find_quiet_window(tasks, fmp, processed.trace_end)
        if window_start is None:
            return None

        return self.scalar(_interactive_time(tasks, fmp, window_start, [processed.dom_content_loaded]))


class TotalBlockingTime(MetricStrategy):
    """Sum of task time beyond 50 ms between FCP and TTI."""

    metric_id = MetricId.TOTAL_BLOCKING_TIME

    async def compute(self, inputs: MetricInputs, context, registry) -> Optional[Measurement]:
        processed = await ProcessedTraceArtifact.request(inputs.trace, context=context)
        fcp = processed.first_contentful_paint
        interactive = await registry.request(MetricId.INTERACTIVE, inputs, context)
        if fcp is None or interactive is None:
            return None

        tti = interactive.numeric_value
        blocking = 0.0
        for task in processed.main_thread_tasks:
            clipped = min(task.end, tti) - max(task.start, fcp)
            if clipped > LONG_TASK_THRESHOLD_MS:
                blocking += clipped - LONG_TASK_THRESHOLD_MS
        return self.scalar(blocking)


class MaxPotentialFid(MetricStrategy):
    """Longest task after FCP, never below the base response latency."""

    metric_id = MetricId.MAX_POTENTIAL_FID

    async def compute(self, inputs: MetricInputs, context, registry) -> Optional[Measurement]:
        processed = await ProcessedTraceArtifact.request(inputs.trace, context=context)
        fcp = processed.first_contentful_paint
        if fcp is None:
            return None

        durations = [t.duration for t in processed.main_thread_tasks if t.start >= fcp]
        return self.scalar(max(durations + [BASE_RESPONSE_LATENCY_MS]))


class EstimatedInputLatency(MetricStrategy):
    """90th percentile input latency over the five seconds after FMP."""

    metric_id = MetricId.ESTIMATED_INPUT_LATENCY

    async def compute(self, inputs: MetricInputs, context, registry) -> Optional[Measurement]:
        processed = await ProcessedTraceArtifact.request(inputs.trace, context=context)
        fmp = processed.first_meaningful_paint
        if fmp is None:
            return None

        window_end = min(fmp + QUIET_WINDOW_MS, processed.trace_end)
        durations = []
        for task in processed.main_thread_tasks:
            clipped = min(task.end, window_end) - max(task.start, fmp)
            if clipped > 0:
                durations.append(clipped)

        latency = risk_to_responsiveness(durations, window_end - fmp)
        return self.scalar(latency + BASE_RESPONSE_LATENCY_MS)
