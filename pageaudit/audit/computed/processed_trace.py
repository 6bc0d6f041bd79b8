"""Processed view of a performance trace.

Extracts, once per trace, what the metric strategies need: navigation start,
the paint milestones, the main thread's top-level tasks, layout shifts and
paint areas. All times on ``ProcessedTrace`` are milliseconds relative to
navigation start.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import NoNavigationStartError
from ..models.artifacts import Trace, TraceEvent
from .cache import ComputedArtifact


logger = logging.getLogger(__name__)


TOP_LEVEL_TASK_NAMES = {
    "RunTask",
    "ThreadControllerImpl::RunTask",
    "ThreadControllerImpl::DoWork",
    "TaskQueueManager::ProcessTaskFromWorkQueue",
}

LCP_CANDIDATE = "largestContentfulPaint::Candidate"
LCP_INVALIDATE = "largestContentfulPaint::Invalidate"


@dataclass(frozen=True)
class TaskSpan:
    """A top-level main-thread task."""
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class LayoutShift:
    time: float
    score: float
    had_recent_input: bool = False


@dataclass(frozen=True)
class PaintSample:
    time: float
    area: float


@dataclass
class ProcessedTrace:
    """Timings and main-thread activity of one navigation."""

    navigation_start_ts: float
    main_pid: int
    main_tid: int
    trace_end: float

    first_contentful_paint: Optional[float] = None
    first_meaningful_paint: Optional[float] = None
    largest_contentful_paint: Optional[float] = None
    dom_content_loaded: Optional[float] = None

    main_thread_tasks: List[TaskSpan] = field(default_factory=list)
    layout_shifts: List[LayoutShift] = field(default_factory=list)
    paints: List[PaintSample] = field(default_factory=list)

    def relative_ms(self, ts_us: float) -> float:
        """Convert a trace timestamp (µs) to ms since navigation start."""
        return (ts_us - self.navigation_start_ts) / 1000

    def protocol_time_ms(self, seconds: float) -> float:
        """Convert a DevTools protocol timestamp (s) to ms since navigation start."""
        return seconds * 1000 - self.navigation_start_ts / 1000


def _find_navigation_start(events: List[TraceEvent]) -> TraceEvent:
    for event in events:
        if event.name != "navigationStart":
            continue
        if event.data.get("isLoadingMainFrame") is False:
            continue
        return event
    raise NoNavigationStartError()


def _paint_area(event: TraceEvent) -> float:
    clip = event.data.get("clip")
    if not clip or len(clip) < 8:
        return 1.0
    xs = clip[0::2]
    ys = clip[1::2]
    return max(max(xs) - min(xs), 0) * max(max(ys) - min(ys), 0)


def process_trace(trace: Trace) -> ProcessedTrace:
    """Build a ``ProcessedTrace`` from raw trace events.

    Raises:
        NoNavigationStartError: If the trace has no main-frame navigationStart
    """
    events = sorted(trace.trace_events, key=lambda e: e.ts)
    navigation_start = _find_navigation_start(events)
    nav_ts = navigation_start.ts
    pid = navigation_start.pid
    tid = navigation_start.tid

    trace_end_ts = max((e.ts + (e.dur or 0) for e in events), default=nav_ts)
    processed = ProcessedTrace(
        navigation_start_ts=nav_ts,
        main_pid=pid,
        main_tid=tid,
        trace_end=(trace_end_ts - nav_ts) / 1000
    )

    fmp_candidate = None
    last_lcp_event = None
    last_task_end = float('-inf')

    for event in events:
        if event.pid != pid or event.ts < nav_ts:
            continue
        time = processed.relative_ms(event.ts)

        if event.name == "firstContentfulPaint":
            if processed.first_contentful_paint is None:
                processed.first_contentful_paint = time
        elif event.name == "firstMeaningfulPaint":
            if processed.first_meaningful_paint is None:
                processed.first_meaningful_paint = time
        elif event.name == "firstMeaningfulPaintCandidate":
            fmp_candidate = time
        elif event.name in (LCP_CANDIDATE, LCP_INVALIDATE):
            last_lcp_event = event
        elif event.name == "domContentLoadedEventEnd":
            if processed.dom_content_loaded is None:
                processed.dom_content_loaded = time
        elif event.name == "LayoutShift":
            score = event.data.get("score")
            if score is not None:
                processed.layout_shifts.append(LayoutShift(
                    time=time,
                    score=float(score),
                    had_recent_input=bool(event.data.get("had_recent_input", False))
                ))
        elif event.name == "Paint":
            processed.paints.append(PaintSample(time=time, area=_paint_area(event)))
        elif (event.name in TOP_LEVEL_TASK_NAMES and event.ph == "X"
              and event.tid == tid and event.dur is not None):
            # Nested task events belong to the enclosing top-level task.
            if event.ts < last_task_end:
                continue
            last_task_end = event.ts + event.dur
            processed.main_thread_tasks.append(TaskSpan(
                start=time,
                end=time + event.dur / 1000
            ))

    if processed.first_meaningful_paint is None:
        processed.first_meaningful_paint = fmp_candidate

    if last_lcp_event is not None and last_lcp_event.name == LCP_CANDIDATE:
        processed.largest_contentful_paint = processed.relative_ms(last_lcp_event.ts)

    logger.debug(
        f"Processed trace: {len(events)} events, {len(processed.main_thread_tasks)} main-thread tasks, "
        f"fcp={processed.first_contentful_paint}, lcp={processed.largest_contentful_paint}"
    )
    return processed


class ProcessedTraceArtifact(ComputedArtifact):
    """Computed artifact: the processed view of a trace."""

    name = "ProcessedTrace"

    @classmethod
    async def compute(cls, trace: Trace, context) -> ProcessedTrace:
        return process_trace(trace)
