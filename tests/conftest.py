"""Shared test fixtures and configuration for PageAudit tests."""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pageaudit.audit.context import RunContext
from pageaudit.audit.models import (
    DEFAULT_PASS,
    Artifacts,
    InspectorIssues,
    MixedContentIssue,
    Settings,
    Trace,
    TraceEvent,
    URLArtifact,
)


NAV_START_US = 10_000_000  # 10 s on the protocol clock
MAIN_PID = 1
MAIN_TID = 1


class TraceBuilder:
    """Builds small synthetic traces. All times are ms after navigation start."""

    def __init__(self, nav_start_us: float = NAV_START_US, pid: int = MAIN_PID, tid: int = MAIN_TID):
        self.nav_start_us = nav_start_us
        self.pid = pid
        self.tid = tid
        self.events: List[TraceEvent] = [
            TraceEvent(name="navigationStart", cat="blink.user_timing", ph="R",
                       ts=nav_start_us, pid=pid, tid=tid,
                       args={"data": {"isLoadingMainFrame": True}})
        ]

    def _ts(self, ms: float) -> float:
        return self.nav_start_us + ms * 1000

    def mark(self, name: str, ms: float, **data: Any) -> "TraceBuilder":
        self.events.append(TraceEvent(name=name, cat="loading", ph="R", ts=self._ts(ms),
                                      pid=self.pid, tid=self.tid, args={"data": data}))
        return self

    def task(self, start_ms: float, duration_ms: float, name: str = "RunTask") -> "TraceBuilder":
        self.events.append(TraceEvent(name=name, cat="devtools.timeline", ph="X", ts=self._ts(start_ms),
                                      dur=duration_ms * 1000, pid=self.pid, tid=self.tid))
        return self

    def paint(self, ms: float, width: float = 100, height: float = 100) -> "TraceBuilder":
        clip = [0, 0, width, 0, width, height, 0, height]
        return self.mark("Paint", ms, clip=clip)

    def layout_shift(self, ms: float, score: float, had_recent_input: bool = False) -> "TraceBuilder":
        return self.mark("LayoutShift", ms, score=score, had_recent_input=had_recent_input)

    def end(self, ms: float) -> "TraceBuilder":
        return self.mark("TracingEnd", ms)

    def build(self) -> Trace:
        return Trace(trace_events=list(self.events))


def standard_trace_builder() -> TraceBuilder:
    """Page with FCP 500, FMP 800, DCL 700, long tasks ending at 1020 and 1580."""
    return (
        TraceBuilder()
        .mark("firstContentfulPaint", 500)
        .mark("domContentLoadedEventEnd", 700)
        .mark("firstMeaningfulPaint", 800)
        .task(100, 30)
        .task(900, 120)
        .task(1500, 80)
        .task(2000, 40)
        .paint(500)
        .paint(800)
        .paint(1200, width=200)
        .end(10_000)
    )


def network_records_to_devtools_log(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Turn simple record descriptions into DevTools Network messages.

    Each record is ``{"url", "protocol"?, "start"?, "end"?}`` with times in
    seconds on the protocol clock.
    """
    log = []
    for index, record in enumerate(records):
        request_id = str(index + 1)
        start = record.get("start", NAV_START_US / 1e6)
        end = record.get("end", start + 0.1)
        log.append({
            "method": "Network.requestWillBeSent",
            "params": {
                "requestId": request_id,
                "timestamp": start,
                "type": record.get("type", "Other"),
                "request": {"url": record["url"], "method": "GET"},
            },
        })
        response = {"url": record["url"], "status": 200}
        if record.get("protocol"):
            response["protocol"] = record["protocol"]
        log.append({
            "method": "Network.responseReceived",
            "params": {"requestId": request_id, "timestamp": start, "response": response},
        })
        if end is not None:
            log.append({
                "method": "Network.loadingFinished",
                "params": {"requestId": request_id, "timestamp": end},
            })
    return log


def make_artifacts(
    trace: Optional[Trace] = None,
    devtools_log: Optional[List[Dict[str, Any]]] = None,
    url: str = "http://example.com",
    mixed_content: Optional[List[Dict[str, str]]] = None
) -> Artifacts:
    traces = {DEFAULT_PASS: trace} if trace is not None else {}
    logs = {DEFAULT_PASS: devtools_log} if devtools_log is not None else {}
    return Artifacts(
        devtools_logs=logs,
        traces=traces,
        url=URLArtifact(requested_url=url, final_url=url),
        inspector_issues=InspectorIssues(
            mixed_content=[MixedContentIssue.model_validate(i) for i in (mixed_content or [])]
        ),
    )


@pytest.fixture
def trace_builder():
    """Factory for empty trace builders."""
    return TraceBuilder


@pytest.fixture
def standard_trace():
    return standard_trace_builder().build()


@pytest.fixture
def lcp_trace():
    """Standard trace with an LCP candidate at 1121.711 ms."""
    return standard_trace_builder().mark("largestContentfulPaint::Candidate", 1121.711).build()


@pytest.fixture
def quiet_devtools_log():
    """Two short requests; never more than two in flight."""
    return network_records_to_devtools_log([
        {"url": "https://example.com/", "protocol": "h2", "start": 10.0, "end": 10.3},
        {"url": "https://example.com/app.js", "protocol": "h2", "start": 10.1, "end": 10.4},
    ])


@pytest.fixture
def standard_artifacts(standard_trace, quiet_devtools_log):
    return make_artifacts(standard_trace, quiet_devtools_log)


@pytest.fixture
def run_context():
    """Fresh run context with default settings."""
    return RunContext(settings=Settings())


@pytest.fixture
def make_context():
    """Factory for run contexts with given budgets and throttling method."""
    def _make(budgets=None, throttling_method="devtools"):
        settings = Settings.model_validate({"budgets": budgets, "throttlingMethod": throttling_method})
        return RunContext(settings=settings)
    return _make


@pytest.fixture
def devtools_log_from():
    """Factory turning record descriptions into a DevTools log."""
    return network_records_to_devtools_log


@pytest.fixture
def artifacts_factory():
    """Factory for ``Artifacts`` with a trace, a DevTools log and issues."""
    return make_artifacts


@pytest.fixture
def standard_builder():
    """Factory for the standard page trace builder, to extend per test."""
    return standard_trace_builder
