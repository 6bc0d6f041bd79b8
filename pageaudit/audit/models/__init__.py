"""Data models for artifacts, budgets, settings and audit results."""

from .artifacts import (
    DEFAULT_PASS,
    Artifacts,
    DevtoolsLog,
    InspectorIssues,
    MixedContentIssue,
    NetworkRecord,
    ParsedURL,
    Trace,
    TraceEvent,
    URLArtifact,
)
from .budget import (
    METRIC_LABELS,
    Budget,
    MetricId,
    Settings,
    ThrottlingMethod,
    TimingBudget,
)
from .results import (
    AuditResult,
    Heading,
    HeadingType,
    Measurement,
    ScalarMeasurement,
    ScoreDisplayMode,
    StructuredMeasurement,
    TableDetails,
)

__all__ = [
    # Artifacts
    "DEFAULT_PASS",
    "Artifacts",
    "DevtoolsLog",
    "InspectorIssues",
    "MixedContentIssue",
    "NetworkRecord",
    "ParsedURL",
    "Trace",
    "TraceEvent",
    "URLArtifact",

    # Budgets and settings
    "METRIC_LABELS",
    "Budget",
    "MetricId",
    "Settings",
    "ThrottlingMethod",
    "TimingBudget",

    # Results
    "AuditResult",
    "Heading",
    "HeadingType",
    "Measurement",
    "ScalarMeasurement",
    "ScoreDisplayMode",
    "StructuredMeasurement",
    "TableDetails",
]
