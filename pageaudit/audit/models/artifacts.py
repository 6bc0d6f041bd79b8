"""Pydantic models for the raw artifacts gathered during a page load.

These models describe what the gathering layer hands to the audits: the
performance trace, the DevTools protocol log, the page URLs and the
browser-reported inspector issues. Field names are snake_case; the aliases
keep the wire names used by the gathering layer so that artifact JSON can be
validated as-is.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_PASS = "defaultPass"

# A DevTools log is the raw list of protocol messages ({"method", "params"}).
DevtoolsLog = List[Dict[str, Any]]


class ParsedURL(BaseModel):
    """Scheme and host of a request URL as parsed by the gathering layer."""

    model_config = ConfigDict(frozen=True)

    scheme: str = Field(default="", description="URL scheme without the trailing colon")
    host: str = Field(default="", description="Hostname, empty for opaque URLs")


class NetworkRecord(BaseModel):
    """One observed network request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(description="Request URL")
    parsed_url: ParsedURL = Field(
        default_factory=ParsedURL,
        alias="parsedURL",
        description="Parsed scheme and host"
    )
    protocol: Optional[str] = Field(
        default=None,
        description="Protocol reported by the browser (h2, http/1.1, blob, data...)"
    )

    request_id: Optional[str] = Field(
        default=None,
        alias="requestId",
        description="DevTools request identifier"
    )
    resource_type: Optional[str] = Field(
        default=None,
        alias="resourceType",
        description="DevTools resource type (Document, Image, Script...)"
    )

    # Protocol timestamps, in seconds on the trace clock
    start_time: Optional[float] = Field(default=None, alias="startTime")
    end_time: Optional[float] = Field(default=None, alias="endTime")

    finished: bool = Field(default=False, description="Whether loading finished or failed")
    failed: bool = Field(default=False, description="Whether loading failed")


class MixedContentIssue(BaseModel):
    """Browser-reported mixed-content issue for one insecure URL."""

    model_config = ConfigDict(populate_by_name=True)

    insecure_url: str = Field(alias="insecureURL", description="URL of the insecure resource")
    resolution_status: str = Field(
        alias="resolutionStatus",
        description="How the browser resolved the issue (open set, kept verbatim)"
    )


class InspectorIssues(BaseModel):
    """Issues reported through the DevTools Audits domain."""

    model_config = ConfigDict(populate_by_name=True)

    mixed_content: List[MixedContentIssue] = Field(
        default_factory=list,
        alias="mixedContent"
    )


class TraceEvent(BaseModel):
    """A single Chrome trace event. Times are in microseconds."""

    name: str = Field(default="")
    cat: str = Field(default="")
    ph: str = Field(default="")
    ts: float = Field(default=0.0)
    dur: Optional[float] = Field(default=None)
    pid: int = Field(default=0)
    tid: int = Field(default=0)
    args: Dict[str, Any] = Field(default_factory=dict)

    @property
    def data(self) -> Dict[str, Any]:
        """Shortcut for ``args['data']``, empty if absent."""
        return self.args.get("data") or {}


class Trace(BaseModel):
    """A performance trace in the Chrome trace event format."""

    model_config = ConfigDict(populate_by_name=True)

    trace_events: List[TraceEvent] = Field(
        default_factory=list,
        alias="traceEvents"
    )


class URLArtifact(BaseModel):
    """Requested and final URLs of the audited page."""

    model_config = ConfigDict(populate_by_name=True)

    requested_url: str = Field(alias="requestedUrl")
    final_url: Optional[str] = Field(default=None, alias="finalUrl")

    @property
    def page_url(self) -> str:
        """URL used to scope budgets: final URL, else the requested one."""
        return self.final_url or self.requested_url


class Artifacts(BaseModel):
    """Everything the gathering layer collected for one page load."""

    model_config = ConfigDict(populate_by_name=True)

    devtools_logs: Dict[str, DevtoolsLog] = Field(
        default_factory=dict,
        alias="devtoolsLogs",
        description="DevTools protocol logs keyed by pass name"
    )
    traces: Dict[str, Trace] = Field(
        default_factory=dict,
        description="Performance traces keyed by pass name"
    )
    url: Optional[URLArtifact] = Field(default=None, alias="URL")
    inspector_issues: InspectorIssues = Field(
        default_factory=InspectorIssues,
        alias="InspectorIssues"
    )
