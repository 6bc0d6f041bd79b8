"""HTTPS audit.

Lists every request made over an insecure scheme, combined with the
browser's mixed-content issues, which say whether each insecure resource was
blocked, upgraded or allowed.
"""

import logging
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from ..computed.network_records import NetworkRecords
from ..context import RunContext
from ..models.artifacts import Artifacts, MixedContentIssue, NetworkRecord
from ..models.results import (
    AuditResult,
    Heading,
    HeadingType,
    ScoreDisplayMode,
    TableDetails,
)
from .base import Audit, AuditMeta, register_audit


logger = logging.getLogger(__name__)


SECURE_SCHEMES = frozenset({
    "https",
    "wss",
    "data",
    "blob",
    "filesystem",
    "about",
    "chrome",
    "chrome-extension",
})

SECURE_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1"})

RESOLUTION_ALLOWED = "Allowed"

RESOLUTION_TEXT: Dict[str, str] = {
    "MixedContentBlocked": "Blocked",
    "MixedContentAutomaticallyUpgraded": "Automatically upgraded to HTTPS",
    "MixedContentWarning": "Allowed with warning",
}


class InsecureRequestItem(BaseModel):
    """One row of the insecure request table."""
    url: str
    resolution: Optional[str] = None


def is_secure_record(record: NetworkRecord) -> bool:
    """Whether a request is considered secure.

    Secure schemes and local hosts always pass. Records whose scheme could
    not be parsed fall back to the protocol, which is ``blob`` for blob URLs.
    """
    scheme = record.parsed_url.scheme
    if scheme in SECURE_SCHEMES:
        return True
    if record.parsed_url.host in SECURE_LOCAL_HOSTS:
        return True
    if not scheme and record.protocol == "blob":
        return True
    return False


def resolution_text(resolution_status: str) -> str:
    """Display text for a mixed-content resolution; unknown statuses pass through."""
    return RESOLUTION_TEXT.get(resolution_status, resolution_status)


def insecure_urls(records: Sequence[NetworkRecord]) -> List[str]:
    """URLs of insecure records, deduplicated in first-seen order."""
    return list(dict.fromkeys(r.url for r in records if not is_secure_record(r)))


def reconcile(records: Sequence[NetworkRecord],
              issues: Sequence[MixedContentIssue]) -> List[InsecureRequestItem]:
    """Merge insecure records with mixed-content issues into table rows.

    Issues for URLs with no insecure record are appended as their own rows.
    Rows no issue refers to were allowed by the browser.
    """
    items = [InsecureRequestItem(url=url) for url in insecure_urls(records)]
    by_url = {item.url: item for item in items}

    for issue in issues:
        item = by_url.get(issue.insecure_url)
        if item is None:
            item = InsecureRequestItem(url=issue.insecure_url)
            items.append(item)
            by_url[item.url] = item
        item.resolution = resolution_text(issue.resolution_status)

    for item in items:
        if item.resolution is None:
            item.resolution = RESOLUTION_ALLOWED

    return items


def display_value(count: int) -> Optional[str]:
    if count == 0:
        return None
    if count == 1:
        return "1 insecure request found"
    return f"{count} insecure requests found"


@register_audit
class IsOnHttpsAudit(Audit):
    """Every request of the page should use HTTPS."""

    meta = AuditMeta(
        id="is-on-https",
        title="Uses HTTPS",
        failure_title="Does not use HTTPS",
        description=(
            "All sites should be protected with HTTPS, even ones that don't handle "
            "sensitive data. This includes avoiding mixed content, where some "
            "resources are loaded over HTTP despite the initial request being served over HTTPS."
        ),
        score_display_mode=ScoreDisplayMode.BINARY
    )

    HEADINGS = [
        Heading(key="url", item_type=HeadingType.URL, text="Insecure URL"),
        Heading(key="resolution", item_type=HeadingType.TEXT, text="Request Resolution"),
    ]

    async def audit(self, artifacts: Artifacts, context: RunContext) -> AuditResult:
        devtools_log = self.get_pass_artifact(artifacts.devtools_logs, "devtoolsLog")
        records = await NetworkRecords.request(devtools_log, context=context)
        return self.evaluate(records, artifacts.inspector_issues.mixed_content)

    def evaluate(self, records: Sequence[NetworkRecord],
                 issues: Sequence[MixedContentIssue]) -> AuditResult:
        """Classify records and issues into a scored result."""
        items = reconcile(records, issues)
        if items:
            logger.info(f"Found {len(items)} insecure requests")

        return AuditResult(
            score=1 if not items else 0,
            display_value=display_value(len(items)),
            details=TableDetails(headings=list(self.HEADINGS), items=items)
        )
