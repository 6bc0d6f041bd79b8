"""Network records derived from a DevTools protocol log.

Only the parts of the Network domain the audits need are interpreted:
request start, redirects, response protocol and loading completion.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..models.artifacts import DevtoolsLog, NetworkRecord, ParsedURL
from .cache import ComputedArtifact


logger = logging.getLogger(__name__)


def parse_url(url: str) -> ParsedURL:
    """Split a URL into the scheme/host pair used for classification."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return ParsedURL()
    return ParsedURL(scheme=parsed.scheme, host=parsed.hostname or "")


def _protocol_for(url: str, response: Dict[str, Any]) -> Optional[str]:
    if response.get("protocol"):
        return response["protocol"]
    # Chrome reports no protocol for these, but the scheme says it all.
    scheme = parse_url(url).scheme
    if scheme in ("data", "blob"):
        return scheme
    return None


def records_from_devtools_log(devtools_log: DevtoolsLog) -> List[NetworkRecord]:
    """Build network records from raw protocol messages, in request order.

    Redirect hops become their own records with a ``:redirect`` suffix on the
    request id, matching how the browser reports them.
    """
    fields_by_id: Dict[str, Dict[str, Any]] = {}
    order: List[str] = []

    for message in devtools_log:
        method = message.get("method", "")
        if not method.startswith("Network."):
            continue
        params = message.get("params") or {}
        request_id = params.get("requestId")
        if request_id is None:
            continue

        if method == "Network.requestWillBeSent":
            redirect_response = params.get("redirectResponse")
            if redirect_response and request_id in fields_by_id:
                # Move the previous hop out of the way before starting the new one.
                previous = fields_by_id.pop(request_id)
                hop_id = f"{request_id}:redirect"
                while hop_id in fields_by_id:
                    hop_id = f"{hop_id}:redirect"
                previous.update(
                    request_id=hop_id,
                    protocol=_protocol_for(previous["url"], redirect_response) or previous.get("protocol"),
                    end_time=params.get("timestamp"),
                    finished=True,
                )
                fields_by_id[hop_id] = previous
                order[order.index(request_id)] = hop_id

            url = (params.get("request") or {}).get("url", "")
            fields_by_id[request_id] = {
                "url": url,
                "request_id": request_id,
                "resource_type": params.get("type"),
                "start_time": params.get("timestamp"),
                "protocol": _protocol_for(url, {}),
            }
            order.append(request_id)

        elif request_id not in fields_by_id:
            continue

        elif method == "Network.responseReceived":
            record = fields_by_id[request_id]
            response = params.get("response") or {}
            record["protocol"] = _protocol_for(record["url"], response) or record.get("protocol")
            if params.get("type"):
                record["resource_type"] = params["type"]

        elif method == "Network.loadingFinished":
            fields_by_id[request_id].update(end_time=params.get("timestamp"), finished=True)

        elif method == "Network.loadingFailed":
            fields_by_id[request_id].update(end_time=params.get("timestamp"), finished=True, failed=True)

    records = []
    for request_id in order:
        fields = fields_by_id[request_id]
        records.append(NetworkRecord(parsed_url=parse_url(fields["url"]), **fields))

    logger.debug(f"Derived {len(records)} network records from {len(devtools_log)} log messages")
    return records


class NetworkRecords(ComputedArtifact):
    """Computed artifact: network records for a DevTools log."""

    name = "NetworkRecords"

    @classmethod
    async def compute(cls, devtools_log: DevtoolsLog, context) -> List[NetworkRecord]:
        return records_from_devtools_log(devtools_log)
