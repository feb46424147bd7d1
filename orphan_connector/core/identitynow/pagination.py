"""Offset pagination driven by the X-Total-Count response header."""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional

from .client import IdentityNowClient
from .exceptions import ParseError

logger = logging.getLogger(__name__)

PAGE_SIZE = 250
TOTAL_COUNT_HEADER = "X-Total-Count"


def parse_total_count(headers: Mapping[str, str], endpoint: str = "") -> int:
    """Return the total-count header as a non-negative int.

    Raises:
        ParseError: If the header is missing or not a non-negative integer
    """
    raw = headers.get(TOTAL_COUNT_HEADER)
    if raw is None:
        raise ParseError(f"Missing {TOTAL_COUNT_HEADER} header in response from {endpoint}")
    try:
        total = int(str(raw).strip())
    except ValueError:
        raise ParseError(f"Invalid {TOTAL_COUNT_HEADER} header {raw!r} in response from {endpoint}") from None
    if total < 0:
        raise ParseError(f"Negative {TOTAL_COUNT_HEADER} header {raw!r} in response from {endpoint}")
    return total


def fetch_all(
    client: IdentityNowClient,
    path: str,
    filters: Optional[str] = None,
    page_size: int = PAGE_SIZE,
    params: Optional[Dict[str, Any]] = None,
) -> List[dict]:
    """Fetch every record of a collection endpoint, one page at a time.

    Pages are requested sequentially with ``offset``/``limit``/``count=true``.
    Paging continues while ``offset + page_size < total_count``; page length is
    never used to decide termination.

    Args:
        client: Authenticated IdentityNow client
        path: Collection path (e.g. "/beta/accounts")
        filters: Optional filter expression
        page_size: Records per request
        params: Extra query parameters sent with every page

    Returns:
        All records in upstream order
    """
    query: Dict[str, Any] = dict(params or {})
    if filters:
        query["filters"] = filters
    query.update({"count": "true", "limit": page_size, "offset": 0})

    records: List[dict] = []
    resp = client.get(path, params=dict(query))
    total = parse_total_count(resp.headers, path)
    records.extend(_page_items(resp, path))

    offset = 0
    while offset + page_size < total:
        offset += page_size
        query["offset"] = offset
        resp = client.get(path, params=dict(query))
        records.extend(_page_items(resp, path))

    logger.debug("Fetched %d of %d records from %s", len(records), total, path)
    return records


def _page_items(resp, path: str) -> List[dict]:
    try:
        items = resp.json()
    except ValueError:
        raise ParseError(f"Response from {path} is not valid JSON") from None
    if not isinstance(items, list):
        raise ParseError(f"Expected a JSON array from {path}, got {type(items).__name__}")
    return items
