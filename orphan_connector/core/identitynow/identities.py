"""Identity resolution through the search API."""
from __future__ import annotations
from typing import Optional

from . import filters
from .client import IdentityNowClient
from .exceptions import ParseError
from ..models import Identity

SEARCH_PATH = "/v3/search"


class IdentityService:
    """Look up identities in the ``identities`` search index."""

    def __init__(self, client: IdentityNowClient):
        self.client = client

    def resolve_identity_by_name(self, name: str) -> Optional[Identity]:
        return self._search_one(filters.exact_search("name", name))

    def resolve_identity_by_uid(self, uid: str) -> Optional[Identity]:
        return self._search_one(filters.exact_search("attributes.uid", uid))

    def _search_one(self, query: str) -> Optional[Identity]:
        """Run a search limited to one hit; None when nothing matches."""
        search = {
            "indices": ["identities"],
            "query": {"query": query},
            "includeNested": False,
            "queryResultFilter": {"includes": ["id", "name"]},
        }
        resp = self.client.post(SEARCH_PATH, json=search, params={"limit": 1})
        try:
            hits = resp.json() or []
        except ValueError:
            raise ParseError(f"Response from {SEARCH_PATH} is not valid JSON") from None
        if not isinstance(hits, list):
            raise ParseError(f"Expected a JSON array from {SEARCH_PATH}, got {type(hits).__name__}")
        if not hits:
            return None
        return Identity.from_api(hits[0])
