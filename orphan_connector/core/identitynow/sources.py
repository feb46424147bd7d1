"""Source lookups used to scope account queries."""
from __future__ import annotations
import logging
from typing import Iterable, List, Optional

from . import filters
from .client import IdentityNowClient
from .pagination import fetch_all
from ..models import Source

logger = logging.getLogger(__name__)


class SourceService:
    """Service for reading IdentityNow source definitions."""

    def __init__(self, client: IdentityNowClient):
        self.client = client

    def list_sources(self, names: Optional[Iterable[str]] = None) -> List[Source]:
        """Return all sources, or only those whose name is in names.

        Args:
            names: Optional source names to restrict the query to

        Returns:
            Sources in upstream order
        """
        query = None
        if names is not None:
            names = list(names)
            if not names:
                return []
            query = filters.any_eq("name", names)
        return [Source.from_api(item) for item in fetch_all(self.client, "/v3/sources", filters=query)]

    def resolve_source_ids(self, names: Iterable[str]) -> List[str]:
        """Translate configured source names into source ids.

        Names that do not exist upstream are logged and skipped.
        """
        names = list(names)
        sources = self.list_sources(names)
        found = {source.name for source in sources}
        for missing in (name for name in names if name not in found):
            logger.warning("Configured source '%s' not found", missing)
        return [source.id for source in sources if source.name in names]
