"""IdentityNow entitlement operations."""
from __future__ import annotations
import logging
from typing import List, Optional

from .client import IdentityNowClient
from .pagination import fetch_all

logger = logging.getLogger(__name__)

ENTITLEMENTS_PATH = "/beta/entitlements"


class EntitlementService:
    """Service for listing entitlements and toggling their requestability."""

    def __init__(self, client: IdentityNowClient):
        self.client = client

    def list_entitlements(self, query: Optional[str] = None) -> List[dict]:
        """Return every entitlement matching the filter expression."""
        return fetch_all(self.client, ENTITLEMENTS_PATH, filters=query)

    def make_entitlement_requestable(self, entitlement_id: str) -> dict:
        resp = self.client.patch(
            f"{ENTITLEMENTS_PATH}/{entitlement_id}",
            [{"op": "replace", "path": "/requestable", "value": True}],
        )
        logger.info("Entitlement '%s' marked requestable", entitlement_id)
        return resp.json() if resp.content else {}
