"""IdentityNow account operations: listing, lookup and lifecycle actions."""
from __future__ import annotations
import logging
from typing import Iterable, List, Optional

from . import filters
from .client import IdentityNowClient
from .exceptions import ConnectorError, ParseError
from .pagination import fetch_all
from ..models import Account

logger = logging.getLogger(__name__)

ACCOUNTS_PATH = "/beta/accounts"


class AccountService:
    """Service for reading and toggling IdentityNow accounts."""

    def __init__(self, client: IdentityNowClient):
        """Initialize account service.

        Args:
            client: Authenticated IdentityNow client
        """
        self.client = client

    def list_orphan_accounts(self, source_ids: Iterable[str], only_enabled: bool = False) -> List[Account]:
        """Return uncorrelated accounts from the given sources.

        The API cannot filter on ``disabled``, so ``only_enabled`` is applied
        client-side after the full result set has been fetched.

        Args:
            source_ids: Source ids to search
            only_enabled: Drop disabled accounts from the result

        Returns:
            Orphan accounts in upstream order
        """
        source_ids = list(source_ids)
        if not source_ids:
            return []
        query = filters.all_of(filters.in_("sourceId", source_ids), "uncorrelated eq true")
        accounts = [Account.from_api(item) for item in fetch_all(self.client, ACCOUNTS_PATH, filters=query)]
        if only_enabled:
            accounts = [account for account in accounts if not account.disabled]
        return accounts

    def get_account(self, account_id: str) -> Optional[Account]:
        """Fetch a single account.

        Returns:
            The account, or None if it does not exist or could not be read
        """
        try:
            resp = self.client.get(f"{ACCOUNTS_PATH}/{account_id}")
            body = resp.json()
            if not isinstance(body, dict):
                raise ParseError(f"Expected a JSON object from {ACCOUNTS_PATH}/{account_id}")
            return Account.from_api(body)
        except (ConnectorError, ValueError) as exc:
            logger.warning("Account '%s' could not be read: %s", account_id, exc)
            return None

    def enable_account(self, account_id: str) -> None:
        """Request the account be enabled on its source (re-fetch to observe)."""
        self._toggle(account_id, "enable")

    def disable_account(self, account_id: str) -> None:
        """Request the account be disabled on its source (re-fetch to observe)."""
        self._toggle(account_id, "disable")

    def correlate_account(self, identity_id: str, account_id: str) -> dict:
        """Attach the account to an identity by replacing its identityId."""
        resp = self.client.patch(
            f"{ACCOUNTS_PATH}/{account_id}",
            [{"op": "replace", "path": "/identityId", "value": identity_id}],
        )
        logger.info("Correlated account '%s' to identity '%s'", account_id, identity_id)
        return resp.json() if resp.content else {}

    def _toggle(self, account_id: str, action: str) -> None:
        self.client.post(f"{ACCOUNTS_PATH}/{account_id}/{action}", json={"forceProvisioning": True})
        logger.info("Requested %s for account '%s'", action, account_id)
