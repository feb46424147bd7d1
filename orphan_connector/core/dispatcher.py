"""
Lifecycle Dispatcher: governance-host callbacks for orphan accounts.

Each host callback (test connection, account list/read/create/update/
enable/disable, entitlement list/read) maps onto IdentityNow resource
operations. Results are shaped by OrphanTransformer; errors are raised as
the typed exceptions from ``identitynow.exceptions``.

Architecture:
    HTTP commands (/commands) ──┐
                                ├──> dispatcher.py ──> core.identitynow ──> IdentityNow
    CLI (scripts/orphans.py) ───┘
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional

from orphan_connector import audit
from orphan_connector.config import ConnectorConfig
from orphan_connector.core.identitynow import (
    AccountService,
    ConnectorError,
    Credentials,
    EntitlementService,
    IdentityNowClient,
    IdentityService,
    NotFoundError,
    SourceService,
    UnsupportedOperationError,
)
from orphan_connector.core.identitynow import filters
from orphan_connector.core.models import Account, AccountSchema, Identity
from orphan_connector.core.orphan_transformer import OrphanTransformer

logger = logging.getLogger(__name__)

CONNECTION_ERROR_MESSAGE = "Unable to connect to Identity Security Cloud"

OP_ADD = "Add"
OP_REMOVE = "Remove"


@dataclass
class AttributeChange:
    """One attribute change from an account update request."""
    op: str
    attribute: str = ""
    values: List[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "AttributeChange":
        value = data.get("value")
        if value is None:
            values = []
        elif isinstance(value, list):
            values = value
        else:
            values = [value]
        return cls(op=data.get("op", ""), attribute=data.get("attribute", ""), values=values)


def build_client(config: ConnectorConfig) -> IdentityNowClient:
    """Create an IdentityNow client from connector settings."""
    credentials = Credentials(config.client_id, config.client_secret, config.base_url)
    return IdentityNowClient(credentials, timeout=config.request_timeout)


class OrphanAccountConnector:
    """One method per host lifecycle callback.

    Usage:
        connector = OrphanAccountConnector(load_settings())
        for record in connector.list_accounts():
            ...
    """

    def __init__(
        self,
        config: ConnectorConfig,
        client: Optional[IdentityNowClient] = None,
        operator: str = "connector",
    ):
        self.config = config
        self.client = client or build_client(config)
        self.operator = operator
        self.accounts = AccountService(self.client)
        self.sources = SourceService(self.client)
        self.entitlements = EntitlementService(self.client)
        self.identities = IdentityService(self.client)

    # ─────────────────────────────────────────────────────────────────────
    # Connection
    # ─────────────────────────────────────────────────────────────────────

    def test_connection(self) -> dict:
        try:
            self.client.test_connection()
        except Exception as exc:
            logger.error("Connection test failed: %s", exc)
            raise ConnectorError(CONNECTION_ERROR_MESSAGE) from exc
        return {}

    # ─────────────────────────────────────────────────────────────────────
    # Accounts
    # ─────────────────────────────────────────────────────────────────────

    def list_accounts(self, schema: Optional[AccountSchema] = None) -> Iterator[dict]:
        logger.info("Account list")
        for account in self._orphan_accounts():
            yield self._shape_account(account, schema)

    def read_account(self, account_id: str, schema: Optional[AccountSchema] = None) -> dict:
        logger.info("Account read: %s", account_id)
        return self._shape_account(self._require_account(account_id), schema)

    def create_account(
        self,
        identity_name: str,
        account_id: str,
        schema: Optional[AccountSchema] = None,
    ) -> dict:
        """Correlate orphan account ``account_id`` to the identity named ``identity_name``.

        The identity is looked up by uid or by name depending on
        ``identity_match_attribute``.

        Raises:
            NotFoundError: If no identity matches, or the account vanished afterwards
        """
        logger.info("Account create: identity=%s account=%s", identity_name, account_id)
        identity = self._resolve_identity(identity_name)
        if identity is None:
            raise NotFoundError(f"Identity '{identity_name}' not found", "/v3/search")

        details = {"identity_id": identity.id, "identity_name": identity_name}
        try:
            self.accounts.correlate_account(identity.id, account_id)
        except ConnectorError as exc:
            audit.safe_log_lifecycle_event(
                "correlate", account_id, operator=self.operator,
                details={**details, "error": str(exc)}, success=False,
            )
            raise
        audit.safe_log_lifecycle_event("correlate", account_id, operator=self.operator, details=details)

        return self._shape_account(self._require_account(account_id), schema)

    def update_account(
        self,
        account_id: str,
        changes: Iterable[AttributeChange | dict],
        schema: Optional[AccountSchema] = None,
    ) -> dict:
        """Apply entitlement changes to an orphan account.

        ``Add`` is skipped (orphan accounts have nothing to add); ``Remove``
        disables every listed value, each value being an orphan account id.

        Raises:
            UnsupportedOperationError: For any other change operation
        """
        logger.info("Account update: %s", account_id)
        changes = [AttributeChange.from_dict(c) if isinstance(c, dict) else c for c in changes]
        for change in changes:
            if change.op not in (OP_ADD, OP_REMOVE):
                raise UnsupportedOperationError(f"Operation not supported: {change.op}")

        for change in changes:
            if change.op == OP_ADD:
                logger.info("Skipping entitlement add request for orphan account")
                continue
            for value in change.values:
                self._disable(str(value))

        return self._shape_account(self._require_account(account_id), schema)

    def enable_account(self, account_id: str, schema: Optional[AccountSchema] = None) -> dict:
        logger.info("Account enable: %s", account_id)
        self._toggle("enable", account_id)
        return self._shape_account(self._require_account(account_id), schema)

    def disable_account(self, account_id: str, schema: Optional[AccountSchema] = None) -> dict:
        logger.info("Account disable: %s", account_id)
        self._disable(account_id)
        return self._shape_account(self._require_account(account_id), schema)

    # ─────────────────────────────────────────────────────────────────────
    # Entitlements
    # ─────────────────────────────────────────────────────────────────────

    def list_entitlements(self) -> Iterator[dict]:
        """Yield one group entitlement per orphan account.

        When ``make_entitlements_requestable`` is set, entitlements already
        aggregated on the connector's own source are then made requestable.
        """
        logger.info("Entitlement list")
        for account in self._orphan_accounts():
            yield OrphanTransformer.to_entitlement(account)

        if self.config.make_entitlements_requestable and self.config.connector_source_name:
            self._make_connector_entitlements_requestable()

    def read_entitlement(self, entitlement_id: str) -> dict:
        logger.info("Entitlement read: %s", entitlement_id)
        account = self._require_account(entitlement_id)
        return OrphanTransformer.to_entitlement(account)

    # ─────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────

    def _orphan_accounts(self) -> List[Account]:
        source_ids = self.sources.resolve_source_ids(self.config.sources)
        return self.accounts.list_orphan_accounts(source_ids, self.config.only_enabled)

    def _require_account(self, account_id: str) -> Account:
        account = self.accounts.get_account(account_id)
        if account is None:
            raise NotFoundError(f"Account '{account_id}' not found", f"/beta/accounts/{account_id}")
        return account

    def _resolve_identity(self, value: str) -> Optional[Identity]:
        if self.config.identity_match_attribute == "name":
            return self.identities.resolve_identity_by_name(value)
        return self.identities.resolve_identity_by_uid(value)

    def _disable(self, account_id: str) -> None:
        self._toggle("disable", account_id)

    def _toggle(self, action: str, account_id: str) -> None:
        operation = self.accounts.enable_account if action == "enable" else self.accounts.disable_account
        try:
            operation(account_id)
        except ConnectorError as exc:
            audit.safe_log_lifecycle_event(
                action, account_id, operator=self.operator, details={"error": str(exc)}, success=False,
            )
            raise
        audit.safe_log_lifecycle_event(action, account_id, operator=self.operator)

    def _shape_account(self, account: Account, schema: Optional[AccountSchema]) -> dict:
        return OrphanTransformer.to_account(account, schema, self.config.identity_key_strategy)

    def _make_connector_entitlements_requestable(self) -> None:
        """Best-effort: upstream failures are logged and audited, never raised."""
        source_name = self.config.connector_source_name
        try:
            source_ids = self.sources.resolve_source_ids([source_name])
            if not source_ids:
                return
            query = filters.eq("source.id", source_ids[0])
            pending = self.entitlements.list_entitlements(query)
        except ConnectorError as exc:
            logger.error("Could not list entitlements of source '%s': %s", source_name, exc)
            audit.safe_log_lifecycle_event(
                "make_requestable", source_name, operator=self.operator,
                details={"error": str(exc)}, success=False,
            )
            return

        for entitlement in pending:
            if entitlement.get("requestable"):
                continue
            entitlement_id = entitlement["id"]
            try:
                self.entitlements.make_entitlement_requestable(entitlement_id)
            except ConnectorError as exc:
                logger.error("Could not make entitlement '%s' requestable: %s", entitlement_id, exc)
                audit.safe_log_lifecycle_event(
                    "make_requestable", entitlement_id, operator=self.operator,
                    details={"error": str(exc)}, success=False,
                )
                continue
            audit.safe_log_lifecycle_event("make_requestable", entitlement_id, operator=self.operator)
