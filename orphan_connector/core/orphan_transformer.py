"""Account → governance-host record transformations.

Orphan accounts are exposed to the host twice: as accounts (so they can be
enabled, disabled and correlated) and as ``group`` entitlements (so access
reviews can revoke them).

Usage:
    record = OrphanTransformer.to_account(account, schema, strategy="schema")
    group = OrphanTransformer.to_entitlement(account)
"""
from __future__ import annotations
from typing import Any, Dict, Optional

from .identitynow.exceptions import ConnectorError
from .models import Account, AccountSchema

TAG = "Orphan account"
NAME_PLACEHOLDER = "-"

STRATEGY_FIXED = "fixed"
STRATEGY_SCHEMA = "schema"
KEY_STRATEGIES = (STRATEGY_FIXED, STRATEGY_SCHEMA)


class OrphanTransformer:
    """Build host records from account snapshots."""

    @staticmethod
    def attributes(account: Account) -> Dict[str, Any]:
        """Return the flat attribute bag shared by accounts and entitlements."""
        name = account.name or NAME_PLACEHOLDER
        return {
            "tag": TAG,
            "name": name,
            "displayName": f"{TAG}: {name} ({account.source_name})",
            "id": account.id,
            "description": f"Source: {account.source_name}",
            "enabled": not account.disabled,
            "locked": account.locked,
            "source": account.source_name,
        }

    @staticmethod
    def to_account(
        account: Account,
        schema: Optional[AccountSchema] = None,
        strategy: str = STRATEGY_FIXED,
    ) -> Dict[str, Any]:
        """Convert an account snapshot to a host account record.

        Args:
            account: Account snapshot
            schema: Host schema; required when strategy is "schema"
            strategy: "fixed" (id / displayName) or "schema" (schema attributes)

        Raises:
            ConnectorError: Unknown strategy, or "schema" strategy without a schema
        """
        attributes = OrphanTransformer.attributes(account)
        identity, uuid = OrphanTransformer._keys(attributes, schema, strategy)
        return {
            "identity": identity,
            "uuid": uuid,
            "attributes": attributes,
            "disabled": account.disabled,
            "locked": account.locked,
        }

    @staticmethod
    def to_entitlement(account: Account) -> Dict[str, Any]:
        """Convert an account snapshot to a host ``group`` entitlement.

        Groups are always keyed by account id and display name; the identity
        key strategy only applies to account records.
        """
        attributes = OrphanTransformer.attributes(account)
        identity, uuid = attributes["id"], attributes["displayName"]
        return {
            "identity": identity,
            "uuid": uuid,
            "type": "group",
            "attributes": attributes,
        }

    @staticmethod
    def _keys(attributes: Dict[str, Any], schema: Optional[AccountSchema], strategy: str) -> tuple[str, str]:
        if strategy == STRATEGY_FIXED:
            return attributes["id"], attributes["displayName"]
        if strategy != STRATEGY_SCHEMA:
            raise ConnectorError(f"Unknown identity key strategy: {strategy}")
        if schema is None:
            raise ConnectorError("Identity key strategy 'schema' requires an account schema")
        return (
            str(attributes.get(schema.identity_attribute, "")),
            str(attributes.get(schema.display_attribute, "")),
        )
