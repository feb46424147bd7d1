"""Operator CLI for orphan account discovery and lifecycle actions.

This module serves as a CLI wrapper around orphan_connector.core services.
"""
from __future__ import annotations
import argparse
import json
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from orphan_connector import audit
from orphan_connector.config import ConnectorConfig
from orphan_connector.config.settings import IDENTITY_KEY_STRATEGIES, IDENTITY_MATCH_ATTRIBUTES
from orphan_connector.core.dispatcher import OrphanAccountConnector
from orphan_connector.core.identitynow.exceptions import ConnectorError
from orphan_connector.logging_config import configure_logging


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="IdentityNow orphan account helper")
    parser.add_argument("--base-url", default=os.environ.get("IDN_BASE_URL"))
    parser.add_argument("--client-id", default=os.environ.get("IDN_CLIENT_ID"))
    parser.add_argument("--client-secret", default=os.environ.get("IDN_CLIENT_SECRET"))
    parser.add_argument("--source", dest="sources", action="append",
                        help="Source name to search (repeatable; default: IDN_SOURCES)")
    parser.add_argument("--only-enabled", action="store_true")
    parser.add_argument("--match-by", choices=IDENTITY_MATCH_ATTRIBUTES,
                        default=os.environ.get("IDENTITY_MATCH_ATTRIBUTE", "uid").strip().lower(),
                        help="Identity attribute used by 'correlate' (default: IDENTITY_MATCH_ATTRIBUTE or uid)")
    parser.add_argument("--key-strategy", choices=IDENTITY_KEY_STRATEGIES,
                        default=os.environ.get("IDENTITY_KEY_STRATEGY", "fixed").strip().lower(),
                        help="Account identity/uuid keys (default: IDENTITY_KEY_STRATEGY or fixed)")
    parser.add_argument("--log-level", default=os.environ.get("LOG_LEVEL", "WARNING"))

    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("test")
    sub.add_parser("list-accounts")
    sub.add_parser("list-entitlements")

    sr = sub.add_parser("read")
    sr.add_argument("--account-id", required=True)

    se = sub.add_parser("enable")
    se.add_argument("--account-id", required=True)

    sd = sub.add_parser("disable")
    sd.add_argument("--account-id", required=True)

    sc = sub.add_parser("correlate")
    sc.add_argument("--account-id", required=True)
    sc.add_argument("--identity", required=True, help="Identity uid (or name with --match-by name)")

    sub.add_parser("verify-audit", help="Check HMAC signatures of the lifecycle audit log")

    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    if args.cmd == "verify-audit":
        total, valid = audit.verify_audit_log()
        print(f"Audit log {audit.AUDIT_LOG_FILE}: {valid}/{total} events with valid signatures")
        if valid != total:
            sys.exit(1)
        return

    # argparse does not check env-derived defaults against choices
    if args.match_by not in IDENTITY_MATCH_ATTRIBUTES:
        parser.error(f"IDENTITY_MATCH_ATTRIBUTE must be one of {', '.join(IDENTITY_MATCH_ATTRIBUTES)}")
    if args.key_strategy not in IDENTITY_KEY_STRATEGIES:
        parser.error(f"IDENTITY_KEY_STRATEGY must be one of {', '.join(IDENTITY_KEY_STRATEGIES)}")

    if not args.base_url or not args.client_id:
        parser.error("Missing --base-url / --client-id")
    if not args.client_secret:
        parser.error("Missing client secret (--client-secret or IDN_CLIENT_SECRET)")

    sources = args.sources or [s.strip() for s in os.environ.get("IDN_SOURCES", "").split(",") if s.strip()]

    configure_logging(args.log_level)

    cfg = ConnectorConfig(
        base_url=args.base_url,
        client_id=args.client_id,
        client_secret=args.client_secret,
        sources=sources,
        only_enabled=args.only_enabled,
        identity_match_attribute=args.match_by,
        identity_key_strategy=args.key_strategy,
    )
    connector = OrphanAccountConnector(cfg, operator="cli")

    try:
        if args.cmd == "test":
            connector.test_connection()
            print("Connection OK")
        elif args.cmd == "list-accounts":
            _print_json(list(connector.list_accounts()))
        elif args.cmd == "list-entitlements":
            _print_json(list(connector.list_entitlements()))
        elif args.cmd == "read":
            _print_json(connector.read_account(args.account_id))
        elif args.cmd == "enable":
            _print_json(connector.enable_account(args.account_id))
        elif args.cmd == "disable":
            _print_json(connector.disable_account(args.account_id))
        elif args.cmd == "correlate":
            _print_json(connector.create_account(args.identity, args.account_id))
    except ConnectorError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
