"""Connector command endpoint: host lifecycle callbacks over HTTP.

The governance host posts one command per request::

    POST /commands
    {"type": "std:account:read", "input": {"identity": "2c91...", "schema": {...}}}

and receives ``{"output": [...]}``. Every command delegates to
OrphanAccountConnector; typed connector errors become JSON error responses.

Security:
    - Optional static Bearer token (CONNECTOR_API_TOKEN), compared in constant time
"""

from __future__ import annotations
import hmac
import logging
from typing import Any, Callable, Dict, Iterable

from flask import Blueprint, Response, current_app, jsonify, request

from orphan_connector.core.dispatcher import OrphanAccountConnector
from orphan_connector.core.identitynow import (
    AuthError,
    ConnectorError,
    IdentityNowAPIError,
    NotFoundError,
    ParseError,
    TransientError,
    UnsupportedOperationError,
)
from orphan_connector.core.models import AccountSchema

bp = Blueprint("commands", __name__)

logger = logging.getLogger(__name__)


def _connector() -> OrphanAccountConnector:
    return current_app.config["CONNECTOR"]


def _require_identity(payload: Dict[str, Any]) -> str:
    identity = payload.get("identity")
    if not identity:
        raise ConnectorError("Missing 'identity' in command input")
    return str(identity)


def _test_connection(c: OrphanAccountConnector, payload: Dict[str, Any], schema):
    return [c.test_connection()]


def _account_list(c, payload, schema):
    return c.list_accounts(schema)


def _account_read(c, payload, schema):
    return [c.read_account(_require_identity(payload), schema)]


def _account_create(c, payload, schema):
    attributes = payload.get("attributes") or {}
    identity_name = attributes.get("name")
    if not identity_name:
        raise ConnectorError("Missing 'attributes.name' in command input")
    return [c.create_account(str(identity_name), _require_identity(payload), schema)]


def _account_update(c, payload, schema):
    return [c.update_account(_require_identity(payload), payload.get("changes") or [], schema)]


def _account_enable(c, payload, schema):
    return [c.enable_account(_require_identity(payload), schema)]


def _account_disable(c, payload, schema):
    return [c.disable_account(_require_identity(payload), schema)]


def _entitlement_list(c, payload, schema):
    return c.list_entitlements()


def _entitlement_read(c, payload, schema):
    return [c.read_entitlement(_require_identity(payload))]


COMMANDS: Dict[str, Callable[..., Iterable[dict]]] = {
    "std:test-connection": _test_connection,
    "std:account:list": _account_list,
    "std:account:read": _account_read,
    "std:account:create": _account_create,
    "std:account:update": _account_update,
    "std:account:enable": _account_enable,
    "std:account:disable": _account_disable,
    "std:entitlement:list": _entitlement_list,
    "std:entitlement:read": _entitlement_read,
}


def error_response(status: int, error: str, message: str) -> tuple[Response, int]:
    return jsonify({"error": error, "message": message}), status


def _status_for(exc: ConnectorError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (AuthError, TransientError, ParseError)):
        return 502
    if isinstance(exc, IdentityNowAPIError):
        return 502 if exc.status_code >= 500 or exc.status_code == 0 else 400
    return 400


@bp.before_request
def check_api_token():
    """Enforce the static bearer token when one is configured."""
    expected = current_app.config.get("CONNECTOR_API_TOKEN") or ""
    if not expected:
        return None

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return error_response(401, "Unauthorized", "Bearer token required")
    provided = auth_header[len("Bearer "):].strip()
    if not hmac.compare_digest(provided, expected):
        logger.warning("Rejected command request with invalid token from %s", request.remote_addr)
        return error_response(401, "Unauthorized", "Invalid token")
    return None


@bp.route("/commands", methods=["POST"])
def run_command():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return error_response(400, "Bad Request", "Request body must be a JSON object")

    command_type = body.get("type", "")
    handler = COMMANDS.get(command_type)
    if handler is None:
        return error_response(400, "Bad Request", f"Unknown command type: {command_type}")

    payload = body.get("input") or {}
    try:
        schema = AccountSchema.from_dict(payload.get("schema"))
    except KeyError as exc:
        return error_response(400, "Bad Request", f"Incomplete schema: missing {exc}")

    try:
        output = list(handler(_connector(), payload, schema))
    except UnsupportedOperationError as exc:
        return error_response(400, "Unsupported Operation", str(exc))
    except ConnectorError as exc:
        logger.error("Command %s failed: %s", command_type, exc)
        return error_response(_status_for(exc), type(exc).__name__, str(exc))

    return jsonify({"output": output})
