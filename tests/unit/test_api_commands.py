"""Tests for the /commands endpoint."""
from unittest.mock import MagicMock

import pytest

from orphan_connector.core.identitynow import TransientError
from orphan_connector.flask_app import create_app
from tests.conftest import FakeIdentityNow, account_payload, make_config


@pytest.fixture()
def tenant():
    return FakeIdentityNow(
        accounts=[account_payload("acc-1"), account_payload("acc-2", name="svc", disabled=True)],
        identities=[{"id": "id-1", "name": "John Doe", "uid": "jdoe"}],
    )


def make_app(tenant, **overrides):
    connector = tenant.connector(**overrides)
    return create_app(connector.config, connector=connector)


@pytest.fixture()
def client(tenant):
    with make_app(tenant).test_client() as client:
        yield client


def command(client, command_type, payload=None, **kwargs):
    return client.post("/commands", json={"type": command_type, "input": payload or {}}, **kwargs)


def test_test_connection_command(client):
    response = command(client, "std:test-connection")
    assert response.status_code == 200
    assert response.get_json() == {"output": [{}]}


def test_account_list_command(client):
    response = command(client, "std:account:list")

    assert response.status_code == 200
    output = response.get_json()["output"]
    assert [r["identity"] for r in output] == ["acc-1", "acc-2"]


def test_account_read_with_schema(client, tenant):
    app = make_app(tenant, identity_key_strategy="schema")
    schema = {"identityAttribute": "name", "displayAttribute": "displayName"}

    with app.test_client() as c:
        response = command(c, "std:account:read", {"identity": "acc-2", "schema": schema})

    assert response.status_code == 200
    assert response.get_json()["output"][0]["identity"] == "svc"


def test_account_enable_command(client, tenant):
    response = command(client, "std:account:enable", {"identity": "acc-2"})

    assert response.status_code == 200
    assert response.get_json()["output"][0]["attributes"]["enabled"] is True
    assert tenant.accounts["acc-2"]["disabled"] is False


def test_account_create_command_correlates(client, tenant):
    payload = {"identity": "acc-1", "attributes": {"name": "jdoe"}}

    response = command(client, "std:account:create", payload)

    assert response.status_code == 200
    assert tenant.accounts["acc-1"]["identityId"] == "id-1"


def test_account_update_unsupported_operation(client):
    payload = {"identity": "acc-1", "changes": [{"op": "Set", "attribute": "groups", "value": "acc-1"}]}

    response = command(client, "std:account:update", payload)

    assert response.status_code == 400
    assert response.get_json()["error"] == "Unsupported Operation"


def test_entitlement_list_command(client):
    response = command(client, "std:entitlement:list")

    assert response.status_code == 200
    assert {g["type"] for g in response.get_json()["output"]} == {"group"}


def test_read_missing_account_returns_404(client):
    response = command(client, "std:account:read", {"identity": "missing"})

    assert response.status_code == 404
    assert response.get_json()["error"] == "NotFoundError"


def test_missing_identity_returns_400(client):
    response = command(client, "std:account:read", {})
    assert response.status_code == 400


def test_unknown_command_type(client):
    response = command(client, "std:account:delete")

    assert response.status_code == 400
    assert "Unknown command type" in response.get_json()["message"]


def test_body_must_be_json_object(client):
    response = client.post("/commands", data="not json", content_type="text/plain")
    assert response.status_code == 400


def test_incomplete_schema_returns_400(client):
    response = command(client, "std:account:list", {"schema": {"identityAttribute": "id"}})
    assert response.status_code == 400


def test_upstream_failure_returns_502():
    connector = MagicMock()
    connector.config = make_config()
    connector.list_accounts.side_effect = TransientError(503, "unavailable", "/beta/accounts")
    app = create_app(connector.config, connector=connector)

    with app.test_client() as c:
        response = command(c, "std:account:list")

    assert response.status_code == 502
    assert response.get_json()["error"] == "TransientError"


def test_unexpected_error_returns_json_500():
    connector = MagicMock()
    connector.config = make_config()
    connector.list_accounts.side_effect = RuntimeError("boom")
    app = create_app(connector.config, connector=connector)

    with app.test_client() as c:
        response = command(c, "std:account:list")

    assert response.status_code == 500
    assert response.get_json()["error"] == "Internal Server Error"
    assert "boom" not in response.get_data(as_text=True)


# ─────────────────────────────────────────────────────────────────────────────
# Bearer token
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def secured_client(tenant):
    with make_app(tenant, api_token="s3cret-token").test_client() as client:
        yield client


def test_token_required_when_configured(secured_client):
    response = command(secured_client, "std:test-connection")
    assert response.status_code == 401


def test_invalid_token_rejected(secured_client):
    response = command(secured_client, "std:test-connection", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid token"


def test_valid_token_accepted(secured_client):
    response = command(secured_client, "std:test-connection", headers={"Authorization": "Bearer s3cret-token"})
    assert response.status_code == 200


def test_health_does_not_require_token(secured_client):
    assert secured_client.get("/health").status_code == 200


def test_entitlement_list_without_schema_under_schema_strategy(tenant):
    app = make_app(tenant, identity_key_strategy="schema")

    with app.test_client() as c:
        response = command(c, "std:entitlement:list")

    assert response.status_code == 200
    assert [g["identity"] for g in response.get_json()["output"]] == ["acc-1", "acc-2"]
