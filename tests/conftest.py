"""Pytest shared fixtures: fake IdentityNow transport and connector settings."""
import json
import pathlib
import sys
from types import SimpleNamespace
from typing import Callable, Optional
from urllib.parse import urlsplit

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from orphan_connector import audit
from orphan_connector.config import ConnectorConfig
from orphan_connector.core.dispatcher import OrphanAccountConnector
from orphan_connector.core.identitynow import Credentials, IdentityNowClient, RetryPolicy

BASE_URL = "https://acme.api.identitynow.com"


# ─────────────────────────────────────────────────────────────────────────────
# Fake HTTP transport
# ─────────────────────────────────────────────────────────────────────────────
def make_response(
    status: int = 200,
    payload=None,
    headers: Optional[dict] = None,
    url: str = BASE_URL,
) -> requests.Response:
    """Build a real requests.Response carrying a JSON payload."""
    resp = requests.Response()
    resp.status_code = status
    resp._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    resp.encoding = "utf-8"
    resp.headers.update(headers or {})
    resp.url = url
    return resp


def token_response(token: str = "test-token", expires_in: int = 3600) -> requests.Response:
    return make_response(200, {"access_token": token, "expires_in": expires_in, "token_type": "bearer"})


class FakeSession:
    """Stand-in for requests.Session that records every call.

    Token requests (``/oauth/token``) are answered automatically; all other
    requests go to ``responder(method, url, kwargs)`` or are popped from
    ``queue`` in order.
    """

    def __init__(self, responder: Optional[Callable] = None):
        self.responder = responder
        self.queue: list = []
        self.calls: list = []

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def request(self, method, url, **kwargs):
        self.calls.append(SimpleNamespace(method=method, url=url, kwargs=kwargs))
        if url.endswith("/oauth/token"):
            return token_response()
        if self.queue:
            item = self.queue.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        if self.responder is None:
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return self.responder(method, url, kwargs)

    @property
    def api_calls(self) -> list:
        """Calls other than the token grant."""
        return [call for call in self.calls if not call.url.endswith("/oauth/token")]

    @property
    def token_calls(self) -> list:
        return [call for call in self.calls if call.url.endswith("/oauth/token")]


class FakeIdentityNow:
    """In-memory tenant answering the endpoints the connector calls."""

    def __init__(self, accounts=None, sources=None, identities=None, entitlements=None):
        self.sources = sources if sources is not None else [{"id": "src-1", "name": "Active Directory"}]
        self.accounts = {item["id"]: dict(item) for item in (accounts or [])}
        self.identities = identities or []
        self.entitlements = [dict(item) for item in (entitlements or [])]
        self.session = FakeSession(self.respond)

    def connector(self, **overrides):
        return OrphanAccountConnector(make_config(**overrides), client=make_client(self.session))

    def respond(self, method, url, kwargs):
        path = urlsplit(url).path
        parts = path.strip("/").split("/")

        if path == "/beta/public-identities-config":
            return make_response(200, {"attributes": []})
        if path == "/v3/sources":
            return self._page(self.sources, kwargs)
        if path == "/beta/accounts":
            orphans = [a for a in self.accounts.values() if not a.get("identityId")]
            return self._page(orphans, kwargs)
        if parts[:2] == ["beta", "accounts"]:
            return self._account(method, parts[2:], kwargs)
        if path == "/v3/search":
            return self._search(kwargs["json"]["query"]["query"])
        if path == "/beta/entitlements":
            return self._page(self.entitlements, kwargs)
        if parts[:2] == ["beta", "entitlements"] and method == "PATCH":
            entitlement = next((e for e in self.entitlements if e["id"] == parts[2]), None)
            if entitlement is None:
                return make_response(404, {"messages": ["entitlement not found"]})
            entitlement["requestable"] = True
            return make_response(200, entitlement)
        return make_response(404, {"messages": [f"no route for {path}"]})

    def _account(self, method, rest, kwargs):
        account = self.accounts.get(rest[0])
        if account is None:
            return make_response(404, {"messages": ["account not found"]})
        if len(rest) == 2 and method == "POST":
            account["disabled"] = rest[1] == "disable"
            return make_response(202, {"id": "task-1"})
        if method == "PATCH":
            for operation in kwargs["json"]:
                if operation["path"] == "/identityId":
                    account["identityId"] = operation["value"]
                    account["uncorrelated"] = False
            return make_response(202, account)
        return make_response(200, account)

    def _search(self, query):
        hits = [
            {"id": identity["id"], "name": identity["name"]}
            for identity in self.identities
            if query in (f'name.exact:"{identity["name"]}"', f'attributes.uid.exact:"{identity["uid"]}"')
        ]
        return make_response(200, hits[:1])

    @staticmethod
    def _page(items, kwargs):
        params = kwargs.get("params") or {}
        offset = int(params.get("offset", 0))
        limit = int(params.get("limit", 250))
        return make_response(200, items[offset:offset + limit], {"X-Total-Count": str(len(items))})


def make_client(session: FakeSession, max_retries: int = 5) -> IdentityNowClient:
    """IdentityNow client over a fake session, with retries that never sleep."""
    policy = RetryPolicy(max_retries=max_retries, sleep=lambda seconds: None)
    return IdentityNowClient(Credentials("client-id", "client-secret", BASE_URL), session=session, retry_policy=policy)


def make_config(**overrides) -> ConnectorConfig:
    base = dict(
        base_url=BASE_URL,
        client_id="client-id",
        client_secret="client-secret",
        sources=["Active Directory"],
        only_enabled=False,
        make_entitlements_requestable=False,
        connector_source_name="",
        identity_key_strategy="fixed",
        identity_match_attribute="uid",
    )
    base.update(overrides)
    return ConnectorConfig(**base)


def account_payload(account_id: str = "acc-1", **overrides) -> dict:
    base = {
        "id": account_id,
        "name": "jdoe",
        "sourceId": "src-1",
        "sourceName": "Active Directory",
        "disabled": False,
        "locked": False,
        "identityId": None,
        "uncorrelated": True,
    }
    base.update(overrides)
    return base


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def session():
    return FakeSession()


@pytest.fixture()
def client(session):
    return make_client(session)


@pytest.fixture(autouse=True)
def temp_audit_dir(monkeypatch, tmp_path):
    """Keep audit events out of the working tree."""
    audit_dir = tmp_path / "audit"
    audit_file = audit_dir / "lifecycle-events.jsonl"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_file)
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    return audit_dir, audit_file
