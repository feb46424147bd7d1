import pytest

from orphan_connector.config import settings
from tests.conftest import make_config

ENV_VARS = [
    "IDN_BASE_URL",
    "IDN_CLIENT_ID",
    "IDN_CLIENT_SECRET",
    "IDN_SOURCES",
    "ONLY_ENABLED",
    "MAKE_ENTITLEMENTS_REQUESTABLE",
    "CONNECTOR_SOURCE_NAME",
    "IDENTITY_KEY_STRATEGY",
    "IDENTITY_MATCH_ATTRIBUTE",
    "REQUEST_TIMEOUT",
    "CONNECTOR_API_TOKEN",
]


@pytest.fixture()
def secrets_dir(monkeypatch, tmp_path):
    """Point /run/secrets at an empty temp dir and clear connector env vars."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    real_path = settings.Path

    def fake_path(target):
        if str(target) == "/run/secrets":
            return tmp_path
        return real_path(target)

    monkeypatch.setattr(settings, "Path", fake_path)
    return tmp_path


def set_required(monkeypatch):
    monkeypatch.setenv("IDN_BASE_URL", "https://acme.api.identitynow.com/")
    monkeypatch.setenv("IDN_CLIENT_ID", "client-id")
    monkeypatch.setenv("IDN_CLIENT_SECRET", "env-secret")


def test_load_settings_defaults(monkeypatch, secrets_dir):
    set_required(monkeypatch)

    cfg = settings.load_settings()

    assert cfg.base_url == "https://acme.api.identitynow.com"
    assert cfg.client_secret == "env-secret"
    assert cfg.sources == []
    assert cfg.only_enabled is False
    assert cfg.identity_key_strategy == "fixed"
    assert cfg.identity_match_attribute == "uid"
    assert cfg.request_timeout == 30.0
    assert cfg.api_token == ""


def test_load_settings_parses_lists_and_flags(monkeypatch, secrets_dir):
    set_required(monkeypatch)
    monkeypatch.setenv("IDN_SOURCES", "Active Directory, Workday ,,")
    monkeypatch.setenv("ONLY_ENABLED", "true")
    monkeypatch.setenv("MAKE_ENTITLEMENTS_REQUESTABLE", "1")
    monkeypatch.setenv("CONNECTOR_SOURCE_NAME", "Orphans")
    monkeypatch.setenv("IDENTITY_KEY_STRATEGY", "Schema")
    monkeypatch.setenv("IDENTITY_MATCH_ATTRIBUTE", "name")

    cfg = settings.load_settings()

    assert cfg.sources == ["Active Directory", "Workday"]
    assert cfg.only_enabled is True
    assert cfg.make_entitlements_requestable is True
    assert cfg.connector_source_name == "Orphans"
    assert cfg.identity_key_strategy == "schema"
    assert cfg.identity_match_attribute == "name"


def test_client_secret_prefers_run_secrets(monkeypatch, secrets_dir):
    set_required(monkeypatch)
    (secrets_dir / "idn_client_secret").write_text("file-secret\n")

    assert settings.load_settings().client_secret == "file-secret"


def test_api_token_from_run_secrets(monkeypatch, secrets_dir):
    set_required(monkeypatch)
    (secrets_dir / "connector_api_token").write_text("file-token")

    assert settings.load_settings().api_token == "file-token"


@pytest.mark.parametrize("missing", ["IDN_BASE_URL", "IDN_CLIENT_ID", "IDN_CLIENT_SECRET"])
def test_missing_required_setting(monkeypatch, secrets_dir, missing):
    set_required(monkeypatch)
    monkeypatch.delenv(missing)

    with pytest.raises(RuntimeError):
        settings.load_settings()


def test_invalid_strategy_rejected(monkeypatch, secrets_dir):
    set_required(monkeypatch)
    monkeypatch.setenv("IDENTITY_KEY_STRATEGY", "random")

    with pytest.raises(ValueError):
        settings.load_settings()


def test_config_validates_enum_fields():
    with pytest.raises(ValueError):
        make_config(identity_match_attribute="email")
    with pytest.raises(ValueError):
        make_config(identity_key_strategy="uuid")
