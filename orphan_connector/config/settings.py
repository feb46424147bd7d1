"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

IDENTITY_KEY_STRATEGIES = ("fixed", "schema")
IDENTITY_MATCH_ATTRIBUTES = ("uid", "name")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("[settings] Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("[settings] Failed to read /run/secrets/%s: %s", secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.info("[settings] Loaded %s from environment (fallback)", env_var)
            return secret_value

    return None


def _env_flag(var_name: str, default: bool = False) -> bool:
    return os.environ.get(var_name, str(default)).strip().lower() in ("1", "true", "yes")


def _env_list(var_name: str) -> list[str]:
    return [item.strip() for item in os.environ.get(var_name, "").split(",") if item.strip()]


def _require(var_name: str) -> str:
    value = os.environ.get(var_name, "").strip()
    if not value:
        raise RuntimeError(f"Environment variable {var_name} is required.")
    return value


def _choice(var_name: str, default: str, choices: tuple[str, ...]) -> str:
    value = os.environ.get(var_name, default).strip().lower()
    if value not in choices:
        raise ValueError(f"{var_name} must be one of {', '.join(choices)} (got '{value}')")
    return value


@dataclass
class ConnectorConfig:
    """Connector configuration container."""
    # IdentityNow API
    base_url: str
    client_id: str
    client_secret: str

    # Scope
    sources: list[str] = field(default_factory=list)
    only_enabled: bool = False

    # Entitlements
    make_entitlements_requestable: bool = False
    connector_source_name: str = ""

    # Record shaping / correlation
    identity_key_strategy: str = "fixed"
    identity_match_attribute: str = "uid"

    # HTTP
    request_timeout: float = 30.0

    # Command API (optional bearer token)
    api_token: str = ""

    def __post_init__(self) -> None:
        if self.identity_key_strategy not in IDENTITY_KEY_STRATEGIES:
            raise ValueError(f"identity_key_strategy must be one of {IDENTITY_KEY_STRATEGIES}")
        if self.identity_match_attribute not in IDENTITY_MATCH_ATTRIBUTES:
            raise ValueError(f"identity_match_attribute must be one of {IDENTITY_MATCH_ATTRIBUTES}")


def load_settings() -> ConnectorConfig:
    """Load connector settings from environment and /run/secrets."""
    base_url = _require("IDN_BASE_URL").rstrip("/")
    client_id = _require("IDN_CLIENT_ID")

    client_secret = _load_secret_from_file("idn_client_secret", "IDN_CLIENT_SECRET")
    if not client_secret:
        raise RuntimeError("IDN_CLIENT_SECRET not found in /run/secrets or environment")

    api_token = _load_secret_from_file("connector_api_token", "CONNECTOR_API_TOKEN") or ""

    sources = _env_list("IDN_SOURCES")
    if not sources:
        logger.warning("[settings] IDN_SOURCES is empty; no orphan accounts will be listed")

    cfg = ConnectorConfig(
        base_url=base_url,
        client_id=client_id,
        client_secret=client_secret,
        sources=sources,
        only_enabled=_env_flag("ONLY_ENABLED"),
        make_entitlements_requestable=_env_flag("MAKE_ENTITLEMENTS_REQUESTABLE"),
        connector_source_name=os.environ.get("CONNECTOR_SOURCE_NAME", "").strip(),
        identity_key_strategy=_choice("IDENTITY_KEY_STRATEGY", "fixed", IDENTITY_KEY_STRATEGIES),
        identity_match_attribute=_choice("IDENTITY_MATCH_ATTRIBUTE", "uid", IDENTITY_MATCH_ATTRIBUTES),
        request_timeout=float(os.environ.get("REQUEST_TIMEOUT", "30")),
        api_token=api_token,
    )

    if cfg.make_entitlements_requestable and not cfg.connector_source_name:
        logger.warning(
            "[settings] MAKE_ENTITLEMENTS_REQUESTABLE=true has no effect without CONNECTOR_SOURCE_NAME"
        )

    logger.info(
        "[settings] base_url=%s; sources=%s; only_enabled=%s; key_strategy=%s",
        cfg.base_url,
        cfg.sources,
        cfg.only_enabled,
        cfg.identity_key_strategy,
    )
    return cfg
