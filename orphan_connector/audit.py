"""Audit logging for orphan account lifecycle actions."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "lifecycle-events.jsonl"

EventType = Literal[
    "enable", "disable", "correlate", "make_requestable",
]


def _get_signing_key() -> bytes:
    """Get the audit signing key from environment (empty when unset)."""
    return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")


def _ensure_audit_dir() -> None:
    """Create audit directory with restricted permissions."""
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_lifecycle_event(
    event_type: EventType,
    target: str,
    *,
    operator: str = "connector",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a lifecycle event to the audit trail with timestamp and signature.

    Args:
        event_type: Lifecycle action (enable, disable, correlate, make_requestable)
        target: Account or entitlement id affected by the action
        operator: Who performed the action ("connector", "cli", ...)
        details: Additional context (identity id, error message, ...)
        success: Whether the action succeeded
    """
    _ensure_audit_dir()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "target": target,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_lifecycle_event(
    event_type: EventType,
    target: str,
    *,
    operator: str = "connector",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Log a lifecycle event, never raising.

    Returns:
        True if the event was written, False if logging failed
    """
    try:
        log_lifecycle_event(event_type, target, operator=operator, details=details, success=success)
        return True
    except OSError as e:
        logger.warning("[audit] Failed to log %s event for %s: %s", event_type, target, e)
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    total = 0
    valid = 0

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            stored_sig = event.pop("signature", "")
            if stored_sig and hmac.compare_digest(stored_sig, _sign_event(event)):
                valid += 1

    return total, valid
