"""Typed views over IdentityNow API records."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Source:
    id: str
    name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Source":
        return cls(id=data["id"], name=data.get("name") or "")


@dataclass(frozen=True)
class Account:
    """Snapshot of an account; re-fetch after any lifecycle action."""
    id: str
    name: Optional[str]
    source_id: Optional[str]
    source_name: Optional[str]
    disabled: bool = False
    locked: bool = False
    identity_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Account":
        return cls(
            id=data.get("id") or "",
            name=data.get("name"),
            source_id=data.get("sourceId"),
            source_name=data.get("sourceName"),
            disabled=bool(data.get("disabled", False)),
            locked=bool(data.get("locked", False)),
            identity_id=data.get("identityId"),
        )


@dataclass(frozen=True)
class Identity:
    id: str
    name: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Identity":
        return cls(id=data["id"], name=data.get("name"))


@dataclass(frozen=True)
class AccountSchema:
    """Host-supplied account schema: which attributes carry identity and display keys."""
    identity_attribute: str
    display_attribute: str

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["AccountSchema"]:
        if not data:
            return None
        return cls(
            identity_attribute=data.get("identityAttribute") or data["identity_attribute"],
            display_attribute=data.get("displayAttribute") or data["display_attribute"],
        )
