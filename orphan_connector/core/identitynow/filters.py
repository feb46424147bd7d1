"""Filter and search query builders for the IdentityNow API.

List endpoints accept a ``filters`` expression such as::

    sourceId in ("a", "b") and uncorrelated eq true
    name eq "HR" or name eq "Finance"

Values are always double-quoted; backslashes and embedded double quotes are
escaped so a source or identity name can never close the quoted literal.
"""
from __future__ import annotations
from typing import Iterable


def quote(value: str) -> str:
    """Return value as a double-quoted, escaped filter literal."""
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def eq(field: str, value: str) -> str:
    return f"{field} eq {quote(value)}"


def any_eq(field: str, values: Iterable[str]) -> str:
    """Join one equality clause per value with ``or``."""
    return " or ".join(eq(field, value) for value in values)


def in_(field: str, values: Iterable[str]) -> str:
    return f"{field} in ({', '.join(quote(value) for value in values)})"


def all_of(*clauses: str) -> str:
    """Join clauses with ``and``; clauses containing ``or`` are parenthesized."""
    parts = []
    for clause in clauses:
        if not clause:
            continue
        if " or " in clause and not (clause.startswith("(") and clause.endswith(")")):
            clause = f"({clause})"
        parts.append(clause)
    return " and ".join(parts)


def exact_search(field: str, value: str) -> str:
    """Build an exact-match search query, e.g. ``attributes.uid.exact:"jdoe"``."""
    return f"{field}.exact:{quote(value)}"
