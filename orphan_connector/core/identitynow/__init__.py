"""IdentityNow REST API client library.

This package provides a modular, testable interface to the IdentityNow
operations needed to manage orphan (uncorrelated) accounts.

Architecture:
- tokens.py: OAuth2 client-credentials token cache
- retry.py: Bounded exponential-backoff retry policy
- client.py: HTTP client with authentication, retry and error classification
- pagination.py: Offset pagination driven by X-Total-Count
- filters.py: Filter/search query builders with value escaping
- accounts.py: Account listing, lookup, enable/disable, correlation
- sources.py: Source listing and name-to-id resolution
- entitlements.py: Entitlement listing and requestability
- identities.py: Identity search by name or uid
- exceptions.py: Typed exceptions for error handling

Usage:
    from orphan_connector.core.identitynow import Credentials, IdentityNowClient, AccountService

    client = IdentityNowClient(Credentials("id", "secret", "https://acme.api.identitynow.com"))
    accounts = AccountService(client).list_orphan_accounts(["2c9180835d191a86015d28455b4a2329"])
"""
from .tokens import AccessToken, Credentials, TokenManager, REQUEST_TIMEOUT
from .retry import RetryPolicy
from .client import IdentityNowClient
from .pagination import PAGE_SIZE, fetch_all, parse_total_count
from .accounts import AccountService
from .sources import SourceService
from .entitlements import EntitlementService
from .identities import IdentityService
from .exceptions import (
    ConnectorError,
    IdentityNowAPIError,
    TransientError,
    NotFoundError,
    AuthError,
    ParseError,
    UnsupportedOperationError,
)

__all__ = [
    # Client
    "AccessToken",
    "Credentials",
    "TokenManager",
    "RetryPolicy",
    "IdentityNowClient",
    "REQUEST_TIMEOUT",
    "PAGE_SIZE",
    "fetch_all",
    "parse_total_count",

    # Services
    "AccountService",
    "SourceService",
    "EntitlementService",
    "IdentityService",

    # Exceptions
    "ConnectorError",
    "IdentityNowAPIError",
    "TransientError",
    "NotFoundError",
    "AuthError",
    "ParseError",
    "UnsupportedOperationError",
]
