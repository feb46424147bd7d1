"""Low-level HTTP client for the IdentityNow REST API.

Handles authentication, retry and error classification for every request.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import requests

from .exceptions import IdentityNowAPIError, NotFoundError, TransientError
from .retry import RetryPolicy
from .tokens import Credentials, TokenManager, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

JSON_PATCH_CONTENT_TYPE = "application/json-patch+json"


class IdentityNowClient:
    """HTTP client for the IdentityNow API with automatic token management.

    Features:
    - Bearer token acquired and refreshed through TokenManager
    - Every request wrapped by RetryPolicy (network errors, 5xx, 429)
    - A 401 drops the cached token and resends once
    - Centralized error handling into the connector exception taxonomy

    Usage:
        client = IdentityNowClient(Credentials("id", "secret", "https://acme.api.identitynow.com"))
        resp = client.get("/beta/accounts/2c91808a")
    """

    def __init__(
        self,
        credentials: Credentials,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
        token_manager: Optional[TokenManager] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """Initialize IdentityNow client.

        Args:
            credentials: Client id/secret and API base URL
            session: Optional requests session (shared with the token manager)
            retry_policy: Retry policy for API calls (defaults to 5 retries, 2s base)
            token_manager: Optional pre-built token manager
            timeout: Per-request timeout in seconds
        """
        self.credentials = credentials
        self.base_url = credentials.base_url.rstrip("/")
        self.session = session or requests.Session()
        self.retry = retry_policy or RetryPolicy()
        self.timeout = timeout
        self.tokens = token_manager or TokenManager(
            credentials,
            session=self.session,
            retry_policy=self.retry,
            timeout=timeout,
        )

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        """Execute GET request with automatic authentication.

        Raises:
            IdentityNowAPIError: On HTTP error (NotFoundError for 404)
        """
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        """Execute POST request with a JSON body."""
        return self.request("POST", path, json=json, params=params, **kwargs)

    def patch(self, path: str, operations: list[dict], **kwargs) -> requests.Response:
        """Execute a JSON-patch request (RFC 6902 operations list)."""
        headers = kwargs.pop("headers", {})
        headers["Content-Type"] = JSON_PATCH_CONTENT_TYPE
        return self.request("PATCH", path, json=operations, headers=headers, **kwargs)

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        """Send an authenticated request, retrying transient failures.

        A 401 drops the cached token and the request is sent once more with a
        freshly granted one.
        """
        url = f"{self.base_url}{path}"
        try:
            return self.retry.call(lambda: self._send(method, url, **kwargs), description=url)
        except IdentityNowAPIError as exc:
            if exc.status_code != 401:
                raise
            logger.info("Access token rejected by %s; requesting a new one", url)
            self.tokens.invalidate()
            return self.retry.call(lambda: self._send(method, url, **kwargs), description=url)

    def test_connection(self) -> dict:
        """Call the public identities configuration endpoint."""
        return self.get("/beta/public-identities-config").json()

    def _send(self, method: str, url: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> requests.Response:
        headers = {"Accept": "application/json", **(headers or {})}
        headers["Authorization"] = f"Bearer {self.tokens.get_token()}"
        try:
            resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransientError(0, str(exc), url) from exc
        self._handle_error(resp, url)
        return resp

    def _handle_error(self, resp: requests.Response, url: str) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            TransientError: 429 or 5xx (retryable)
            NotFoundError: 404
            IdentityNowAPIError: Any other status >= 400
        """
        status = resp.status_code
        if status < 400:
            return
        if status == 429 or status >= 500:
            raise TransientError(status, resp.text, url)
        if status == 404:
            raise NotFoundError(resp.text, url)
        raise IdentityNowAPIError(status, resp.text, url)
