"""OAuth2 client-credentials token management for the IdentityNow API."""
from __future__ import annotations
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urlsplit

import requests

from .exceptions import AuthError, TransientError
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

TOKEN_URL_PATH = "/oauth/token"
REQUEST_TIMEOUT = 30


@dataclass(frozen=True)
class Credentials:
    client_id: str
    client_secret: str
    base_url: str

    @property
    def token_url(self) -> str:
        """Token endpoint on the origin of the configured base URL."""
        parts = urlsplit(self.base_url)
        return f"{parts.scheme}://{parts.netloc}{TOKEN_URL_PATH}"


@dataclass(frozen=True)
class AccessToken:
    token: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TokenManager:
    """Client-credentials token cache with expiry-driven refresh.

    The cached token is an immutable AccessToken replaced in a single
    assignment under a lock, so concurrent callers either see the previous
    token or the new one. Expiry uses a monotonic clock.

    Usage:
        manager = TokenManager(Credentials("id", "secret", "https://acme.api.identitynow.com"))
        headers = {"Authorization": f"Bearer {manager.get_token()}"}
    """

    def __init__(
        self,
        credentials: Credentials,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.credentials = credentials
        self._session = session or requests.Session()
        self._retry = retry_policy or RetryPolicy()
        self._clock = clock
        self._timeout = timeout
        self._token: Optional[AccessToken] = None
        self._lock = threading.Lock()

    def get_token(self) -> str:
        """Return a valid access token, refreshing synchronously if expired.

        Raises:
            AuthError: If the token endpoint rejects the grant or returns a malformed body
        """
        current = self._token
        if current is not None and not current.is_expired(self._clock()):
            return current.token

        with self._lock:
            current = self._token
            if current is None or current.is_expired(self._clock()):
                current = self._refresh()
                self._token = current
            return current.token

    def invalidate(self) -> None:
        """Drop the cached token so the next get_token() call refreshes."""
        with self._lock:
            self._token = None

    def _refresh(self) -> AccessToken:
        url = self.credentials.token_url
        try:
            resp = self._retry.call(lambda: self._request_token(url), description=url)
        except TransientError as exc:
            raise AuthError(f"Token request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise AuthError(f"[{resp.status_code}] {url}: {resp.text}")

        try:
            body = resp.json()
            token = body["access_token"]
            expires_in = float(body["expires_in"])
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthError(f"Malformed token response from {url}") from exc
        if not token:
            raise AuthError(f"Empty access token returned by {url}")
        if not math.isfinite(expires_in) or expires_in < 0:
            raise AuthError(f"Invalid expires_in {body['expires_in']!r} returned by {url}")

        logger.debug("Obtained access token from %s (expires_in=%ss)", url, expires_in)
        return AccessToken(token=token, expires_at=self._clock() + expires_in)

    def _request_token(self, url: str) -> requests.Response:
        params = {
            "client_id": self.credentials.client_id,
            "client_secret": self.credentials.client_secret,
            "grant_type": "client_credentials",
        }
        try:
            resp = self._session.post(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransientError(0, str(exc), url) from exc
        if resp.status_code == 429 or resp.status_code >= 500:
            raise TransientError(resp.status_code, resp.text, url)
        return resp
