"""IdentityNow-specific exceptions for error handling."""


class ConnectorError(Exception):
    """Base exception for all connector operations."""
    pass


class IdentityNowAPIError(ConnectorError):
    """HTTP error from the IdentityNow REST API.

    Attributes:
        status_code: HTTP status code (0 when no response was received)
        message: Error message from response
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class TransientError(IdentityNowAPIError):
    """Network failure, 5xx or 429 response; eligible for retry."""
    pass


class NotFoundError(IdentityNowAPIError):
    """Requested resource does not exist."""

    def __init__(self, message: str, endpoint: str = ""):
        super().__init__(404, message, endpoint)


class AuthError(ConnectorError):
    """Client-credentials token grant failed."""
    pass


class ParseError(ConnectorError):
    """Upstream response metadata could not be parsed (e.g. total-count header)."""
    pass


class UnsupportedOperationError(ConnectorError):
    """Attribute change operation is not supported for orphan accounts."""
    pass
