"""Custom exception hierarchy for the browser API gateway."""


class ProxyError(Exception):
    """Base exception for all gateway errors."""


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class RequestTooLarge(ProxyError):
    """Request body exceeds size limit."""


class UpstreamError(ProxyError):
    """Raised when an upstream call fails at the transport level.

    Attributes:
        message: Error message
        target_url: URL the gateway was calling
    """

    def __init__(self, message: str, target_url: str | None = None) -> None:
        super().__init__(message)
        self.target_url = target_url


class UpstreamTimeoutError(UpstreamError):
    """Raised when an upstream call exceeds its deadline."""


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to reach or talk to an upstream."""


class UpstreamCancelled(UpstreamError):
    """Raised when the client disconnected before the upstream answered."""
