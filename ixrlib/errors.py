"""
iXR Library Error Classes

Every caller-facing method surfaces exactly one of the error kinds below,
wrapping the transport's original status and message.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class IXRError(Exception):
    """Base error class for the iXR client."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    @property
    def method(self) -> Optional[str]:
        return self.details.get("method")

    @property
    def path(self) -> Optional[str]:
        return self.details.get("path")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "name": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(IXRError):
    """Missing required auth field or invalid configuration. Raised before any network call."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, 0, details)


class AuthenticationError(IXRError):
    """The login exchange failed."""

    def __init__(
        self,
        message: str,
        code: str = "AUTHENTICATION_FAILED",
        status_code: int = 401,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, status_code, details)


class TransportError(IXRError):
    """Network-level failure (connection issues, timeouts); no response was received."""

    def __init__(
        self,
        message: str,
        code: str = "TRANSPORT_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, 0, details)


class RetryExhaustedError(IXRError):
    """A retryable status was still returned after the configured number of retries."""

    def __init__(
        self,
        message: str,
        status_code: int,
        attempts: int,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__("RETRY_EXHAUSTED", message, status_code, details)
        self.attempts = attempts


class ServerError(IXRError):
    """Non-retryable status returned by the server."""

    def __init__(
        self,
        message: str,
        status_code: int,
        code: str = "SERVER_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, status_code, details)

    @classmethod
    def from_api_response(
        cls, response: Any, status_code: int, details: Optional[Dict[str, Any]] = None
    ) -> "ServerError":
        """Create error from an API error body, which may be JSON, text, or empty."""
        error = response.get("error", {}) if isinstance(response, dict) else {}
        if not isinstance(error, dict):
            error = {"message": str(error)}
        merged = dict(details or {})
        message = f"HTTP {status_code}"
        if merged.get("method") and merged.get("path"):
            message = f"{merged['method']} {merged['path']} returned {message}"
        if error.get("message"):
            message = f"{message}: {error['message']}"
        if isinstance(response, dict):
            merged.setdefault("response", response)
        elif response:
            merged.setdefault("response", str(response)[:500])
        return cls(message, status_code, error.get("code", "SERVER_ERROR"), merged)


def is_ixr_error(error: Any) -> bool:
    """Check if error is an IXRError."""
    return isinstance(error, IXRError)
