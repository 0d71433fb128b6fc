"""
iXR Library Type Definitions

Configuration, wire schemas and value types shared by the sync and async clients.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional, Protocol, runtime_checkable

from .errors import ValidationError


DEFAULT_BASE_URL = "https://libapi.informxr.io"
DEFAULT_RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# Credential persistence keys
TOKEN_KEY = "apiToken"
SECRET_KEY = "apiSecret"
SESSION_ID_KEY = "sessionId"
EXPIRATION_KEY = "tokenExpiration"
CREDENTIAL_KEYS = (TOKEN_KEY, SECRET_KEY, SESSION_ID_KEY, EXPIRATION_KEY)


@runtime_checkable
class CredentialStore(Protocol):
    """Backing store interface for custom credential persistence.

    A store may also define ``update(values)`` to apply several writes as
    one unit (a None value removes the key). Stores without it are written
    key by key, secret before token.
    """

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent or unreadable."""
        ...

    def set(self, key: str, value: str) -> None:
        """Persist a value."""
        ...

    def remove(self, key: str) -> None:
        """Delete a value if present."""
        ...


@dataclass(frozen=True)
class RetryConfig:
    """Retry behaviour for one client instance."""

    # Maximum number of retries after the first attempt (default: 3)
    max_retries: int = 3
    # Base delay for exponential backoff in milliseconds (default: 1000)
    base_delay_ms: int = 1000
    # HTTP statuses treated as transient
    retryable_status_codes: FrozenSet[int] = DEFAULT_RETRYABLE_STATUS_CODES
    # Optional upper bound on a single delay in milliseconds
    max_delay_ms: Optional[int] = None

    def __post_init__(self) -> None:
        # Accept any iterable of codes but always hold a frozenset
        object.__setattr__(
            self, "retryable_status_codes", frozenset(self.retryable_status_codes)
        )


@dataclass
class IXRConfig:
    """Client configuration, injected at construction."""

    # API base URL
    base_url: str = DEFAULT_BASE_URL
    # Per-call timeout in seconds (default: 10)
    timeout: float = 10.0
    # Retry policy settings
    retry: RetryConfig = field(default_factory=RetryConfig)
    # Credential backing store (default: None, uses MemoryStorage)
    storage: Optional[CredentialStore] = None
    # Custom headers to include in requests
    headers: Optional[Dict[str, str]] = None
    # Enable debug logging (default: False)
    debug: bool = False

    def validate(self) -> None:
        if not self.base_url:
            raise ValidationError("base_url is required", details={"field": "base_url"})
        if self.timeout <= 0:
            raise ValidationError("timeout must be positive", details={"field": "timeout"})
        if self.retry.max_retries < 0:
            raise ValidationError("max_retries cannot be negative", details={"field": "max_retries"})
        if self.retry.base_delay_ms < 0:
            raise ValidationError("base_delay_ms cannot be negative", details={"field": "base_delay_ms"})

    @staticmethod
    def from_env(**overrides: Any) -> "IXRConfig":
        """Build a configuration from IXR_* environment variables."""
        defaults = RetryConfig()
        raw_statuses = os.getenv("IXR_RETRYABLE_STATUSES", "").strip()
        try:
            statuses = (
                frozenset(int(s) for s in raw_statuses.split(",") if s.strip())
                if raw_statuses
                else defaults.retryable_status_codes
            )
            retry = RetryConfig(
                max_retries=int(os.getenv("IXR_MAX_RETRIES", str(defaults.max_retries))),
                base_delay_ms=int(os.getenv("IXR_RETRY_DELAY_MS", str(defaults.base_delay_ms))),
                retryable_status_codes=statuses,
            )
            timeout = int(os.getenv("IXR_TIMEOUT_MS", "10000")) / 1000.0
        except ValueError as e:
            raise ValidationError(f"Invalid IXR_* environment value: {e}") from e

        values: Dict[str, Any] = {
            "base_url": os.getenv("IXR_BASE_URL", DEFAULT_BASE_URL).strip(),
            "timeout": timeout,
            "retry": retry,
            "debug": os.getenv("IXR_DEBUG", "").strip().lower() in ("1", "true", "yes"),
        }
        values.update(overrides)
        return IXRConfig(**values)


@dataclass
class AuthRequest:
    """Data posted to the token endpoint."""

    app_id: str
    org_id: str = ""
    device_id: str = ""
    auth_secret: str = ""
    ip_address: Optional[str] = None
    device_model: Optional[str] = None
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    tags: Optional[List[str]] = None
    partner: Optional[str] = None
    geolocation: Optional[Dict[str, Any]] = None
    os_version: Optional[str] = None
    xrdm_version: Optional[str] = None
    app_version: Optional[str] = None

    _WIRE_NAMES = {
        "app_id": "appId",
        "org_id": "orgId",
        "device_id": "deviceId",
        "auth_secret": "authSecret",
        "ip_address": "ipAddress",
        "device_model": "deviceModel",
        "session_id": "sessionId",
        "user_id": "userId",
        "tags": "tags",
        "partner": "partner",
        "geolocation": "geolocation",
        "os_version": "osVersion",
        "xrdm_version": "xrdmVersion",
        "app_version": "appVersion",
    }

    def validate(self) -> None:
        if not self.app_id:
            raise ValidationError(
                "app_id is required", code="MISSING_APP_ID", details={"field": "app_id"}
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API requests."""
        result: Dict[str, Any] = {}
        for attr, wire_name in self._WIRE_NAMES.items():
            value = getattr(self, attr)
            if value is None:
                continue
            result[wire_name] = value
        return result


@dataclass(frozen=True)
class Credentials:
    """Live token/secret/session triple used to authenticate requests."""

    token: str = ""
    secret: str = ""
    session_id: str = ""
    expires_at: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.token and self.secret)


@dataclass
class ApiResponse:
    """Normalized response, independent of the transport's response shape."""

    data: Any
    status: int
    status_text: str
