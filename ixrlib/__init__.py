"""
iXR Library Python Client
ixrlib

A Python client for the iXR telemetry and analytics service with async
support, request signing, automatic login and retry with exponential backoff.
"""

from .client import (
    IXRClient,
    AsyncIXRClient,
    create_ixr_client,
    create_async_ixr_client,
)
from .types import (
    IXRConfig,
    RetryConfig,
    AuthRequest,
    Credentials,
    ApiResponse,
    CredentialStore,
)
from .errors import (
    IXRError,
    ValidationError,
    AuthenticationError,
    TransportError,
    RetryExhaustedError,
    ServerError,
    is_ixr_error,
)
from .payloads import ResultOptions
from .retry import RetryPolicy
from .session import Session
from .signing import (
    RequestSigner,
    SignedHeaders,
    SignatureVerificationError,
    verify_signature,
)
from .storage import MemoryStorage, FileStorage, EnvironmentStorage

__version__ = "0.1.0"
__all__ = [
    # Clients
    "IXRClient",
    "AsyncIXRClient",
    "create_ixr_client",
    "create_async_ixr_client",
    # Types
    "IXRConfig",
    "RetryConfig",
    "AuthRequest",
    "Credentials",
    "ApiResponse",
    "CredentialStore",
    "ResultOptions",
    # Core components
    "RetryPolicy",
    "Session",
    "RequestSigner",
    "SignedHeaders",
    "SignatureVerificationError",
    "verify_signature",
    # Errors
    "IXRError",
    "ValidationError",
    "AuthenticationError",
    "TransportError",
    "RetryExhaustedError",
    "ServerError",
    "is_ixr_error",
    # Storage
    "MemoryStorage",
    "FileStorage",
    "EnvironmentStorage",
]
