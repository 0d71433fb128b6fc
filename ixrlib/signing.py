"""
Request Signing for the iXR Library

Produces the headers that let the server verify a request is authentic and
untampered without the shared secret ever crossing the wire.

Algorithm:
- base = token + secret + unix_seconds
- if the request has a body, append the decimal CRC32 of its compact JSON bytes
- signature = base64(SHA-256(base))

Example:
    from ixrlib.signing import RequestSigner, verify_signature

    headers = RequestSigner(session).sign(b'{"a":1}')
    # server side
    verify_signature(headers.as_dict(), b'{"a":1}', token, secret)
"""

import base64
import hashlib
import hmac
import json
import time
import zlib
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

if TYPE_CHECKING:
    from .session import Session


AUTHORIZATION_HEADER = "Authorization"
HASH_HEADER = "X-iXRLib-Hash"
TIMESTAMP_HEADER = "X-iXRLib-Timestamp"

# Default timestamp tolerance in seconds (5 minutes)
DEFAULT_TIMESTAMP_TOLERANCE = 300


@dataclass(frozen=True)
class SignedHeaders:
    """Per-request authentication headers. Derived, never stored."""

    authorization: str
    signature: str
    timestamp: str

    def as_dict(self) -> Dict[str, str]:
        return {
            AUTHORIZATION_HEADER: self.authorization,
            HASH_HEADER: self.signature,
            TIMESTAMP_HEADER: self.timestamp,
        }


def serialize_body(body: Any) -> bytes:
    """Serialize a request body deterministically (compact JSON, insertion order, UTF-8)."""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def checksum(data: bytes) -> int:
    """Unsigned CRC32 of the given bytes."""
    return zlib.crc32(data) & 0xFFFFFFFF


def digest(data: bytes) -> str:
    """Base64-encoded SHA-256 digest."""
    return base64.b64encode(hashlib.sha256(data).digest()).decode("ascii")


def compute_signature(
    token: str,
    secret: str,
    timestamp: str,
    body: Optional[bytes] = None,
) -> str:
    """
    Compute the request signature.

    Args:
        token: Session token
        secret: Shared secret paired with the token
        timestamp: Unix seconds as a string
        body: Serialized request body, or None for body-less requests

    Returns:
        Base64 signature
    """
    base = token + secret + timestamp
    if body is not None:
        base += str(checksum(body))
    return digest(base.encode("utf-8"))


class RequestSigner:
    """Signs requests with the session's current credentials."""

    def __init__(self, session: "Session") -> None:
        self._session = session

    def sign(self, body: Optional[bytes] = None, timestamp: Optional[int] = None) -> Optional[SignedHeaders]:
        """
        Build signed headers, or None when the session holds no complete
        token/secret pair (such requests go out unsigned).
        """
        credentials = self._session.credentials
        if not credentials.is_complete:
            return None

        now = str(int(time.time()) if timestamp is None else timestamp)
        return SignedHeaders(
            authorization=f"Bearer {credentials.token}",
            signature=compute_signature(credentials.token, credentials.secret, now, body),
            timestamp=now,
        )


class SignatureVerificationErrorCode(str, Enum):
    """Error codes for signature verification failures."""
    MISSING_SIGNATURE = "MISSING_SIGNATURE"
    MISSING_TIMESTAMP = "MISSING_TIMESTAMP"
    MISSING_SECRET = "MISSING_SECRET"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"
    TIMESTAMP_EXPIRED = "TIMESTAMP_EXPIRED"
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"


class SignatureVerificationError(Exception):
    """Error thrown when a signed request fails verification."""

    def __init__(self, code: SignatureVerificationErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def verify_signature(
    headers: Mapping[str, str],
    body: Any,
    token: str,
    secret: Optional[str],
    timestamp_tolerance: int = DEFAULT_TIMESTAMP_TOLERANCE,
    current_timestamp: Optional[int] = None,
) -> bool:
    """
    Verify the signature headers of an incoming request.

    Args:
        headers: Request headers (case-insensitive lookup)
        body: Raw body bytes/str, a JSON-compatible object, or None
        token: Token the request claims to carry
        secret: Secret issued together with the token
        timestamp_tolerance: Maximum age in seconds (0 disables the check)
        current_timestamp: Current timestamp for testing (defaults to now)

    Returns:
        True if the signature is valid

    Raises:
        SignatureVerificationError: If verification fails
    """
    signature = _header(headers, HASH_HEADER)
    if not signature:
        raise SignatureVerificationError(
            SignatureVerificationErrorCode.MISSING_SIGNATURE,
            f"Missing {HASH_HEADER} header"
        )

    raw_timestamp = _header(headers, TIMESTAMP_HEADER)
    if not raw_timestamp:
        raise SignatureVerificationError(
            SignatureVerificationErrorCode.MISSING_TIMESTAMP,
            f"Missing {TIMESTAMP_HEADER} header"
        )

    if not secret:
        raise SignatureVerificationError(
            SignatureVerificationErrorCode.MISSING_SECRET,
            "Missing signing secret"
        )

    try:
        timestamp = int(raw_timestamp)
    except ValueError:
        raise SignatureVerificationError(
            SignatureVerificationErrorCode.INVALID_TIMESTAMP,
            f"Invalid timestamp: {raw_timestamp!r}"
        )

    if current_timestamp is None:
        current_timestamp = int(time.time())

    if timestamp_tolerance > 0:
        age = current_timestamp - timestamp
        if age > timestamp_tolerance:
            raise SignatureVerificationError(
                SignatureVerificationErrorCode.TIMESTAMP_EXPIRED,
                f"Request timestamp too old ({age}s > {timestamp_tolerance}s tolerance)"
            )
        if age < -timestamp_tolerance:
            raise SignatureVerificationError(
                SignatureVerificationErrorCode.TIMESTAMP_EXPIRED,
                "Request timestamp is in the future"
            )

    body_bytes = None if body is None else serialize_body(body)
    expected = compute_signature(token, secret, raw_timestamp, body_bytes)

    if not hmac.compare_digest(signature, expected):
        raise SignatureVerificationError(
            SignatureVerificationErrorCode.SIGNATURE_MISMATCH,
            "Request signature does not match"
        )

    return True
