"""
iXR Library API Client

Main client classes for the iXR telemetry and analytics service.
Every outbound call ensures the session is authenticated, signs the
request with the session's token and secret, dispatches it, and retries
transient failures with exponential backoff.

Provides both synchronous and asynchronous clients.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx
import jwt

from .errors import (
    IXRError,
    AuthenticationError,
    RetryExhaustedError,
    ServerError,
    TransportError,
)
from .payloads import (
    DEFAULT_ENTRY_NAME,
    ResultOptions,
    entries_by_name,
    event_payload,
    first_entry_data,
    log_payload,
    milestone_event,
    prompt_payload,
    query_params,
    storage_payload,
    telemetry_payload,
)
from .retry import RetryPolicy
from .session import Session
from .signing import RequestSigner, serialize_body
from .storage import MemoryStorage
from .types import ApiResponse, AuthRequest, IXRConfig


logger = logging.getLogger("ixrlib")

TOKEN_PATH = "/v1/auth/token"
PING_PATH = "/v1/auth/ping"
CONFIG_PATH = "/v1/config"
EVENT_PATH = "/v1/collect/event"
LOG_PATH = "/v1/collect/log"
TELEMETRY_PATH = "/v1/collect/telemetry"
LLM_PATH = "/v1/services/llm"
STORAGE_PATH = "/v1/storage"
STORAGE_CONFIG_PATH = "/v1/storage/config"

SENSITIVE_KEYS = frozenset({"apiToken", "apiSecret", "authSecret", "token", "secret", "Authorization"})

MetaArg = Union[str, Mapping[str, Any], None]


def redact_sensitive(data: Any) -> Any:
    """Copy of data with credential values replaced, safe to log."""
    if isinstance(data, Mapping):
        return {
            key: "[REDACTED]" if key in SENSITIVE_KEYS else redact_sensitive(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact_sensitive(item) for item in data]
    return data


def decode_token_expiry(token: str) -> Optional[datetime]:
    """Best-effort read of the JWT ``exp`` claim; None when absent or undecodable."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
        exp = claims.get("exp")
        if exp is None:
            return None
        return datetime.fromtimestamp(float(exp), tz=timezone.utc)
    except (jwt.PyJWTError, TypeError, ValueError, OverflowError) as e:
        logger.debug("[iXR] Token expiry not decodable: %s", e)
        return None


def _response_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            pass
    return response.text


# =============================================================================
# Shared client core
# =============================================================================

class _ClientCore:
    """Configuration, session and per-request plumbing shared by both clients."""

    def __init__(self, auth_request: AuthRequest, config: Optional[IXRConfig] = None) -> None:
        config = config or IXRConfig()
        config.validate()
        auth_request.validate()

        self._auth_request = auth_request
        self._base_url = config.base_url.rstrip("/")
        self._timeout = config.timeout
        self._custom_headers = dict(config.headers or {})
        self._debug = config.debug

        self._session = Session(config.storage if config.storage is not None else MemoryStorage())
        self._signer = RequestSigner(self._session)
        self._retry_policy = RetryPolicy(config.retry)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    @property
    def auth_request(self) -> AuthRequest:
        return self._auth_request

    def is_authenticated(self) -> bool:
        return self._session.is_authenticated()

    def _log(self, message: str, *args: Any) -> None:
        """Log debug message."""
        if self._debug:
            logger.debug(f"[iXR] {message}", *args)

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _build_headers(
        self, content: Optional[bytes], extra: Optional[Mapping[str, str]]
    ) -> Dict[str, str]:
        """Fresh header map for one attempt; signed headers take precedence."""
        headers: Dict[str, str] = {
            "Content-Type": "application/json",
            **self._custom_headers,
            **(extra or {}),
        }
        signed = self._signer.sign(content)
        if signed is None:
            self._log("Credentials missing; sending request unsigned")
        else:
            headers.update(signed.as_dict())
        return headers

    def _login_body(self, auth_request: AuthRequest) -> Dict[str, Any]:
        body = auth_request.to_dict()
        session_id = auth_request.session_id or self._session.session_id
        if session_id:
            body["sessionId"] = session_id
        return body

    def _store_login(self, response: ApiResponse, body: Dict[str, Any]) -> None:
        data = response.data if isinstance(response.data, dict) else {}
        token = data.get("token")
        secret = data.get("secret")
        if not token or not secret:
            raise AuthenticationError(
                "Token response did not contain both token and secret",
                code="INVALID_TOKEN_RESPONSE",
                status_code=response.status,
                details={"method": "POST", "path": TOKEN_PATH},
            )
        self._session.update(token, secret, body.get("sessionId", ""), decode_token_expiry(token))
        self._log("Authentication successful")

    def _login_failed(self, error: IXRError) -> AuthenticationError:
        logger.error("[iXR] Authentication failed: %s", redact_sensitive(error.to_dict()))
        if isinstance(error, AuthenticationError):
            return error
        return AuthenticationError(
            f"Authentication failed: {error.message}",
            status_code=error.status_code,
            details={**error.details, "cause": error.code},
        )

    def _transport_failure(
        self, method: str, path: str, error: httpx.RequestError
    ) -> TransportError:
        details = {"method": method, "path": path, "status_code": None}
        if isinstance(error, httpx.TimeoutException):
            failure = TransportError(
                f"{method} {path} timed out", code="TIMEOUT",
                details={**details, "timeout": self._timeout},
            )
        else:
            failure = TransportError(f"{method} {path} failed: {error}", details=details)
        logger.error("[iXR] API request failed: %s", failure.to_dict())
        return failure

    def _status_failure(
        self, method: str, path: str, response: httpx.Response, attempt: int
    ) -> IXRError:
        status = response.status_code
        details = {"method": method, "path": path, "status_code": status}
        failure: IXRError
        if self._retry_policy.is_retryable_status(status):
            failure = RetryExhaustedError(
                f"{method} {path} returned HTTP {status} after {attempt} retries",
                status,
                attempt,
                details,
            )
        else:
            failure = ServerError.from_api_response(_response_body(response), status, details)
        logger.error("[iXR] API request failed: %s", redact_sensitive(failure.to_dict()))
        return failure

    def _to_api_response(self, response: httpx.Response) -> ApiResponse:
        return ApiResponse(
            data=_response_body(response),
            status=response.status_code,
            status_text=response.reason_phrase,
        )


# =============================================================================
# Sync Client
# =============================================================================

class AuthNamespace:
    """Login exchange and health check for the sync client."""

    def __init__(self, client: "IXRClient") -> None:
        self._client = client

    def login(self, auth_request: Optional[AuthRequest] = None) -> ApiResponse:
        """
        Exchange auth data for a token/secret pair and store it.

        Args:
            auth_request: Auth data; defaults to the client's configured data

        Returns:
            ApiResponse of the token exchange

        Raises:
            ValidationError: If app_id is empty (no request is sent)
            AuthenticationError: If the exchange fails for any other reason
        """
        client = self._client
        auth_request = auth_request or client._auth_request
        auth_request.validate()
        body = client._login_body(auth_request)
        client._log("Login attempt: %s", redact_sensitive(body))

        try:
            response = client._send("POST", TOKEN_PATH, body)
            client._store_login(response, body)
        except IXRError as e:
            failure = client._login_failed(e)
            if failure is e:
                raise
            raise failure from e
        return response

    def ping(self) -> ApiResponse:
        """Authenticated health check."""
        return self._client.request("GET", PING_PATH)


class CollectNamespace:
    """Event, log and telemetry collection."""

    def __init__(self, client: "IXRClient") -> None:
        self._client = client

    def event(self, name: str, meta: MetaArg = None) -> ApiResponse:
        """Send an event. meta may be a mapping or a ``"k=v,k2=v2"`` string."""
        return self._client.request("POST", EVENT_PATH, event_payload(name, meta))

    def log(self, level: str, text: str) -> ApiResponse:
        return self._client.request("POST", LOG_PATH, log_payload(level, text))

    def log_info(self, text: str) -> ApiResponse:
        return self.log("INFO", text)

    def log_warning(self, text: str) -> ApiResponse:
        return self.log("WARNING", text)

    def log_error(self, text: str) -> ApiResponse:
        return self.log("ERROR", text)

    def telemetry(self, name: str, data: Mapping[str, Any]) -> ApiResponse:
        return self._client.request("POST", TELEMETRY_PATH, telemetry_payload(name, data))

    def milestone(
        self,
        kind: str,
        phase: str,
        name: str,
        score: Optional[float] = None,
        result: Optional[ResultOptions] = None,
        meta: Optional[Mapping[str, str]] = None,
    ) -> ApiResponse:
        event_name, event_meta = milestone_event(kind, phase, name, score, result, meta)
        return self.event(event_name, event_meta)

    def level_start(self, name: str, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return self.milestone("level", "start", name, meta=meta)

    def level_complete(self, name: str, score: float, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return self.milestone("level", "complete", name, score, meta=meta)

    def assessment_start(self, name: str, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return self.milestone("assessment", "start", name, meta=meta)

    def assessment_complete(
        self,
        name: str,
        score: float,
        result: ResultOptions = ResultOptions.NULL,
        meta: Optional[Mapping[str, str]] = None,
    ) -> ApiResponse:
        return self.milestone("assessment", "complete", name, score, result, meta)

    def objective_start(self, name: str, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return self.milestone("objective", "start", name, meta=meta)

    def objective_complete(
        self,
        name: str,
        score: float,
        result: ResultOptions = ResultOptions.NULL,
        meta: Optional[Mapping[str, str]] = None,
    ) -> ApiResponse:
        return self.milestone("objective", "complete", name, score, result, meta)

    def interaction_start(self, name: str, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return self.milestone("interaction", "start", name, meta=meta)

    def interaction_complete(self, name: str, score: float, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return self.milestone("interaction", "complete", name, score, meta=meta)


class ServicesNamespace:
    """LLM proxy."""

    def __init__(self, client: "IXRClient") -> None:
        self._client = client

    def llm(
        self,
        prompt: str,
        llm_provider: Optional[str] = None,
        past_messages: Optional[List[Mapping[str, str]]] = None,
    ) -> ApiResponse:
        return self._client.request("POST", LLM_PATH, prompt_payload(prompt, llm_provider, past_messages))


class StorageNamespace:
    """Server-side key/value storage."""

    def __init__(self, client: "IXRClient") -> None:
        self._client = client

    def store(self, payload: Dict[str, Any]) -> ApiResponse:
        """Store a pre-shaped ``{"data": [...]}`` storage payload."""
        return self._client.request("POST", STORAGE_PATH, payload)

    def get(self, **filters: Any) -> ApiResponse:
        """Filters: name, origin, tags_any, tags_all, user_only."""
        return self._client.request("GET", STORAGE_PATH, params=query_params(**filters))

    def reset(self, **filters: Any) -> ApiResponse:
        """Filters: name, session_only, user_only."""
        return self._client.request("DELETE", STORAGE_PATH, params=query_params(**filters))

    def get_config(self) -> ApiResponse:
        return self._client.request("GET", STORAGE_CONFIG_PATH)

    def set_entry(
        self,
        data: Mapping[str, Any],
        name: str = DEFAULT_ENTRY_NAME,
        keep_latest: bool = True,
        origin: Optional[str] = None,
        session_data: bool = False,
    ) -> ApiResponse:
        keep_policy = "keepLatest" if keep_latest else "append"
        return self.store(storage_payload(name, data, keep_policy, origin, session_data))

    def get_entry(
        self,
        name: str = DEFAULT_ENTRY_NAME,
        origin: Optional[str] = None,
        tags_any: Optional[List[str]] = None,
        tags_all: Optional[List[str]] = None,
        user_only: bool = False,
    ) -> ApiResponse:
        """The first stored data object for name, or {} when none exists."""
        response = self.get(
            name=name, origin=origin, tags_any=tags_any, tags_all=tags_all, user_only=user_only
        )
        return ApiResponse(first_entry_data(response.data), response.status, response.status_text)

    def remove_entry(self, name: str = DEFAULT_ENTRY_NAME) -> ApiResponse:
        return self.reset(name=name)

    def get_all_entries(self) -> ApiResponse:
        response = self.get()
        return ApiResponse(entries_by_name(response.data), response.status, response.status_text)


class ConfigNamespace:
    """Remote application configuration."""

    def __init__(self, client: "IXRClient") -> None:
        self._client = client

    def get(self) -> ApiResponse:
        return self._client.request("GET", CONFIG_PATH)


class IXRClient(_ClientCore):
    """
    iXR Client - Synchronous SDK entry point.

    The first request after construction logs in implicitly when the
    credential store holds no token/secret pair.
    """

    def __init__(self, auth_request: AuthRequest, config: Optional[IXRConfig] = None) -> None:
        """Initialize the client. Raises ValidationError before any network call on bad input."""
        super().__init__(auth_request, config)

        # HTTP client
        self._http_client = httpx.Client(timeout=self._timeout)

        # Namespaces
        self.auth = AuthNamespace(self)
        self.collect = CollectNamespace(self)
        self.services = ServicesNamespace(self)
        self.storage = StorageNamespace(self)
        self.config = ConfigNamespace(self)

        self._log("IXRClient initialized (base_url=%s)", self._base_url)

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        """
        Authenticate if needed, then send a signed request with retries.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            body: JSON-compatible body; str/bytes are sent as already-serialized JSON
            params: Query parameters
            headers: Extra headers for this call
            timeout: Per-call timeout in seconds

        Returns:
            ApiResponse with data, status and status_text

        Raises:
            AuthenticationError, TransportError, RetryExhaustedError, ServerError
        """
        self._ensure_authenticated()
        return self._send(method.upper(), path, body, params, headers, timeout)

    def _ensure_authenticated(self) -> None:
        if not self._session.is_authenticated():
            self._log("No credentials found. Attempting to authenticate...")
            self.auth.login()

    def _send(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        """Dispatch with signing and retry; no authentication step."""
        url = self._url(path)
        content = None if body is None else serialize_body(body)
        attempt = 0

        while True:
            try:
                response = self._http_client.request(
                    method,
                    url,
                    headers=self._build_headers(content, headers),
                    content=content,
                    params=params,
                    timeout=timeout if timeout is not None else self._timeout,
                )
            except httpx.RequestError as e:
                raise self._transport_failure(method, path, e) from e

            if response.is_success:
                return self._to_api_response(response)

            if not self._retry_policy.should_retry(attempt, response.status_code):
                raise self._status_failure(method, path, response, attempt)

            delay_ms = self._retry_policy.delay_for(attempt)
            self._log(
                "%s %s returned %s; retry %s in %sms",
                method, path, response.status_code, attempt + 1, delay_ms,
            )
            time.sleep(delay_ms / 1000.0)
            attempt += 1

    def close(self) -> None:
        """Close the HTTP client."""
        self._http_client.close()

    def __enter__(self) -> "IXRClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


# =============================================================================
# Async Client
# =============================================================================

class AsyncAuthNamespace:
    """Login exchange and health check for the async client."""

    def __init__(self, client: "AsyncIXRClient") -> None:
        self._client = client

    async def login(self, auth_request: Optional[AuthRequest] = None) -> ApiResponse:
        """Exchange auth data for a token/secret pair and store it."""
        client = self._client
        auth_request = auth_request or client._auth_request
        auth_request.validate()
        body = client._login_body(auth_request)
        client._log("Login attempt: %s", redact_sensitive(body))

        try:
            response = await client._send("POST", TOKEN_PATH, body)
            # Credential stores may block on file I/O
            await asyncio.get_running_loop().run_in_executor(
                None, client._store_login, response, body
            )
        except IXRError as e:
            failure = client._login_failed(e)
            if failure is e:
                raise
            raise failure from e
        return response

    async def ping(self) -> ApiResponse:
        """Authenticated health check."""
        return await self._client.request("GET", PING_PATH)


class AsyncCollectNamespace:
    """Event, log and telemetry collection for the async client."""

    def __init__(self, client: "AsyncIXRClient") -> None:
        self._client = client

    async def event(self, name: str, meta: MetaArg = None) -> ApiResponse:
        return await self._client.request("POST", EVENT_PATH, event_payload(name, meta))

    async def log(self, level: str, text: str) -> ApiResponse:
        return await self._client.request("POST", LOG_PATH, log_payload(level, text))

    async def log_info(self, text: str) -> ApiResponse:
        return await self.log("INFO", text)

    async def log_warning(self, text: str) -> ApiResponse:
        return await self.log("WARNING", text)

    async def log_error(self, text: str) -> ApiResponse:
        return await self.log("ERROR", text)

    async def telemetry(self, name: str, data: Mapping[str, Any]) -> ApiResponse:
        return await self._client.request("POST", TELEMETRY_PATH, telemetry_payload(name, data))

    async def milestone(
        self,
        kind: str,
        phase: str,
        name: str,
        score: Optional[float] = None,
        result: Optional[ResultOptions] = None,
        meta: Optional[Mapping[str, str]] = None,
    ) -> ApiResponse:
        event_name, event_meta = milestone_event(kind, phase, name, score, result, meta)
        return await self.event(event_name, event_meta)

    async def level_start(self, name: str, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return await self.milestone("level", "start", name, meta=meta)

    async def level_complete(self, name: str, score: float, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return await self.milestone("level", "complete", name, score, meta=meta)

    async def assessment_start(self, name: str, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return await self.milestone("assessment", "start", name, meta=meta)

    async def assessment_complete(
        self,
        name: str,
        score: float,
        result: ResultOptions = ResultOptions.NULL,
        meta: Optional[Mapping[str, str]] = None,
    ) -> ApiResponse:
        return await self.milestone("assessment", "complete", name, score, result, meta)

    async def objective_start(self, name: str, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return await self.milestone("objective", "start", name, meta=meta)

    async def objective_complete(
        self,
        name: str,
        score: float,
        result: ResultOptions = ResultOptions.NULL,
        meta: Optional[Mapping[str, str]] = None,
    ) -> ApiResponse:
        return await self.milestone("objective", "complete", name, score, result, meta)

    async def interaction_start(self, name: str, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return await self.milestone("interaction", "start", name, meta=meta)

    async def interaction_complete(self, name: str, score: float, meta: Optional[Mapping[str, str]] = None) -> ApiResponse:
        return await self.milestone("interaction", "complete", name, score, meta=meta)


class AsyncServicesNamespace:
    """LLM proxy for the async client."""

    def __init__(self, client: "AsyncIXRClient") -> None:
        self._client = client

    async def llm(
        self,
        prompt: str,
        llm_provider: Optional[str] = None,
        past_messages: Optional[List[Mapping[str, str]]] = None,
    ) -> ApiResponse:
        return await self._client.request(
            "POST", LLM_PATH, prompt_payload(prompt, llm_provider, past_messages)
        )


class AsyncStorageNamespace:
    """Server-side key/value storage for the async client."""

    def __init__(self, client: "AsyncIXRClient") -> None:
        self._client = client

    async def store(self, payload: Dict[str, Any]) -> ApiResponse:
        return await self._client.request("POST", STORAGE_PATH, payload)

    async def get(self, **filters: Any) -> ApiResponse:
        return await self._client.request("GET", STORAGE_PATH, params=query_params(**filters))

    async def reset(self, **filters: Any) -> ApiResponse:
        return await self._client.request("DELETE", STORAGE_PATH, params=query_params(**filters))

    async def get_config(self) -> ApiResponse:
        return await self._client.request("GET", STORAGE_CONFIG_PATH)

    async def set_entry(
        self,
        data: Mapping[str, Any],
        name: str = DEFAULT_ENTRY_NAME,
        keep_latest: bool = True,
        origin: Optional[str] = None,
        session_data: bool = False,
    ) -> ApiResponse:
        keep_policy = "keepLatest" if keep_latest else "append"
        return await self.store(storage_payload(name, data, keep_policy, origin, session_data))

    async def get_entry(
        self,
        name: str = DEFAULT_ENTRY_NAME,
        origin: Optional[str] = None,
        tags_any: Optional[List[str]] = None,
        tags_all: Optional[List[str]] = None,
        user_only: bool = False,
    ) -> ApiResponse:
        response = await self.get(
            name=name, origin=origin, tags_any=tags_any, tags_all=tags_all, user_only=user_only
        )
        return ApiResponse(first_entry_data(response.data), response.status, response.status_text)

    async def remove_entry(self, name: str = DEFAULT_ENTRY_NAME) -> ApiResponse:
        return await self.reset(name=name)

    async def get_all_entries(self) -> ApiResponse:
        response = await self.get()
        return ApiResponse(entries_by_name(response.data), response.status, response.status_text)


class AsyncConfigNamespace:
    """Remote application configuration for the async client."""

    def __init__(self, client: "AsyncIXRClient") -> None:
        self._client = client

    async def get(self) -> ApiResponse:
        return await self._client.request("GET", CONFIG_PATH)


class AsyncIXRClient(_ClientCore):
    """
    iXR Async Client - Asynchronous SDK entry point.

    Safe for many concurrent requests on one event loop. Concurrent first
    calls may each log in; the last login to finish wins.
    """

    def __init__(self, auth_request: AuthRequest, config: Optional[IXRConfig] = None) -> None:
        """Initialize the async client."""
        super().__init__(auth_request, config)

        # HTTP client (created lazily)
        self._http_client: Optional[httpx.AsyncClient] = None

        # Namespaces
        self.auth = AsyncAuthNamespace(self)
        self.collect = AsyncCollectNamespace(self)
        self.services = AsyncServicesNamespace(self)
        self.storage = AsyncStorageNamespace(self)
        self.config = AsyncConfigNamespace(self)

        self._log("AsyncIXRClient initialized (base_url=%s)", self._base_url)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        """Authenticate if needed, then send a signed request with retries."""
        await self._ensure_authenticated()
        return await self._send(method.upper(), path, body, params, headers, timeout)

    async def _ensure_authenticated(self) -> None:
        if not self._session.is_authenticated():
            self._log("No credentials found. Attempting to authenticate...")
            await self.auth.login()

    async def _send(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        """Dispatch with signing and retry; no authentication step."""
        url = self._url(path)
        content = None if body is None else serialize_body(body)
        attempt = 0

        while True:
            try:
                response = await self._get_client().request(
                    method,
                    url,
                    headers=self._build_headers(content, headers),
                    content=content,
                    params=params,
                    timeout=timeout if timeout is not None else self._timeout,
                )
            except httpx.RequestError as e:
                raise self._transport_failure(method, path, e) from e

            if response.is_success:
                return self._to_api_response(response)

            if not self._retry_policy.should_retry(attempt, response.status_code):
                raise self._status_failure(method, path, response, attempt)

            delay_ms = self._retry_policy.delay_for(attempt)
            self._log(
                "%s %s returned %s; retry %s in %sms",
                method, path, response.status_code, attempt + 1, delay_ms,
            )
            await asyncio.sleep(delay_ms / 1000.0)
            attempt += 1

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "AsyncIXRClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


# =============================================================================
# Factory Functions
# =============================================================================

def create_ixr_client(auth_request: AuthRequest, config: Optional[IXRConfig] = None) -> IXRClient:
    """Create a new synchronous iXR client."""
    return IXRClient(auth_request, config)


def create_async_ixr_client(
    auth_request: AuthRequest, config: Optional[IXRConfig] = None
) -> AsyncIXRClient:
    """Create a new asynchronous iXR client."""
    return AsyncIXRClient(auth_request, config)
