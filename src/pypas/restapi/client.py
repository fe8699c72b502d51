"""PAS REST API client.

Provides the HTTP client that every PAS operation goes through: request
building, auth-token injection, JSON body encoding and classification of
error responses into :class:`~pypas.restapi.errors.APIError`.
"""

import json
import threading
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias

import httpx
import pydantic
import structlog

from .errors import (
    ConfigurationError,
    SerializationError,
    TransportError,
    parse_api_error,
)

logger = structlog.get_logger(__name__)

# Appended to the base URL to reach the REST API root.
API_PATH = "/PasswordVault/API"

DEFAULT_TIMEOUT = 30.0

QueryParams: TypeAlias = Mapping[str, str | Sequence[str]]


class ClientConfig(pydantic.BaseModel):
    """Configuration for :class:`PASRestClient`."""

    model_config = pydantic.ConfigDict(arbitrary_types_allowed=True)

    base_url: str = pydantic.Field(description="PVWA base URL")
    timeout: float = pydantic.Field(
        DEFAULT_TIMEOUT,
        description="Request timeout in seconds, 0 selects the default",
        ge=0,
    )
    verify_tls: bool = pydantic.Field(
        True,
        description="Verify the server TLS certificate",
    )
    http_client: httpx.Client | None = pydantic.Field(
        None,
        description="Pre-built transport, overrides timeout and verify_tls",
    )


@dataclass
class Request:
    """A single API call relative to the API root."""

    method: str
    path: str
    body: Any = None
    params: QueryParams | None = None
    headers: Mapping[str, str] | None = None


@dataclass
class Response:
    """Raw API response. The body is read fully into memory."""

    status_code: int
    body: bytes
    headers: httpx.Headers = field(default_factory=httpx.Headers)

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.body)


def _encode_body(body: Any) -> bytes | None:
    """Serialize a request body to JSON bytes.

    Pydantic models are dumped using their wire aliases with unset optional
    fields omitted; anything else goes through :func:`json.dumps`.

    Raises:
        SerializationError: If the body cannot be represented as JSON.
    """
    if body is None:
        return None
    try:
        if isinstance(body, pydantic.BaseModel):
            return body.model_dump_json(by_alias=True, exclude_none=True).encode()
        return json.dumps(body).encode("utf-8")
    except (TypeError, ValueError) as exc:
        msg = f"failed to marshal request body: {exc}"
        raise SerializationError(msg) from exc


class PASRestClient:
    """HTTP client for the PAS REST API.

    Sends JSON requests to ``<base_url>/PasswordVault/API`` and carries the
    session token verbatim in the ``Authorization`` header. Failures are
    never retried: transport problems raise :class:`TransportError` and
    responses with a status of 400 or above raise :class:`APIError`.

    Unless a pre-built ``httpx.Client`` is supplied, each thread lazily gets
    its own ``httpx.Client``. The token itself is a plain attribute; token
    changes are expected to go through :class:`pypas.session.Session`, which
    serializes them.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        verify_tls: bool = True,
        http_client: httpx.Client | None = None,
    ):
        """Initialize the client. No network activity happens here.

        Args:
            base_url: PVWA base URL (e.g. "https://pvwa.example.com"). One
                trailing slash is removed.
            timeout: Request timeout in seconds; non-positive values select
                the 30 second default.
            verify_tls: Verify the server certificate.
            http_client: Pre-built transport. When given, ``timeout`` and
                ``verify_tls`` are ignored and the caller keeps ownership.

        Raises:
            ConfigurationError: If base_url is empty.
        """
        if not base_url:
            msg = "base_url is required"
            raise ConfigurationError(msg)

        self._base_url = base_url.removesuffix("/")
        self._api_url = self._base_url + API_PATH
        self._timeout = timeout if timeout and timeout > 0 else DEFAULT_TIMEOUT
        self._verify_tls = verify_tls
        self._http_client = http_client
        self._content_type = "application/json"
        self._auth_token = ""

        self._local = threading.local()

    @classmethod
    def from_config(cls, config: ClientConfig) -> "PASRestClient":
        """Build a client from a validated :class:`ClientConfig`."""
        return cls(
            config.base_url,
            config.timeout,
            verify_tls=config.verify_tls,
            http_client=config.http_client,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def api_url(self) -> str:
        return self._api_url

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def http_client(self) -> httpx.Client:
        """Return the caller's transport, or the thread-local one.

        Thread-local clients are created lazily and recreated after close().
        """
        if self._http_client is not None:
            return self._http_client
        if not hasattr(self._local, "client") or self._local.client.is_closed:
            self._local.client = httpx.Client(
                timeout=self._timeout,
                verify=self._verify_tls,
            )
        return self._local.client

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close this thread's HTTP client. A caller-supplied client is left open."""
        if hasattr(self._local, "client") and not self._local.client.is_closed:
            self._local.client.close()

    def set_auth_token(self, token: str) -> None:
        self._auth_token = token

    def get_auth_token(self) -> str:
        return self._auth_token

    def get_base_url(self) -> str:
        return self._base_url

    def get_api_url(self) -> str:
        return self._api_url

    def do(self, request: Request, *, timeout: float | None = None) -> Response:
        """Execute a request against the API.

        Args:
            request: Method, path, and optional body, query and headers.
                Caller headers override the defaults.
            timeout: Deadline for this call in seconds, overriding the
                client timeout. Expiry aborts the call.

        Returns:
            The response of a successful (status < 400) call.

        Raises:
            SerializationError: If the body cannot be encoded; nothing is sent.
            TransportError: If the HTTP call fails or times out, or a
                caller-supplied httpx client has already been closed.
            APIError: If the API answers with status >= 400. The raw
                response is available as ``APIError.response``.
        """
        url = self._api_url + request.path
        content = _encode_body(request.body)

        headers = httpx.Headers({"Content-Type": self._content_type})
        if self._auth_token:
            headers["Authorization"] = self._auth_token
        if request.headers:
            headers.update(request.headers)

        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout

        start_time = time.time()
        logger.debug(
            "Making API request",
            method=request.method,
            path=request.path,
            params=dict(request.params) if request.params else None,
        )
        http_client = self.http_client
        if http_client.is_closed:
            msg = "failed to execute request: HTTP client is closed"
            raise TransportError(msg)
        try:
            http_response = http_client.request(
                request.method,
                url,
                params=request.params or None,
                content=content,
                headers=headers,
                **kwargs,
            )
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            logger.debug(
                "API request failed",
                method=request.method,
                path=request.path,
                duration_seconds=round(time.time() - start_time, 3),
                error=str(exc),
            )
            msg = f"failed to execute request: {exc}"
            raise TransportError(msg) from exc

        response = Response(
            status_code=http_response.status_code,
            body=http_response.content,
            headers=http_response.headers,
        )
        logger.debug(
            "API request completed",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            duration_seconds=round(time.time() - start_time, 3),
        )

        if response.status_code >= 400:  # noqa: PLR2004
            raise parse_api_error(response)
        return response

    def get(
        self,
        path: str,
        params: QueryParams | None = None,
        *,
        timeout: float | None = None,
    ) -> Response:
        """Make a GET request."""
        return self.do(Request("GET", path, params=params), timeout=timeout)

    def post(self, path: str, body: Any = None, *, timeout: float | None = None) -> Response:
        """Make a POST request."""
        return self.do(Request("POST", path, body=body), timeout=timeout)

    def put(self, path: str, body: Any = None, *, timeout: float | None = None) -> Response:
        """Make a PUT request."""
        return self.do(Request("PUT", path, body=body), timeout=timeout)

    def patch(self, path: str, body: Any = None, *, timeout: float | None = None) -> Response:
        """Make a PATCH request."""
        return self.do(Request("PATCH", path, body=body), timeout=timeout)

    def delete(self, path: str, *, timeout: float | None = None) -> Response:
        """Make a DELETE request."""
        return self.do(Request("DELETE", path), timeout=timeout)
