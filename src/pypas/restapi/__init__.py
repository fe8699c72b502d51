"""PAS REST API client package.

Provides the HTTP client for the CyberArk PAS REST API, the error taxonomy
for failed calls, and Pydantic models for the responses the library itself
consumes.

Exports:
    PASRestClient: HTTP client with token injection and error classification.
    Request, Response: Input and output of PASRestClient.do.
    APIError and friends: Exceptions raised by the client.
    types: Module containing Pydantic models for API responses.
    API_PATH: Path appended to the base URL to reach the API root.
    DEFAULT_TIMEOUT: Default HTTP request timeout.
"""

from . import types
from .client import (
    API_PATH,
    DEFAULT_TIMEOUT,
    ClientConfig,
    PASRestClient,
    Request,
    Response,
)
from .errors import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    PASError,
    SerializationError,
    TransportError,
    VersionRequirementError,
    as_api_error,
    is_api_error,
    parse_api_error,
)

__all__ = [
    "API_PATH",
    "DEFAULT_TIMEOUT",
    "APIError",
    "AuthenticationError",
    "ClientConfig",
    "ConfigurationError",
    "PASError",
    "PASRestClient",
    "Request",
    "Response",
    "SerializationError",
    "TransportError",
    "VersionRequirementError",
    "as_api_error",
    "is_api_error",
    "parse_api_error",
    "types",
]
