"""Error types raised by the PAS REST API client.

Every exception raised by the library derives from :class:`PASError`. HTTP
responses with a status of 400 or above are classified into
:class:`APIError`, which keeps the raw response for inspection.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pydantic

from .types import APIErrorBody

if TYPE_CHECKING:
    from .client import Response

DEFAULT_ERROR_MESSAGES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    500: "Internal Server Error",
}


class PASError(Exception):
    """Base class for all pypas errors."""


class ConfigurationError(PASError, ValueError):
    """Raised when the client or a session is configured incorrectly."""


class SerializationError(PASError):
    """Raised when a request body cannot be encoded as JSON."""


class TransportError(PASError):
    """Raised when the HTTP call itself fails (DNS, connect, timeout)."""


class AuthenticationError(PASError):
    """Raised when a logon succeeds at the HTTP level but yields no token."""


class VersionRequirementError(PASError):
    """Raised when the connected server does not satisfy a version requirement."""


class APIError(PASError):
    """Error response returned by the PAS REST API.

    Attributes:
        status_code: HTTP status of the response.
        error_code: Vendor error code (e.g. ``PASWS001``), empty if absent.
        error_message: Human-readable message from the body, or a default
            derived from the status code.
        details: Optional ``Details`` field of the error body.
        response: The raw response, so callers can inspect status and body.
    """

    def __init__(
        self,
        status_code: int,
        error_message: str,
        error_code: str = "",
        details: str = "",
        response: Response | None = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.error_message = error_message
        self.details = details
        self.response = response
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.error_code:
            return (
                f"CyberArk API error [{self.status_code}] "
                f"{self.error_code}: {self.error_message}"
            )
        return f"CyberArk API error [{self.status_code}]: {self.error_message}"

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404  # noqa: PLR2004

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401  # noqa: PLR2004

    @property
    def is_forbidden(self) -> bool:
        return self.status_code == 403  # noqa: PLR2004

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409  # noqa: PLR2004

    @property
    def is_bad_request(self) -> bool:
        return self.status_code == 400  # noqa: PLR2004


def parse_api_error(response: Response) -> APIError:
    """Build an :class:`APIError` from a failed response.

    The body is expected to be a JSON object with ``ErrorCode``,
    ``ErrorMessage`` and ``Details`` fields; ``null`` fields count as absent.
    Anything else (plain text, a JSON array, mistyped fields) is used
    verbatim as the message. When no message can be extracted, a default is
    chosen from the status code.

    Args:
        response: Response with a status code of 400 or above.

    Returns:
        The classified error, with ``response`` attached.
    """
    body = APIErrorBody()
    if response.body:
        try:
            data = json.loads(response.body)
            if data is not None:
                body = APIErrorBody.model_validate(data)
        except (ValueError, pydantic.ValidationError):
            body = APIErrorBody(
                ErrorMessage=response.body.decode("utf-8", errors="replace"),
            )

    message = body.error_message or DEFAULT_ERROR_MESSAGES.get(
        response.status_code,
        f"HTTP Error {response.status_code}",
    )
    return APIError(
        status_code=response.status_code,
        error_message=message,
        error_code=body.error_code,
        details=body.details,
        response=response,
    )


def as_api_error(exc: BaseException | None) -> APIError | None:
    """Return the :class:`APIError` behind ``exc``, if there is one.

    Follows the ``__cause__`` chain so errors re-raised with added context
    (``raise X(...) from api_error``) are still recognised.
    """
    while exc is not None:
        if isinstance(exc, APIError):
            return exc
        exc = exc.__cause__
    return None


def is_api_error(exc: BaseException | None) -> bool:
    """Check whether ``exc`` is, or was caused by, an :class:`APIError`."""
    return as_api_error(exc) is not None
