"""Tests for API error parsing and classification."""

import pytest

from pypas.restapi import errors
from pypas.restapi.client import Response


def _response(status: int, body: bytes = b"") -> Response:
    return Response(status_code=status, body=body)


# ---------------------------------------------------------------------------
# parse_api_error
# ---------------------------------------------------------------------------


def test_parse_standard_error_body():
    """ErrorCode and ErrorMessage are read from the JSON body."""
    api_error = errors.parse_api_error(
        _response(404, b'{"ErrorCode": "PASWS001", "ErrorMessage": "Account not found"}'),
    )
    assert api_error.status_code == 404
    assert api_error.error_code == "PASWS001"
    assert api_error.error_message == "Account not found"
    assert api_error.details == ""


def test_parse_error_with_details():
    """The optional Details field is kept."""
    api_error = errors.parse_api_error(
        _response(
            400,
            b'{"ErrorCode": "PASWS002", "ErrorMessage": "Invalid request",'
            b' "Details": "Missing required field"}',
        ),
    )
    assert api_error.details == "Missing required field"


def test_null_fields_read_as_empty():
    """A null field is treated as absent; the other fields are still used."""
    api_error = errors.parse_api_error(
        _response(
            404,
            b'{"ErrorCode": "PASWS013E", "ErrorMessage": "Safe not found", "Details": null}',
        ),
    )
    assert api_error.error_code == "PASWS013E"
    assert api_error.error_message == "Safe not found"
    assert api_error.details == ""
    assert str(api_error) == "CyberArk API error [404] PASWS013E: Safe not found"


def test_null_message_falls_back_to_default():
    api_error = errors.parse_api_error(
        _response(401, b'{"ErrorCode": "PASWS011E", "ErrorMessage": null}'),
    )
    assert api_error.error_code == "PASWS011E"
    assert api_error.error_message == "Unauthorized"


@pytest.mark.parametrize(
    "body",
    [
        b"Internal Server Error occurred",
        b"[1, 2, 3]",
        b'{"ErrorCode": 17, "ErrorMessage": "numeric code"}',
    ],
)
def test_unparseable_body_becomes_message(body):
    """Bodies that are not a well-formed error object are used verbatim."""
    api_error = errors.parse_api_error(_response(500, body))
    assert api_error.error_code == ""
    assert api_error.error_message == body.decode()


@pytest.mark.parametrize(
    ("status", "expected_message"),
    [
        (400, "Bad Request"),
        (401, "Unauthorized"),
        (403, "Forbidden"),
        (404, "Not Found"),
        (409, "Conflict"),
        (500, "Internal Server Error"),
        (502, "HTTP Error 502"),
    ],
)
def test_empty_body_uses_default_message(status, expected_message):
    """An empty body yields the default message for the status."""
    api_error = errors.parse_api_error(_response(status))
    assert api_error.error_message == expected_message


def test_object_without_message_uses_default_message():
    """A JSON object lacking ErrorMessage still gets a default message."""
    api_error = errors.parse_api_error(_response(403, b'{"ErrorCode": "ITATS004"}'))
    assert api_error.error_code == "ITATS004"
    assert api_error.error_message == "Forbidden"


def test_parsed_error_keeps_response():
    """The raw response is attached to the error."""
    response = _response(409, b"conflict!")
    assert errors.parse_api_error(response).response is response


# ---------------------------------------------------------------------------
# APIError
# ---------------------------------------------------------------------------


def test_str_with_error_code():
    api_error = errors.APIError(404, "Account not found", error_code="PASWS001")
    assert str(api_error) == "CyberArk API error [404] PASWS001: Account not found"


def test_str_without_error_code():
    api_error = errors.APIError(500, "Internal Server Error")
    assert str(api_error) == "CyberArk API error [500]: Internal Server Error"


@pytest.mark.parametrize(
    ("status", "attribute"),
    [
        (400, "is_bad_request"),
        (401, "is_unauthorized"),
        (403, "is_forbidden"),
        (404, "is_not_found"),
        (409, "is_conflict"),
    ],
)
def test_status_classification(status, attribute):
    """Exactly one classification property is true for the common statuses."""
    api_error = errors.APIError(status, "x")
    checks = ["is_bad_request", "is_unauthorized", "is_forbidden", "is_not_found", "is_conflict"]
    assert [getattr(api_error, name) for name in checks] == [name == attribute for name in checks]


def test_other_status_matches_no_classification():
    api_error = errors.APIError(500, "x")
    assert not any(
        (
            api_error.is_bad_request,
            api_error.is_unauthorized,
            api_error.is_forbidden,
            api_error.is_not_found,
            api_error.is_conflict,
        ),
    )


# ---------------------------------------------------------------------------
# is_api_error / as_api_error
# ---------------------------------------------------------------------------


def test_as_api_error_returns_same_instance():
    api_error = errors.APIError(404, "Not Found")
    assert errors.as_api_error(api_error) is api_error
    assert errors.is_api_error(api_error)


def test_as_api_error_follows_cause_chain():
    """An APIError wrapped with added context is still found."""
    api_error = errors.APIError(401, "Unauthorized")
    try:
        try:
            raise api_error
        except errors.APIError as exc:
            msg = "failed to list accounts"
            raise RuntimeError(msg) from exc
    except RuntimeError as wrapped:
        assert errors.as_api_error(wrapped) is api_error


@pytest.mark.parametrize("exc", [None, ValueError("x"), errors.TransportError("down")])
def test_non_api_errors_are_not_classified(exc):
    assert errors.as_api_error(exc) is None
    assert not errors.is_api_error(exc)


def test_all_errors_share_base_class():
    """Every library error derives from PASError."""
    for cls in (
        errors.APIError,
        errors.ConfigurationError,
        errors.SerializationError,
        errors.TransportError,
        errors.AuthenticationError,
        errors.VersionRequirementError,
    ):
        assert issubclass(cls, errors.PASError)
