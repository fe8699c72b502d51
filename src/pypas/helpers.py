"""Helpers shared by PAS operations.

Query-string and filter building, Unix time conversion, escaping, secret
masking and input validation.
"""

import re
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

SAFE_NAME_MAX_LENGTH = 28
_SAFE_NAME_INVALID_CHARS = re.compile(r'[\\/:*?"<>|]')


class QueryOptions(BaseModel):
    """Base for the query options of a list or search operation.

    Subclasses declare each recognised option as a field, with the wire name
    as alias when it differs. Unknown options are rejected.

    Example:
        class ListSafesOptions(QueryOptions):
            search: str | None = None
            limit: int | None = None
            include_accounts: bool | None = Field(None, alias="includeAccounts")
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def to_params(self) -> dict[str, str | list[str]]:
        return to_query_params(self)


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_query_params(
    options: BaseModel | Mapping[str, Any] | None,
) -> dict[str, str | list[str]]:
    """Convert options to query parameters.

    ``None`` values and empty strings are dropped, booleans become
    ``"true"``/``"false"``, and lists or tuples become repeated keys.

    Args:
        options: A pydantic model (dumped by alias) or a plain mapping.

    Returns:
        Parameters suitable for ``PASRestClient.get``.
    """
    if options is None:
        return {}
    if isinstance(options, BaseModel):
        options = options.model_dump(mode="json", by_alias=True, exclude_none=True)

    params: dict[str, str | list[str]] = {}
    for key, value in options.items():
        if value is None:
            continue
        if isinstance(value, str):
            if value:
                params[key] = value
        elif isinstance(value, list | tuple | set | frozenset):
            if value:
                params[key] = [_encode_value(v) for v in value]
        else:
            params[key] = _encode_value(value)
    return params


def to_filter_string(filters: Mapping[str, str]) -> str:
    """Build a PAS filter expression, e.g. ``safeName eq Vault AND modificationTime eq 0``."""
    return " AND ".join(f"{key} eq {value}" for key, value in filters.items())


def to_unix_time(dt: datetime) -> int:
    """Convert a datetime to a Unix timestamp in milliseconds.

    Naive datetimes are taken as local time.
    """
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def from_unix_time(timestamp: int) -> datetime:
    """Convert a Unix timestamp in seconds to an aware UTC datetime."""
    return _EPOCH + timedelta(seconds=timestamp)


def from_unix_time_millis(timestamp: int) -> datetime:
    """Convert a Unix timestamp in milliseconds to an aware UTC datetime."""
    return _EPOCH + timedelta(milliseconds=timestamp)


def escape_string(value: str) -> str:
    """Escape backslashes and double quotes."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def hide_secret_value(value: str) -> str:
    """Mask a secret for logging, keeping the first and last two characters."""
    if len(value) <= 4:  # noqa: PLR2004
        return "****"
    return f"{value[:2]}****{value[-2:]}"


def validate_safe_name(name: str) -> None:
    """Check a safe name against the vault naming rules.

    Raises:
        ValueError: If the name is empty, too long or has invalid characters.
    """
    if not name:
        msg = "safe name cannot be empty"
        raise ValueError(msg)
    if len(name) > SAFE_NAME_MAX_LENGTH:
        msg = f"safe name cannot exceed {SAFE_NAME_MAX_LENGTH} characters"
        raise ValueError(msg)
    if _SAFE_NAME_INVALID_CHARS.search(name):
        msg = "safe name contains invalid characters"
        raise ValueError(msg)


def validate_account_name(name: str) -> None:
    if not name:
        msg = "account name cannot be empty"
        raise ValueError(msg)


def build_search_query(keywords: Iterable[str]) -> str:
    return " ".join(keywords)


def parse_next_link(next_link: str) -> int:
    """Extract the ``offset`` query value from a ``nextLink`` URL.

    Raises:
        ValueError: If the link is empty, unparsable, or has no integer offset.
    """
    if not next_link:
        msg = "empty next link"
        raise ValueError(msg)
    try:
        offset = httpx.URL(next_link).params.get("offset")
    except httpx.InvalidURL as exc:
        msg = f"invalid next link: {next_link}"
        raise ValueError(msg) from exc
    if not offset:
        msg = "offset not found in next link"
        raise ValueError(msg)
    return int(offset)
