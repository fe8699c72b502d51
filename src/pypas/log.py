"""Logging setup for applications using pypas.

Library modules only call ``structlog.get_logger``; nothing is configured
on import. Applications opt in with :func:`configure_logging`, usually via
:meth:`pypas.config.ConnectionConfig.configure_logging`.
"""

import logging
from collections.abc import Iterable, MutableMapping
from typing import Any

import structlog

from .helpers import hide_secret_value

SECRET_KEYS = frozenset({"token", "session_token", "password", "authorization"})


class SecretMasker:
    """Processor masking secret-bearing event keys.

    Keys are matched case-insensitively, so ``Authorization`` and
    ``authorization`` are both masked. Non-string values are replaced whole.
    """

    def __init__(self, keys: Iterable[str] = SECRET_KEYS):
        self.keys = frozenset(key.lower() for key in keys)

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key, value in event_dict.items():
            if key.lower() not in self.keys or value is None:
                continue
            event_dict[key] = hide_secret_value(value) if isinstance(value, str) else "****"
        return event_dict


def configure_logging(log_level_name: str) -> None:
    """Configure structlog for logfmt output with secrets masked.

    Unknown level names fall back to INFO.
    """
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            SecretMasker(),
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
