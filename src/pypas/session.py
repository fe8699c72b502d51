"""PAS session state.

A :class:`Session` holds the state of one logical connection: who is
logged on, the token, server metadata and last-command bookkeeping. It
owns the :class:`~pypas.restapi.PASRestClient` used for every call but
performs no network I/O itself. Sessions are passed explicitly to each
operation; there is no module-level session.
"""

import threading
from datetime import UTC, datetime, timedelta

from .restapi import ConfigurationError, PASRestClient


class Session:
    """Thread-safe record of an authenticated (or not yet) PAS connection.

    Every accessor holds the session lock for its whole duration, so
    concurrent callers never observe a half-applied update. The lock is
    never held across an HTTP call.

    State moves from unauthenticated to authenticated via
    :meth:`set_authenticated` and back via :meth:`close`. Closing keeps
    ``user`` and ``auth_method`` as historical metadata.
    """

    def __init__(self, base_uri: str, client: PASRestClient | None = None):
        """Create an unauthenticated session.

        Args:
            base_uri: PVWA base URL.
            client: REST client to own. Built from base_uri when omitted.

        Raises:
            ConfigurationError: If base_uri is empty.
        """
        if not base_uri:
            msg = "base_uri is required"
            raise ConfigurationError(msg)

        self._lock = threading.Lock()

        self.client = client if client is not None else PASRestClient(base_uri)
        self.base_uri = base_uri
        self.api_uri = self.client.get_api_url()

        self.user = ""
        self.external_version = ""
        self.start_time = datetime.now(UTC)

        self.last_command = ""
        self.last_command_time: datetime | None = None
        self.last_error: BaseException | None = None
        self.last_error_time: datetime | None = None

        self.is_authenticated = False
        self.auth_method = ""
        self.session_token = ""
        self.privilege_cloud = False

    def __repr__(self) -> str:
        return (
            f"Session(base_uri={self.base_uri!r}, user={self.user!r}, "
            f"auth_method={self.auth_method!r}, "
            f"is_authenticated={self.is_authenticated!r})"
        )

    def set_authenticated(self, user: str, token: str, auth_method: str) -> None:
        """Mark the session authenticated and hand the token to the client."""
        with self._lock:
            self.user = user
            self.session_token = token
            self.auth_method = auth_method
            self.is_authenticated = True
            self.client.set_auth_token(token)

    def set_version(self, version: str) -> None:
        with self._lock:
            self.external_version = version

    def set_privilege_cloud(self, is_cloud: bool) -> None:
        with self._lock:
            self.privilege_cloud = is_cloud

    def update_last_command(self, command: str) -> None:
        with self._lock:
            self.last_command = command
            self.last_command_time = datetime.now(UTC)

    def update_last_error(self, error: BaseException | None) -> None:
        with self._lock:
            self.last_error = error
            self.last_error_time = datetime.now(UTC)

    def get_elapsed_time(self) -> timedelta:
        """Time since the session was created."""
        with self._lock:
            return datetime.now(UTC) - self.start_time

    def close(self) -> None:
        """Invalidate the session locally.

        Does not log off from the server; see
        :func:`pypas.authentication.close_session` for that.

        The token is also cleared on the client. Clones share that client,
        so after closing any one of them the others stop sending a token
        even though their own ``is_valid()`` still reports True.
        """
        with self._lock:
            self.is_authenticated = False
            self.session_token = ""
            self.client.set_auth_token("")

    def clone(self) -> "Session":
        """Copy the session, sharing the same client.

        The copy starts with empty last-command and last-error bookkeeping,
        giving an independent view of command tracking without logging on
        again. The client, and so its auth token, is shared: closing the
        copy also stops this session's requests from carrying the token.
        """
        with self._lock:
            copy = Session(self.base_uri, client=self.client)
            copy.api_uri = self.api_uri
            copy.user = self.user
            copy.external_version = self.external_version
            copy.start_time = self.start_time
            copy.is_authenticated = self.is_authenticated
            copy.auth_method = self.auth_method
            copy.session_token = self.session_token
            copy.privilege_cloud = self.privilege_cloud
            return copy

    def is_valid(self) -> bool:
        """True while authenticated with a non-empty token."""
        with self._lock:
            return self.is_authenticated and self.session_token != ""
