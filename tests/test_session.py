"""Tests for Session state transitions, cloning and thread safety."""

import threading
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from pypas import session
from pypas.restapi import ConfigurationError, PASRestClient

BASE_URI = "https://pvwa.example.com"


@pytest.fixture
def sess() -> session.Session:
    return session.Session(BASE_URI)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_new_session_is_unauthenticated(sess: session.Session):
    """A fresh session has a client but no identity."""
    assert isinstance(sess.client, PASRestClient)
    assert sess.base_uri == BASE_URI
    assert sess.api_uri == f"{BASE_URI}/PasswordVault/API"
    assert sess.is_authenticated is False
    assert sess.session_token == ""
    assert sess.user == ""
    assert sess.last_command == ""
    assert sess.last_command_time is None
    assert sess.start_time is not None
    assert not sess.is_valid()


def test_empty_base_uri_raises():
    with pytest.raises(ConfigurationError):
        session.Session("")


def test_supplied_client_is_used():
    """A pre-built client is owned as-is and its API URL recorded."""
    api_client = PASRestClient("https://other.example.com/")
    sess = session.Session(BASE_URI, client=api_client)
    assert sess.client is api_client
    assert sess.api_uri == "https://other.example.com/PasswordVault/API"


# ---------------------------------------------------------------------------
# Setters
# ---------------------------------------------------------------------------


def test_set_authenticated_updates_session_and_client(sess: session.Session):
    sess.set_authenticated("alice", "tok123", "CyberArk")

    assert sess.user == "alice"
    assert sess.session_token == "tok123"
    assert sess.auth_method == "CyberArk"
    assert sess.is_authenticated is True
    assert sess.client.get_auth_token() == "tok123"


def test_set_version(sess: session.Session):
    sess.set_version("14.0")
    assert sess.external_version == "14.0"


def test_set_privilege_cloud(sess: session.Session):
    sess.set_privilege_cloud(True)
    assert sess.privilege_cloud is True
    sess.set_privilege_cloud(False)
    assert sess.privilege_cloud is False


def test_update_last_command_stamps_time(sess: session.Session):
    sess.update_last_command("get_accounts")
    assert sess.last_command == "get_accounts"
    assert sess.last_command_time is not None
    assert sess.last_command_time >= sess.start_time


def test_update_last_error_stamps_time(sess: session.Session):
    error = RuntimeError("boom")
    sess.update_last_error(error)
    assert sess.last_error is error
    assert sess.last_error_time is not None


def test_elapsed_time_grows_from_start(sess: session.Session):
    """Elapsed time is measured from start_time."""
    sess.start_time -= timedelta(minutes=5)
    elapsed = sess.get_elapsed_time()
    assert elapsed >= timedelta(minutes=5)
    assert elapsed < timedelta(minutes=6)


# ---------------------------------------------------------------------------
# Validity and close
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("is_authenticated", "token", "expected"),
    [
        (True, "tok", True),
        (True, "", False),
        (False, "tok", False),
        (False, "", False),
    ],
)
def test_is_valid_requires_flag_and_token(sess, is_authenticated, token, expected):
    sess.is_authenticated = is_authenticated
    sess.session_token = token
    assert sess.is_valid() is expected


def test_close_invalidates_but_keeps_metadata(sess: session.Session):
    """Close clears the token and flag but leaves the identity in place."""
    sess.set_authenticated("alice", "tok123", "LDAP")
    sess.close()

    assert not sess.is_valid()
    assert sess.is_authenticated is False
    assert sess.session_token == ""
    assert sess.client.get_auth_token() == ""
    assert sess.user == "alice"
    assert sess.auth_method == "LDAP"
    assert sess.client is not None


def test_close_does_no_network_io():
    """Close only changes local state."""
    api_client = MagicMock(spec=PASRestClient)
    api_client.get_api_url.return_value = f"{BASE_URI}/PasswordVault/API"
    sess = session.Session(BASE_URI, client=api_client)
    sess.set_authenticated("alice", "tok", "CyberArk")

    sess.close()

    api_client.do.assert_not_called()
    api_client.post.assert_not_called()


def test_reauthenticate_after_close(sess: session.Session):
    sess.set_authenticated("alice", "tok1", "CyberArk")
    sess.close()
    sess.set_authenticated("bob", "tok2", "RADIUS")
    assert sess.is_valid()
    assert sess.client.get_auth_token() == "tok2"


def test_end_to_end_state_machine():
    """Unauthenticated, then authenticated, then closed."""
    sess = session.Session("https://host")
    assert sess.is_valid() is False

    sess.set_authenticated("alice", "tok123", "CyberArk")
    assert sess.is_valid() is True
    assert sess.client.get_auth_token() == "tok123"

    sess.close()
    assert sess.is_valid() is False
    assert sess.session_token == ""
    assert sess.user == "alice"


# ---------------------------------------------------------------------------
# Clone
# ---------------------------------------------------------------------------


def test_clone_copies_identity_and_shares_client(sess: session.Session):
    sess.set_authenticated("alice", "tok123", "CyberArk")
    sess.set_version("14.2")
    sess.set_privilege_cloud(True)
    sess.update_last_command("get_safes")
    sess.update_last_error(RuntimeError("x"))

    copy = sess.clone()

    assert copy is not sess
    assert copy.client is sess.client
    assert copy.user == "alice"
    assert copy.session_token == "tok123"
    assert copy.auth_method == "CyberArk"
    assert copy.is_authenticated is True
    assert copy.privilege_cloud is True
    assert copy.external_version == "14.2"
    assert copy.api_uri == sess.api_uri
    assert copy.base_uri == sess.base_uri
    assert copy.start_time == sess.start_time
    assert copy.last_command == ""
    assert copy.last_command_time is None
    assert copy.last_error is None
    assert copy.last_error_time is None
    assert copy.is_valid()


def test_clone_has_independent_command_tracking(sess: session.Session):
    copy = sess.clone()
    copy.update_last_command("list_users")
    assert sess.last_command == ""
    assert copy.last_command == "list_users"


def test_closing_clone_clears_shared_client_token(sess: session.Session):
    """The clone shares the client, so its close drops the token for both."""
    sess.set_authenticated("alice", "tok123", "CyberArk")
    copy = sess.clone()

    copy.close()

    assert not copy.is_valid()
    assert sess.is_valid()
    assert sess.client.get_auth_token() == ""


def test_clone_does_not_build_a_new_client(sess: session.Session):
    with patch.object(session, "PASRestClient") as client_cls:
        sess.clone()
    client_cls.assert_not_called()


# ---------------------------------------------------------------------------
# Thread safety
# ---------------------------------------------------------------------------


def test_concurrent_access_never_corrupts_state(sess: session.Session):
    """Many threads mutating and reading the session leave it consistent."""
    iterations = 50
    failures = []

    def writer():
        for _ in range(iterations):
            sess.set_authenticated("user", "token", "method")
            sess.set_version("14.0")
            sess.set_privilege_cloud(True)
            sess.update_last_command("cmd")
            sess.update_last_error(RuntimeError("error"))

    def reader():
        for _ in range(iterations):
            try:
                sess.is_valid()
                sess.get_elapsed_time()
                copy = sess.clone()
                assert copy.client is sess.client
            except Exception as exc:  # noqa: BLE001
                failures.append(exc)

    threads = [threading.Thread(target=writer) for _ in range(10)]
    threads += [threading.Thread(target=reader) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert failures == []
    assert sess.is_valid()
    assert sess.user == "user"
    assert sess.client.get_auth_token() == "token"
    assert sess.external_version == "14.0"
    assert sess.last_command == "cmd"
