"""Logon, logoff and server information.

Creates authenticated :class:`~pypas.session.Session` objects against the
PAS REST API and ends them again. Supports CyberArk, LDAP, RADIUS and
Windows credentials logon, and SAML logon.
"""

import enum

import httpx
import pydantic
import structlog

from .helpers import hide_secret_value
from .restapi import (
    DEFAULT_TIMEOUT,
    AuthenticationError,
    ConfigurationError,
    PASError,
    PASRestClient,
    Response,
    as_api_error,
    types,
)
from .session import Session

logger = structlog.get_logger(__name__)

LOGOFF_PATH = "/Auth/Logoff"
SAML_LOGON_PATH = "/Auth/SAML/Logon"
SERVER_INFO_PATH = "/WebServices/PIMServices.svc/Server"
COMPONENTS_SUMMARY_PATH = "/ComponentsMonitoringSummary"

SAML_USER = "SAML User"


class AuthMethod(enum.StrEnum):
    """Authentication method of a logon."""

    CYBERARK = "CyberArk"
    LDAP = "LDAP"
    RADIUS = "RADIUS"
    WINDOWS = "Windows"
    SAML = "SAML"

    @property
    def logon_path(self) -> str:
        return f"/Auth/{self.value}/Logon"


class Credentials(pydantic.BaseModel):
    """Username and password for a credentials logon."""

    username: str = ""
    password: pydantic.SecretStr = pydantic.SecretStr("")


class _ConnectionOptions(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(arbitrary_types_allowed=True)

    base_url: str = pydantic.Field("", description="PVWA base URL")
    concurrent_session: bool = pydantic.Field(
        False,
        description="Allow concurrent sessions for the same user",
    )
    skip_tls_verify: bool = pydantic.Field(
        False,
        description="Do not verify the server TLS certificate",
    )
    timeout: float = pydantic.Field(
        DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        ge=0,
    )
    http_client: httpx.Client | None = pydantic.Field(
        None,
        description="Pre-built transport, overrides timeout and skip_tls_verify",
    )

    def build_session(self) -> Session:
        client = PASRestClient(
            self.base_url,
            self.timeout,
            verify_tls=not self.skip_tls_verify,
            http_client=self.http_client,
        )
        return Session(self.base_url, client=client)


class SessionOptions(_ConnectionOptions):
    """Options for :func:`new_session`."""

    credentials: Credentials = pydantic.Field(default_factory=Credentials)
    auth_method: AuthMethod = pydantic.Field(
        AuthMethod.CYBERARK,
        description="Authentication method",
    )
    skip_version_check: bool = pydantic.Field(
        False,
        description="Do not fetch the server version after logon",
    )


class SAMLSessionOptions(_ConnectionOptions):
    """Options for :func:`new_saml_session`."""

    saml_response: str = pydantic.Field("", description="SAML response from the IdP")
    use_integrated_auth: bool = pydantic.Field(
        False,
        description="Use Windows integrated authentication",
    )
    idp_login_url: str = pydantic.Field("", description="Identity provider login URL")


class LogonRequest(pydantic.BaseModel):
    """Body of a credentials logon."""

    model_config = pydantic.ConfigDict(populate_by_name=True)

    username: str
    password: str
    concurrent_session: bool | None = pydantic.Field(None, alias="concurrentSession")


class SAMLLogonRequest(pydantic.BaseModel):
    """Body of a SAML logon."""

    model_config = pydantic.ConfigDict(populate_by_name=True)

    saml_response: str | None = pydantic.Field(None, alias="SAMLResponse")
    concurrent_session: bool | None = pydantic.Field(None, alias="concurrentSession")


def _trim_quotes(value: str) -> str:
    """Remove one pair of surrounding double quotes."""
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':  # noqa: PLR2004
        return value[1:-1]
    return value


def _extract_token(response: Response) -> str:
    """Read the session token from a logon response.

    The token is normally in ``CyberArkLogonResult``; some versions answer
    with a bare JSON string instead. A JSON object without a usable token
    yields an empty string.
    """
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        try:
            return types.LogonResult.model_validate(data).token
        except pydantic.ValidationError:
            logger.debug("Logon response has a malformed token field")
            return ""
    return _trim_quotes(response.body.decode("utf-8", errors="replace").strip())


def _fetch_server_version(session: Session) -> None:
    """Record the server version on the session, best effort."""
    try:
        info = get_server_info(session)
    except PASError as exc:
        logger.warning("Failed to fetch server version", error=str(exc))
        return
    session.set_version(info.external_version)


def new_session(options: SessionOptions) -> Session:
    """Log on with credentials and return an authenticated session.

    Args:
        options: Server, credentials and logon options.

    Returns:
        An authenticated session. Unless ``skip_version_check`` is set the
        server version is recorded as well; failing to get it is only logged.

    Raises:
        ConfigurationError: If base URL, username or password is missing.
        AuthenticationError: If the server returns no token.
        APIError: If the server rejects the logon.
        TransportError: If the server cannot be reached.
    """
    if not options.base_url:
        msg = "base_url is required"
        raise ConfigurationError(msg)
    if not options.credentials.username:
        msg = "username is required"
        raise ConfigurationError(msg)
    password = options.credentials.password.get_secret_value()
    if not password:
        msg = "password is required"
        raise ConfigurationError(msg)

    session = options.build_session()
    session.update_last_command("new_session")

    body = LogonRequest(
        username=options.credentials.username,
        password=password,
        concurrent_session=options.concurrent_session or None,
    )
    logger.debug(
        "Logging on",
        base_url=options.base_url,
        user=options.credentials.username,
        auth_method=str(options.auth_method),
    )
    try:
        response = session.client.post(options.auth_method.logon_path, body)
    except PASError as exc:
        session.update_last_error(exc)
        raise

    token = _extract_token(response)
    if not token:
        msg = "no authentication token received"
        exc = AuthenticationError(msg)
        session.update_last_error(exc)
        raise exc

    session.set_authenticated(
        options.credentials.username,
        token,
        str(options.auth_method),
    )
    logger.info(
        "Session established",
        base_url=options.base_url,
        user=options.credentials.username,
        auth_method=str(options.auth_method),
        token=hide_secret_value(token),
    )

    if not options.skip_version_check:
        _fetch_server_version(session)
    return session


def new_saml_session(options: SAMLSessionOptions) -> Session:
    """Log on with a SAML response and return an authenticated session.

    Raises:
        ConfigurationError: If base URL is missing, or no SAML response is
            given without integrated auth.
        AuthenticationError: If the server returns no token.
        APIError: If the server rejects the logon.
        TransportError: If the server cannot be reached.
    """
    if not options.base_url:
        msg = "base_url is required"
        raise ConfigurationError(msg)
    if not options.saml_response and not options.use_integrated_auth:
        msg = "saml_response is required when not using integrated auth"
        raise ConfigurationError(msg)

    session = options.build_session()
    session.update_last_command("new_saml_session")

    body = SAMLLogonRequest(
        saml_response=options.saml_response or None,
        concurrent_session=options.concurrent_session or None,
    )
    try:
        response = session.client.post(SAML_LOGON_PATH, body)
    except PASError as exc:
        session.update_last_error(exc)
        raise

    token = _extract_token(response)
    if not token:
        msg = "no authentication token received"
        exc = AuthenticationError(msg)
        session.update_last_error(exc)
        raise exc

    session.set_authenticated(SAML_USER, token, str(AuthMethod.SAML))
    logger.info(
        "Session established",
        base_url=options.base_url,
        auth_method=str(AuthMethod.SAML),
        token=hide_secret_value(token),
    )

    _fetch_server_version(session)
    return session


def close_session(session: Session | None) -> None:
    """Log off from the server and invalidate the session.

    A missing or already invalid session is a no-op. A 401 from the logoff
    call means the server already ended the session, and is not an error.

    Raises:
        APIError: If logoff fails with any status other than 401.
        TransportError: If the server cannot be reached.
    """
    if session is None or not session.is_valid():
        return

    session.update_last_command("close_session")
    try:
        session.client.post(LOGOFF_PATH)
    except PASError as exc:
        api_error = as_api_error(exc)
        if api_error is None or not api_error.is_unauthorized:
            session.update_last_error(exc)
            raise
        logger.info("Session already logged off", user=session.user)
    session.close()
    logger.info("Session closed", user=session.user)


def get_server_info(session: Session | None) -> types.ServerInfo:
    """Fetch server name, version and services. Needs no logon."""
    if session is None:
        msg = "session is required"
        raise ConfigurationError(msg)

    session.update_last_command("get_server_info")
    try:
        response = session.client.get(SERVER_INFO_PATH)
        return types.ServerInfo.model_validate_json(response.body)
    except pydantic.ValidationError as exc:
        session.update_last_error(exc)
        msg = f"failed to parse server info: {exc}"
        raise PASError(msg) from exc
    except PASError as exc:
        session.update_last_error(exc)
        raise


def get_components_health(session: Session | None) -> list[types.ComponentHealth]:
    """Fetch the health summary of the vault components.

    Raises:
        ConfigurationError: If the session is missing or not authenticated.
        PASError: If the response cannot be parsed.
    """
    if session is None or not session.is_valid():
        msg = "valid session is required"
        raise ConfigurationError(msg)

    session.update_last_command("get_components_health")
    try:
        response = session.client.get(COMPONENTS_SUMMARY_PATH)
        summary = types.ComponentsSummary.model_validate_json(response.body)
    except pydantic.ValidationError as exc:
        session.update_last_error(exc)
        msg = f"failed to parse component health: {exc}"
        raise PASError(msg) from exc
    except PASError as exc:
        session.update_last_error(exc)
        raise
    return summary.components

