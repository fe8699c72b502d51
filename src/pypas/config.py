"""Connection configuration loaded from a JSON file."""

import json
import os
import pathlib

import pydantic

from . import log
from .authentication import AuthMethod, Credentials, SessionOptions
from .restapi import DEFAULT_TIMEOUT, ConfigurationError

CONFIG_ENV_VAR = "PYPAS_CONFIG_PATH"


class ConnectionConfig(pydantic.BaseModel):
    """Settings for connecting to a PAS server."""

    base_url: str = pydantic.Field(description="PVWA base URL")
    username: str = pydantic.Field(description="Logon user name")
    password_file: str = pydantic.Field(
        description="Path to file containing the logon password",
    )
    auth_method: AuthMethod = pydantic.Field(
        AuthMethod.CYBERARK,
        description="Authentication method",
    )
    concurrent_session: bool = pydantic.Field(
        False,
        description="Allow concurrent sessions for the same user",
    )
    skip_version_check: bool = pydantic.Field(
        False,
        description="Do not fetch the server version after logon",
    )
    skip_tls_verify: bool = pydantic.Field(
        False,
        description="Do not verify the server TLS certificate",
    )
    timeout: float = pydantic.Field(
        DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")

    def read_password(self) -> str:
        """Read the password file, stripping surrounding whitespace.

        Raises:
            FileNotFoundError: If the password file does not exist.
        """
        path = pathlib.Path(self.password_file)
        if not path.exists():
            msg = f"Password file not found: {self.password_file}"
            raise FileNotFoundError(msg)
        return path.read_text().strip()

    def configure_logging(self) -> None:
        """Configure structlog output at the configured ``log_level``."""
        log.configure_logging(self.log_level)

    def to_session_options(self) -> SessionOptions:
        """Build logon options, reading the password from its file."""
        return SessionOptions(
            base_url=self.base_url,
            credentials=Credentials(
                username=self.username,
                password=self.read_password(),
            ),
            auth_method=self.auth_method,
            concurrent_session=self.concurrent_session,
            skip_version_check=self.skip_version_check,
            skip_tls_verify=self.skip_tls_verify,
            timeout=self.timeout,
        )


def load_config(config_path: str | None = None) -> ConnectionConfig:
    """Load configuration from a JSON file.

    Args:
        config_path: Path to the file. Defaults to the path in the
            ``PYPAS_CONFIG_PATH`` environment variable.

    Raises:
        ConfigurationError: If no path is given and the variable is unset.
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the file content is invalid.
    """
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR)
    if not resolved_path:
        msg = f"No configuration path given and {CONFIG_ENV_VAR} is not set"
        raise ConfigurationError(msg)

    path = pathlib.Path(resolved_path)
    if not path.exists():
        msg = f"Configuration file not found: {resolved_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        data = json.load(f)

    return ConnectionConfig(**data)
