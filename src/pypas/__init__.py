"""pypas.

Python client for the CyberArk Privileged Access Security (PAS) REST API:
an HTTP client with token injection and typed API errors, a thread-safe
session state container, and logon/logoff.
"""

from .restapi import APIError, PASError, PASRestClient
from .session import Session

__version__ = "0.1.0"
__all__ = ["APIError", "PASError", "PASRestClient", "Session"]
