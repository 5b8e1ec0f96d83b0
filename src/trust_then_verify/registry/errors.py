"""Exceptions raised at the trust registry network boundary.

An agent that does not exist is not an error: lookups return ``None`` and
the transaction gate turns that into a denial. Only infrastructure failures
and rejected write operations raise.
"""
from __future__ import annotations


class RegistryError(Exception):
    """Base class for all trust registry failures."""


class RegistryUnavailableError(RegistryError):
    """Raised when the registry cannot be reached or reports a gateway error.

    Covers transport failures (connection errors, timeouts) and the
    502 / 503 / 504 status codes. Callers should treat this as "try again
    later", not as a verdict on the counterparty.
    """

    def __init__(self, message: str = "Trust registry is temporarily offline") -> None:
        super().__init__(message)


class RegistryOperationError(RegistryError):
    """Raised when a registry write (registration, review) is rejected.

    Parameters
    ----------
    message:
        The server-supplied error message, or a generic templated one.
    status_code:
        HTTP status code of the rejected request.
    """

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code
