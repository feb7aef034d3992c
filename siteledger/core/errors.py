"""Error taxonomy shared by the gateway, live queries and API."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every failure surfaced by the ledger layer."""

    kind = "unknown"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError, ValueError):
    """A required field is missing or invalid; raised before any database access."""

    kind = "validation"


class NotFound(LedgerError):
    kind = "not_found"


class NotAuthorized(LedgerError):
    """The caller does not own the requested rows."""

    kind = "not_authorized"


class TransientIOError(LedgerError):
    """The database could not be reached or dropped the connection."""

    kind = "transient"


class UnknownLedgerError(LedgerError):
    kind = "unknown"


__all__ = [
    "LedgerError",
    "NotAuthorized",
    "NotFound",
    "TransientIOError",
    "UnknownLedgerError",
    "ValidationError",
]
