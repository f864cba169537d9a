"""Error taxonomy for Featherbone.

Every error that leaves the dispatcher is a FeatherboneError carrying a
message and an HTTP-style status code, so adapters can format it without
knowing where it came from.
"""

import builtins
from typing import Any


class FeatherboneError(Exception):
    """Base class for all framework errors.

    Attributes:
        message: Human-readable message
        status_code: HTTP-style status code (500 unless a subclass or the
            raiser says otherwise)
    """

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "statusCode": self.status_code}


class ConnectionError(FeatherboneError, builtins.ConnectionError):
    """A database connection could not be acquired. Never retried."""


class UnauthenticatedError(FeatherboneError):
    """No identity could be resolved for the request."""

    status_code = 401


class UnregisteredOperationError(FeatherboneError):
    """The (method, name) pair is neither a feather nor a registered function."""

    def __init__(self, method: str, name: str):
        super().__init__(f"Function {method} {name} is not registered.")
        self.method = method
        self.name = name


class BusinessRuleError(FeatherboneError):
    """Raised by triggers and functions to reject an operation."""


class StorageError(FeatherboneError):
    """The CRUD executor or the database rejected a statement."""


class NotFoundError(FeatherboneError):
    """A feather or record does not exist."""

    status_code = 404


def normalize_error(exc: BaseException) -> FeatherboneError:
    """Coerce any exception into a FeatherboneError.

    Framework errors pass through unchanged; anything else becomes a
    generic 500 carrying the original message, chained to the original.
    """
    if isinstance(exc, FeatherboneError):
        return exc
    error = FeatherboneError(str(exc) or exc.__class__.__name__)
    error.__cause__ = exc
    return error
