"""
Failure vocabulary shared by services, routes and the outcome classifier.

Services raise one of the tagged Failure subclasses below. Exceptions coming
out of SQLAlchemy, the DB driver or the framework are converted into the same
closed set by translate_exception() at the data-access boundary, so nothing
downstream needs to parse driver messages.
"""

import asyncio
import re
from enum import Enum
from typing import Optional, Sequence, Tuple

from fastapi.exceptions import RequestValidationError
from sqlalchemy import exc as sa_exc


class FailureCode(str, Enum):
    VALIDATION_FAILED = "validation_failed"
    RECORD_NOT_FOUND = "record_not_found"
    DUPLICATE_KEY = "duplicate_key"
    AUTHENTICATION_FAILED = "authentication_failed"
    CONNECTION_REFUSED = "connection_refused"
    OPERATION_TIMED_OUT = "operation_timed_out"
    UNCLASSIFIED = "unclassified"


class Failure(Exception):
    """Base class for tagged failures"""

    code: FailureCode = FailureCode.UNCLASSIFIED

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationFailure(Failure):
    """Missing or malformed input detected before touching the data store"""

    code = FailureCode.VALIDATION_FAILED

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class RecordNotFound(Failure):
    code = FailureCode.RECORD_NOT_FOUND

    def __init__(self, entity: str = "Record", message: Optional[str] = None):
        super().__init__(message or f"{entity} not found")
        self.entity = entity


class UniqueViolation(Failure):
    """A uniqueness constraint rejected a write. target lists the column names involved."""

    code = FailureCode.DUPLICATE_KEY

    def __init__(self, target: Sequence[str] = (), message: str = ""):
        super().__init__(message or "Unique constraint violated")
        self.target: Tuple[str, ...] = tuple(target)


class AuthenticationFailed(Failure):
    code = FailureCode.AUTHENTICATION_FAILED


class ConnectionRefused(Failure):
    code = FailureCode.CONNECTION_REFUSED


class OperationTimedOut(Failure):
    code = FailureCode.OPERATION_TIMED_OUT


class UnclassifiedFailure(Failure):
    code = FailureCode.UNCLASSIFIED

    def __init__(self, message: str = "", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


# SQLSTATE codes reported by PostgreSQL drivers
_PG_UNIQUE_VIOLATION = "23505"
_PG_AUTH_CODES = ("28P01", "28000")
_PG_QUERY_CANCELED = "57014"

_SQLITE_UNIQUE_RE = re.compile(r"UNIQUE constraint failed: (?P<cols>[^\n\[]+)")
_PG_KEY_RE = re.compile(r"Key \((?P<cols>[^)]+)\)=")

_CONNECTION_MARKERS = ("connection refused", "could not connect", "unable to open database file")
_AUTH_MARKERS = ("password authentication failed", "authentication failed")
_TIMEOUT_MARKERS = ("timeout", "timed out")


def translate_exception(exc: BaseException) -> Failure:
    """Map any exception onto the tagged failure vocabulary."""
    if isinstance(exc, Failure):
        return exc

    if isinstance(exc, RequestValidationError):
        return _from_request_validation(exc)

    if isinstance(exc, sa_exc.NoResultFound):
        return RecordNotFound("Record", message=str(exc))

    if isinstance(exc, sa_exc.IntegrityError):
        target = _unique_target(exc)
        if target is not None:
            return UniqueViolation(target, message=_first_line(exc))
        return UnclassifiedFailure(_first_line(exc), cause=exc)

    # Pool checkout timeout; must be tested before the DBAPIError branch below
    if isinstance(exc, sa_exc.TimeoutError):
        return OperationTimedOut(str(exc))

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return OperationTimedOut(str(exc) or "Operation timed out")

    if isinstance(exc, ConnectionRefusedError):
        return ConnectionRefused(str(exc) or "Connection refused")

    if isinstance(exc, sa_exc.DBAPIError):
        return _from_dbapi_error(exc)

    return UnclassifiedFailure(_first_line(exc), cause=exc)


def _from_request_validation(exc: RequestValidationError) -> ValidationFailure:
    errors = exc.errors()
    if not errors:
        return ValidationFailure("Invalid request")
    first = errors[0]
    if first.get("type") == "json_invalid":
        return ValidationFailure("Malformed JSON body", field="body")
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc) if loc else None
    reason = first.get("msg", "invalid value")
    if field:
        return ValidationFailure(f"Invalid value for '{field}': {reason}", field=field)
    return ValidationFailure(f"Invalid request: {reason}")


def _from_dbapi_error(exc: sa_exc.DBAPIError) -> Failure:
    sqlstate = _sqlstate(exc)
    text = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = text.lower()

    if sqlstate in _PG_AUTH_CODES or any(marker in lowered for marker in _AUTH_MARKERS):
        return AuthenticationFailed(_first_line(exc))
    if any(marker in lowered for marker in _CONNECTION_MARKERS):
        return ConnectionRefused(_first_line(exc))
    if sqlstate == _PG_QUERY_CANCELED or any(marker in lowered for marker in _TIMEOUT_MARKERS):
        return OperationTimedOut(_first_line(exc))
    return UnclassifiedFailure(_first_line(exc), cause=exc)


def _unique_target(exc: sa_exc.IntegrityError) -> Optional[Tuple[str, ...]]:
    """Columns named by a unique-constraint failure, or None for other integrity errors"""
    text = str(exc.orig) if exc.orig is not None else str(exc)

    match = _SQLITE_UNIQUE_RE.search(text)
    if match:
        return tuple(col.strip().split(".")[-1] for col in match.group("cols").split(","))

    if _sqlstate(exc) == _PG_UNIQUE_VIOLATION or "duplicate key value" in text:
        match = _PG_KEY_RE.search(text)
        if match:
            return tuple(col.strip().strip('"') for col in match.group("cols").split(","))
        return ()

    return None


def _sqlstate(exc: sa_exc.DBAPIError) -> Optional[str]:
    orig = exc.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _first_line(exc: BaseException) -> str:
    text = str(getattr(exc, "orig", None) or exc)
    return text.splitlines()[0] if text else ""
