"""
Outcome Classifier

Maps any exception raised inside a request handler onto an Outcome (kind,
HTTP status, user-facing message). The rules are an ordered list; the first
rule whose predicate matches decides the outcome, so a failure that looks
like several things at once (a timeout code whose text also mentions
"function") is always classified the same way.

The classifier never raises. It writes exactly one log record per call,
carrying the failure code, its message and the original traceback.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from fastapi.responses import JSONResponse

from app.settings import is_production
from app.utils.envelope import Outcome, OutcomeKind, render
from app.utils.failures import Failure, FailureCode, UniqueViolation, translate_exception

logger = logging.getLogger(__name__)

TIMEOUT_MARKERS = ("timeout", "timed out")
RESOURCE_MARKERS = ("memory", "heap")
EXECUTION_ENV_MARKERS = ("serverless", "function", "execution", "lambda")

CONFLICT_MESSAGES = {
    "email": "A user with this email already exists",
    "clerk_id": "Clerk ID already exists",
    "phone_number": "Phone number already in use",
}
GENERIC_CONFLICT_MESSAGE = "Duplicate entry found"


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    matches: Callable[[Failure], bool]
    kind: OutcomeKind
    describe: Callable[[Failure], str]


def _has_code(code: FailureCode) -> Callable[[Failure], bool]:
    return lambda failure: failure.code is code


def _mentions(markers: Tuple[str, ...]) -> Callable[[Failure], bool]:
    return lambda failure: any(marker in (failure.message or "").lower() for marker in markers)


def conflict_message(failure: Failure) -> str:
    target = failure.target if isinstance(failure, UniqueViolation) else ()
    for field in target:
        if field in CONFLICT_MESSAGES:
            return CONFLICT_MESSAGES[field]
    if target:
        return f"A record with this {target[0].replace('_', ' ')} already exists"
    return GENERIC_CONFLICT_MESSAGE


CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        "validation",
        _has_code(FailureCode.VALIDATION_FAILED),
        OutcomeKind.CLIENT_ERROR,
        lambda failure: failure.message or "Invalid request",
    ),
    ClassificationRule(
        "not_found",
        _has_code(FailureCode.RECORD_NOT_FOUND),
        OutcomeKind.NOT_FOUND,
        lambda failure: failure.message or "Requested resource not found.",
    ),
    ClassificationRule(
        "duplicate_key",
        _has_code(FailureCode.DUPLICATE_KEY),
        OutcomeKind.CONFLICT,
        conflict_message,
    ),
    ClassificationRule(
        "authentication",
        _has_code(FailureCode.AUTHENTICATION_FAILED),
        OutcomeKind.SERVER_ERROR,
        lambda _: "Database authentication failed. Please try again later.",
    ),
    ClassificationRule(
        "connection",
        _has_code(FailureCode.CONNECTION_REFUSED),
        OutcomeKind.DEPENDENCY_UNAVAILABLE,
        lambda _: "Database connection error. Please try again later.",
    ),
    ClassificationRule(
        "timeout",
        lambda failure: failure.code is FailureCode.OPERATION_TIMED_OUT or _mentions(TIMEOUT_MARKERS)(failure),
        OutcomeKind.DEPENDENCY_TIMEOUT,
        lambda _: "Database operation timed out. Please try again later.",
    ),
    ClassificationRule(
        "resource_exhausted",
        _mentions(RESOURCE_MARKERS),
        OutcomeKind.DEPENDENCY_UNAVAILABLE,
        lambda _: "Server resource limit reached. Please try again later.",
    ),
    ClassificationRule(
        "execution_environment",
        _mentions(EXECUTION_ENV_MARKERS),
        OutcomeKind.SERVER_ERROR,
        lambda _: "Serverless function error. Please try again later.",
    ),
)


def fallback_message(failure: Failure, action: str, production: bool) -> str:
    if production:
        return f"An error occurred while trying to {action}. Please try again later."
    return f"Failed to {action}: {failure.message or 'Unknown error'}"


def classify_failure(
    exc: BaseException,
    action: str = "process the request",
    production: Optional[bool] = None,
) -> Outcome:
    """
    Classify a raised exception.

    Args:
        exc: The exception caught by the handler.
        action: What the handler was doing, used in the fallback message
            ("fetch courses" -> "Failed to fetch courses: ...").
        production: Environment mode; read from APP_ENV when omitted.

    Returns:
        A failure Outcome. Never raises.
    """
    if production is None:
        production = is_production()

    try:
        failure = translate_exception(exc)
    except Exception as translate_exc:  # keep the classifier total
        failure = Failure(f"{type(exc).__name__}: {exc} (untranslatable: {translate_exc})")

    _log_failure(exc, failure, action)

    for rule in CLASSIFICATION_RULES:
        if rule.matches(failure):
            return Outcome.failure(rule.kind, rule.describe(failure), error=failure.code.value)

    return Outcome.failure(
        OutcomeKind.SERVER_ERROR,
        fallback_message(failure, action, production),
        error=failure.code.value,
    )


def failure_response(exc: BaseException, action: str = "process the request") -> JSONResponse:
    """Classify exc and render it as an error envelope"""
    return render(classify_failure(exc, action=action))


def _log_failure(exc: BaseException, failure: Failure, action: str) -> None:
    exc_info = (type(exc), exc, exc.__traceback__) if exc.__traceback__ is not None else None
    logger.error(
        "Request failed while trying to %s [%s]: %s",
        action,
        failure.code.value,
        failure.message or type(exc).__name__,
        exc_info=exc_info,
    )
