"""Deterministic classification of failed backend calls.

Both backends talk to the same family of models, so one rule table covers
the Messages API error types, HTTP statuses from the http backend and the
plain-text errors a CLI agent prints before exiting.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

ORACLE_FAILURE_CLASSIFIER_VERSION = 1


class FailureClass(str, Enum):
    """Normalized failure classes attached to oracle errors."""

    TIMEOUT = "timeout"
    BACKEND_TRANSIENT = "backend_transient"
    BACKEND_NON_RETRYABLE = "backend_non_retryable"
    BILLING_OR_QUOTA = "billing_or_quota"
    ACCESS_OR_AUTH = "access_or_auth"
    MODEL_NOT_AVAILABLE = "model_not_available"
    EMPTY_OUTPUT = "empty_output"


@dataclass(frozen=True, slots=True)
class _Rule:
    name: str
    failure_class: FailureClass
    patterns: tuple[str, ...]
    http_statuses: tuple[int, ...] = ()


# First match wins; account problems outrank transient symptoms.
_RULES: tuple[_Rule, ...] = (
    _Rule(
        name="billing_or_quota",
        failure_class=FailureClass.BILLING_OR_QUOTA,
        patterns=(
            "credit balance",
            "quota",
            "billing",
            "payment required",
            "insufficient",
            "usage limit",
            "exceeded",
        ),
        http_statuses=(402,),
    ),
    _Rule(
        name="access_or_auth",
        failure_class=FailureClass.ACCESS_OR_AUTH,
        patterns=(
            "authentication_error",
            "permission_error",
            "invalid x-api-key",
            "invalid api key",
            "unauthorized",
            "forbidden",
            "not logged in",
        ),
        http_statuses=(401, 403),
    ),
    _Rule(
        name="model_not_available",
        failure_class=FailureClass.MODEL_NOT_AVAILABLE,
        patterns=(
            "not_found_error",
            "model not found",
            "unknown model",
            "invalid model",
            "model is not available",
        ),
        http_statuses=(404,),
    ),
    _Rule(
        name="rate_limit_transient",
        failure_class=FailureClass.BACKEND_TRANSIENT,
        patterns=(
            "rate_limit_error",
            "overloaded_error",
            "too many requests",
            "rate limit",
            "overloaded",
            "try again later",
        ),
        http_statuses=(429, 529),
    ),
)

_TRANSIENT_PATTERNS: tuple[str, ...] = (
    "api_error",
    "temporarily unavailable",
    "connection reset",
    "connection refused",
    "network error",
    "could not resolve host",
)


@dataclass(slots=True)
class BackendFailureClassification:
    """Normalized failure classification result."""

    failure_class: FailureClass
    reason_code: str
    matched_rule: str
    matched_pattern: str | None

    @property
    def transient(self) -> bool:
        return self.failure_class in {FailureClass.BACKEND_TRANSIENT, FailureClass.TIMEOUT}


def classify_backend_failure(
    *,
    backend: str,
    exit_code: int,
    stdout: str,
    stderr: str,
    transient_exit_codes: tuple[int, ...],
) -> BackendFailureClassification:
    """Classify a non-timeout failure by output text, then status or exit code.

    For the ``http`` backend ``exit_code`` carries the HTTP status.
    """

    output = f"{stderr}\n{stdout}".lower()

    def _result(
        failure_class: FailureClass,
        rule: str,
        pattern: str | None,
    ) -> BackendFailureClassification:
        return BackendFailureClassification(
            failure_class=failure_class,
            reason_code=f"{backend}_{rule}",
            matched_rule=rule,
            matched_pattern=pattern,
        )

    for rule in _RULES:
        pattern = next((candidate for candidate in rule.patterns if candidate in output), None)
        if pattern is not None or (backend == "http" and exit_code in rule.http_statuses):
            return _result(rule.failure_class, rule.name, pattern)

    pattern = next((candidate for candidate in _TRANSIENT_PATTERNS if candidate in output), None)
    if pattern is not None:
        return _result(FailureClass.BACKEND_TRANSIENT, "generic_transient", pattern)
    if exit_code in transient_exit_codes:
        return _result(FailureClass.BACKEND_TRANSIENT, "transient_exit_code", None)
    return _result(FailureClass.BACKEND_NON_RETRYABLE, "fallback_non_retryable", None)
