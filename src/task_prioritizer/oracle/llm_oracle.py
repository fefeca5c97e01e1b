"""Reasoning oracle backed by an LLM completion backend."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import NoReturn

from task_prioritizer.config import OracleSettings
from task_prioritizer.oracle import prompts
from task_prioritizer.oracle.backend.base import BackendRunError, BackendRunRequest, LlmBackend
from task_prioritizer.oracle.failure_classifier import FailureClass, classify_backend_failure
from task_prioritizer.oracle.parsing import parse_task_proposals
from task_prioritizer.sanitization import sanitize_preview
from task_prioritizer.scheduler.errors import OracleUnavailable, TaskExecutionFailure
from task_prioritizer.scheduler.models import ExecutionRecord, Task

logger = logging.getLogger(__name__)

PURPOSE_INITIAL = "initial_tasks"
PURPOSE_ADDITIONAL = "additional_tasks"
PURPOSE_EXECUTE = "execute"

HTTP_TRANSIENT_STATUSES: tuple[int, ...] = (408, 429, 500, 502, 503, 504, 529)

_ERROR_PREVIEW_CHARS = 300


class LlmReasoningOracle:
    """Implements ``ReasoningOracle`` over any ``LlmBackend``.

    Generation failures surface as ``OracleUnavailable`` and execution
    failures as ``TaskExecutionFailure``; both carry a ``FailureClass`` value.
    Output that parses to no tasks is an empty batch, not an error.

    ``execute`` reuses the goal of the latest generation call, so one instance
    serves one run at a time.
    """

    def __init__(
        self,
        backend: LlmBackend,
        settings: OracleSettings,
        *,
        shutdown_requested: Callable[[], bool] | None = None,
    ) -> None:
        self.backend = backend
        self.settings = settings
        self.shutdown_requested = shutdown_requested
        self._goal = ""

    def generate_initial_tasks(self, goal: str) -> list[Task]:
        self._goal = goal
        text = self._complete(
            purpose=PURPOSE_INITIAL,
            system=prompts.GENERATION_SYSTEM_PROMPT,
            prompt=prompts.initial_tasks_prompt(goal),
            max_tokens=self.settings.generation_max_tokens,
        )
        return _to_tasks(text, origin_iteration=0)

    def generate_additional_tasks(
        self,
        goal: str,
        ledger: Sequence[ExecutionRecord],
    ) -> list[Task]:
        self._goal = goal
        text = self._complete(
            purpose=PURPOSE_ADDITIONAL,
            system=prompts.ADDITIONAL_SYSTEM_PROMPT,
            prompt=prompts.additional_tasks_prompt(goal, ledger),
            max_tokens=self.settings.generation_max_tokens,
        )
        return _to_tasks(text, origin_iteration=len(ledger))

    def execute(self, task: Task, ledger: Sequence[ExecutionRecord]) -> str:
        goal = self._goal
        text = self._complete(
            purpose=PURPOSE_EXECUTE,
            system=prompts.execution_system_prompt(goal),
            prompt=prompts.execute_task_prompt(goal, task, ledger),
            max_tokens=self.settings.execution_max_tokens,
        )
        summary = text.strip()
        if not summary:
            raise TaskExecutionFailure(
                "Backend returned an empty result.",
                failure_class=FailureClass.EMPTY_OUTPUT.value,
            )
        return summary

    def _complete(self, *, purpose: str, system: str, prompt: str, max_tokens: int) -> str:
        request = BackendRunRequest(
            purpose=purpose,
            system=system,
            prompt=prompt,
            model=self.settings.model,
            max_tokens=max_tokens,
            timeout_seconds=self.settings.timeout_seconds,
            shutdown_requested=self.shutdown_requested,
            graceful_shutdown_seconds=self.settings.graceful_shutdown_seconds,
        )
        started = time.monotonic()
        try:
            result = self.backend.run(request)
        except BackendRunError as error:
            _raise_failure(
                purpose=purpose,
                message=str(error),
                failure_class=(
                    FailureClass.BACKEND_TRANSIENT
                    if error.transient
                    else FailureClass.BACKEND_NON_RETRYABLE
                ),
                transient=error.transient,
                cause=error,
            )
        elapsed = time.monotonic() - started

        if result.timed_out:
            _raise_failure(
                purpose=purpose,
                message=f"{self.backend.name} backend timed out after {elapsed:.1f}s",
                failure_class=FailureClass.TIMEOUT,
                transient=True,
            )
        if result.exit_code != 0:
            classified = classify_backend_failure(
                backend=self.backend.name,
                exit_code=result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
                transient_exit_codes=self._transient_exit_codes(),
            )
            detail = sanitize_preview(
                result.stderr or result.stdout,
                max_chars=_ERROR_PREVIEW_CHARS,
            )
            _raise_failure(
                purpose=purpose,
                message=(
                    f"{self.backend.name} backend exit code {result.exit_code} "
                    f"({classified.reason_code}): {detail}"
                ),
                failure_class=classified.failure_class,
                transient=classified.transient,
            )

        logger.debug("Backend %s completed %s in %.1fs", self.backend.name, purpose, elapsed)
        return result.stdout

    def _transient_exit_codes(self) -> tuple[int, ...]:
        if self.backend.name == "http":
            return HTTP_TRANSIENT_STATUSES
        return self.settings.transient_exit_codes


def _to_tasks(text: str, *, origin_iteration: int) -> list[Task]:
    proposals = parse_task_proposals(text)
    if not proposals and text.strip():
        logger.warning(
            "No tasks recovered from backend output: %s",
            sanitize_preview(text, max_chars=_ERROR_PREVIEW_CHARS),
        )
    return [
        Task.create(
            proposal.description,
            priority=proposal.priority,
            estimated_effort=proposal.estimated_effort,
            origin_iteration=origin_iteration,
        )
        for proposal in proposals
    ]


def _raise_failure(
    *,
    purpose: str,
    message: str,
    failure_class: FailureClass,
    transient: bool,
    cause: BaseException | None = None,
) -> NoReturn:
    if purpose == PURPOSE_EXECUTE:
        raise TaskExecutionFailure(message, failure_class=failure_class.value) from cause
    raise OracleUnavailable(
        message,
        failure_class=failure_class.value,
        transient=transient,
    ) from cause
