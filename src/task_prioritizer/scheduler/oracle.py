"""Reasoning oracle interface consumed by the scheduler."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from task_prioritizer.scheduler.models import ExecutionRecord, Task


@runtime_checkable
class ReasoningOracle(Protocol):
    """Protocol implemented by task planners/executors.

    Calls are blocking from the scheduler's point of view and must return or
    raise within a bounded time; the scheduler enforces no timeout itself.
    """

    def generate_initial_tasks(self, goal: str) -> list[Task]:
        """Propose the first batch of tasks. Raise ``OracleUnavailable`` on failure."""

    def generate_additional_tasks(
        self,
        goal: str,
        ledger: Sequence[ExecutionRecord],
    ) -> list[Task]:
        """Propose follow-up tasks given everything executed so far, in order."""

    def execute(self, task: Task, ledger: Sequence[ExecutionRecord]) -> str:
        """Run one task and return a result summary. Raise ``TaskExecutionFailure`` on failure."""
