"""Error taxonomy shared by the scheduler and oracle implementations."""

from __future__ import annotations

from task_prioritizer.scheduler.models import TerminationReason


class OracleUnavailable(RuntimeError):
    """Task generation could not complete (network, auth, quota)."""

    def __init__(
        self,
        message: str,
        *,
        failure_class: str | None = None,
        transient: bool = True,
    ) -> None:
        super().__init__(message)
        self.failure_class = failure_class
        self.transient = transient


class TaskExecutionFailure(RuntimeError):
    """The oracle failed to execute one task."""

    def __init__(self, message: str, *, failure_class: str | None = None) -> None:
        super().__init__(message)
        self.failure_class = failure_class


class GoalPlanningFailed(RuntimeError):
    """Initial task generation failed; the run was aborted before executing anything."""

    termination_reason = TerminationReason.GOAL_PLANNING_FAILED

    def __init__(self, goal: str, message: str) -> None:
        super().__init__(f"Planning failed for goal {goal!r}: {message}")
        self.goal = goal
