"""Final run report: structured value plus text rendering."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from task_prioritizer.sanitization import redact_secrets
from task_prioritizer.scheduler.models import ExecutionRecord, TerminationReason

DEFAULT_PREVIEW_CHARS = 200
_TITLE = "Task Prioritization Results"


@dataclass(frozen=True, slots=True)
class TaskResult:
    """Per-task outcome as exposed to callers."""

    task_id: str
    description: str
    priority: int
    success: bool
    summary: str
    iteration_index: int

    def to_dict(self) -> dict[str, object]:
        return {
            "task_id": self.task_id,
            "description": self.description,
            "priority": self.priority,
            "success": self.success,
            "summary": self.summary,
            "iteration_index": self.iteration_index,
        }


@dataclass(frozen=True, slots=True)
class Report:
    """Outcome of one scheduler run."""

    goal: str
    tasks_completed: int
    tasks_remaining: int
    tasks_failed: int
    iterations_used: int
    max_iterations: int
    termination_reason: TerminationReason
    goal_fully_achieved: bool
    per_task_results: tuple[TaskResult, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "goal": self.goal,
            "tasks_completed": self.tasks_completed,
            "tasks_remaining": self.tasks_remaining,
            "tasks_failed": self.tasks_failed,
            "iterations_used": self.iterations_used,
            "max_iterations": self.max_iterations,
            "termination_reason": self.termination_reason.value,
            "goal_fully_achieved": self.goal_fully_achieved,
            "per_task_results": [result.to_dict() for result in self.per_task_results],
        }


def build_report(  # noqa: PLR0913
    *,
    goal: str,
    records: Sequence[ExecutionRecord],
    termination_reason: TerminationReason,
    iterations_used: int,
    max_iterations: int,
    tasks_remaining: int,
) -> Report:
    """Assemble a report from the ledger and termination state.

    Pure: the same inputs always produce an equal report.
    """

    results = tuple(
        TaskResult(
            task_id=record.task.task_id,
            description=record.task.description,
            priority=record.task.priority,
            success=record.success,
            summary=record.result_summary,
            iteration_index=record.iteration_index,
        )
        for record in records
    )
    return Report(
        goal=goal,
        tasks_completed=len(results),
        tasks_remaining=tasks_remaining,
        tasks_failed=sum(1 for result in results if not result.success),
        iterations_used=iterations_used,
        max_iterations=max_iterations,
        termination_reason=termination_reason,
        goal_fully_achieved=termination_reason == TerminationReason.QUEUE_DRAINED,
        per_task_results=results,
    )


def render_report_lines(report: Report, *, preview_chars: int = DEFAULT_PREVIEW_CHARS) -> list[str]:
    """Render a human-readable summary, one output line per list item."""

    lines = [
        _TITLE,
        "=" * len(_TITLE),
        "",
        f"Goal: {report.goal}",
        "",
        f"Completed Tasks: {report.tasks_completed} (failed: {report.tasks_failed})",
        f"Remaining Tasks: {report.tasks_remaining}",
        f"Iterations: {report.iterations_used}/{report.max_iterations}",
        f"Termination: {report.termination_reason.value}",
        f"Goal fully achieved: {'yes' if report.goal_fully_achieved else 'no'}",
    ]
    for position, result in enumerate(report.per_task_results, start=1):
        marker = "" if result.success else " [FAILED]"
        lines.append("")
        lines.append(f"{position}. [p{result.priority}] {result.description}{marker}")
        lines.append(f"   {_preview(result.summary, preview_chars)}")
    return lines


def _preview(summary: str, max_chars: int) -> str:
    redacted = redact_secrets(" ".join(summary.split()))
    if len(redacted) <= max_chars:
        return redacted
    return f"{redacted[:max_chars]}..."
