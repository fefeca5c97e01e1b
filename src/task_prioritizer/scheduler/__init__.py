"""Task-prioritization scheduler core."""

from task_prioritizer.scheduler.engine import SchedulerState, TaskScheduler
from task_prioritizer.scheduler.errors import (
    GoalPlanningFailed,
    OracleUnavailable,
    TaskExecutionFailure,
)
from task_prioritizer.scheduler.ledger import ExecutionLedger
from task_prioritizer.scheduler.models import (
    ExecutionRecord,
    SchedulerPhase,
    Task,
    TerminationReason,
)
from task_prioritizer.scheduler.oracle import ReasoningOracle
from task_prioritizer.scheduler.report import Report, TaskResult, build_report, render_report_lines
from task_prioritizer.scheduler.task_queue import TaskQueue

__all__ = [
    "ExecutionLedger",
    "ExecutionRecord",
    "GoalPlanningFailed",
    "OracleUnavailable",
    "ReasoningOracle",
    "Report",
    "SchedulerPhase",
    "SchedulerState",
    "Task",
    "TaskExecutionFailure",
    "TaskQueue",
    "TaskResult",
    "TaskScheduler",
    "TerminationReason",
    "build_report",
    "render_report_lines",
]
