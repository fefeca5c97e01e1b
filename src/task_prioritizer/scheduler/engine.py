"""Control loop: plan, execute in priority order, replan, report."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from task_prioritizer.config import SchedulerConfig
from task_prioritizer.sanitization import sanitize_preview
from task_prioritizer.scheduler.errors import (
    GoalPlanningFailed,
    OracleUnavailable,
    TaskExecutionFailure,
)
from task_prioritizer.scheduler.events import (
    PLANNING_STARTED,
    REPLANNING_FAILED,
    RUN_TERMINATED,
    TASK_EXECUTED,
    TASK_GENERATED,
    NullEventSink,
    SchedulerEventSink,
)
from task_prioritizer.scheduler.ledger import ExecutionLedger
from task_prioritizer.scheduler.models import SchedulerPhase, Task, TerminationReason
from task_prioritizer.scheduler.oracle import ReasoningOracle
from task_prioritizer.scheduler.report import Report, build_report
from task_prioritizer.scheduler.task_queue import TaskQueue

logger = logging.getLogger(__name__)

_ERROR_PREVIEW_CHARS = 500


@dataclass(slots=True)
class SchedulerState:
    """Mutable state owned by exactly one ``run`` call."""

    goal: str
    config: SchedulerConfig
    queue: TaskQueue = field(default_factory=TaskQueue)
    ledger: ExecutionLedger = field(default_factory=ExecutionLedger)
    iteration: int = 0
    phase: SchedulerPhase = SchedulerPhase.PLANNING
    termination_reason: TerminationReason | None = None
    cancel_requested: Callable[[], bool] | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_requested is not None and self.cancel_requested()

    @property
    def replanning_allowed(self) -> bool:
        return self.iteration <= self.config.generation_cutoff

    @property
    def should_continue(self) -> bool:
        return len(self.queue) > 0 and self.iteration < self.config.max_iterations


class TaskScheduler:
    """Runs one goal to completion against a reasoning oracle.

    The scheduler is strictly sequential: every execution and replanning call
    sees the full ledger produced before it. A new :class:`SchedulerState` is
    created for each :meth:`run`, so one scheduler instance may serve several
    goals, but never two runs at once over shared state.
    """

    def __init__(
        self,
        oracle: ReasoningOracle,
        *,
        event_sink: SchedulerEventSink | None = None,
    ) -> None:
        self.oracle = oracle
        self.event_sink = event_sink or NullEventSink()

    def run(
        self,
        goal: str,
        config: SchedulerConfig | None = None,
        *,
        cancel_requested: Callable[[], bool] | None = None,
    ) -> Report:
        """Run the plan/execute/replan loop and return the final report.

        Raises:
            GoalPlanningFailed: initial generation failed; nothing was executed.
                A failure seen after cancellation was requested ends the run as
                ``cancelled`` instead.
            ValueError: empty goal or invalid configuration.
        """

        if not goal.strip():
            raise ValueError("Goal must be a non-empty string.")
        effective_config = config or SchedulerConfig()
        effective_config.validate()

        state = SchedulerState(
            goal=goal,
            config=effective_config,
            cancel_requested=cancel_requested,
        )
        self._plan(state)

        while state.should_continue:
            if state.cancelled:
                state.termination_reason = TerminationReason.CANCELLED
                break

            task = state.queue.pop_highest()
            if task is None:  # pragma: no cover - guarded by should_continue
                break
            self._execute(state, task)
            state.iteration += 1

            if state.replanning_allowed:
                self._replan(state)
            else:
                state.phase = SchedulerPhase.DRAINING

        return self._finish(state)

    def _plan(self, state: SchedulerState) -> None:
        state.phase = SchedulerPhase.PLANNING
        self._emit(PLANNING_STARTED, {"goal": state.goal})
        try:
            tasks = self.oracle.generate_initial_tasks(state.goal)
        except OracleUnavailable as error:
            if state.cancelled:
                logger.info("Initial task generation interrupted by cancellation: %s", error)
                state.termination_reason = TerminationReason.CANCELLED
                return
            logger.error("Initial task generation failed: %s", error)
            self._emit(
                RUN_TERMINATED,
                {
                    "reason": TerminationReason.GOAL_PLANNING_FAILED.value,
                    "iterations_used": 0,
                },
            )
            state.termination_reason = TerminationReason.GOAL_PLANNING_FAILED
            state.phase = SchedulerPhase.DONE
            raise GoalPlanningFailed(state.goal, str(error)) from error

        added = state.queue.insert(tasks)
        self._emit(TASK_GENERATED, {"batch_size": added, "iteration": state.iteration})
        state.phase = SchedulerPhase.EXECUTING

    def _execute(self, state: SchedulerState, task: Task) -> None:
        context = state.ledger.snapshot()
        failure_class: str | None = None
        try:
            summary = self.oracle.execute(task, context)
            success = True
        except TaskExecutionFailure as error:
            failure_class = error.failure_class
            summary = _failure_summary(error)
            success = False
            logger.warning("Task %s failed: %s", task.task_id, summary)
        except Exception as error:  # noqa: BLE001
            summary = _failure_summary(error)
            success = False
            logger.exception("Task %s raised unexpectedly", task.task_id)

        state.ledger.append(
            task=task,
            result_summary=summary,
            success=success,
            iteration_index=state.iteration,
        )
        details: dict[str, object] = {
            "task_id": task.task_id,
            "description": task.description,
            "priority": task.priority,
            "success": success,
            "iteration": state.iteration + 1,
        }
        if failure_class is not None:
            details["failure_class"] = failure_class
        self._emit(TASK_EXECUTED, details)

    def _replan(self, state: SchedulerState) -> None:
        state.phase = SchedulerPhase.REPLANNING
        new_tasks: list[Task] = []
        try:
            new_tasks = self.oracle.generate_additional_tasks(
                state.goal,
                state.ledger.snapshot(),
            )
        except OracleUnavailable as error:
            logger.warning("Replanning at iteration %d skipped: %s", state.iteration, error)
            self._replanning_failed(state, error, failure_class=error.failure_class)
        except Exception as error:  # noqa: BLE001
            logger.exception("Replanning at iteration %d raised unexpectedly", state.iteration)
            self._replanning_failed(state, error, failure_class=None)
        finally:
            state.phase = SchedulerPhase.EXECUTING

        if new_tasks:
            added = state.queue.insert(new_tasks)
            self._emit(TASK_GENERATED, {"batch_size": added, "iteration": state.iteration})

    def _replanning_failed(
        self,
        state: SchedulerState,
        error: Exception,
        *,
        failure_class: str | None,
    ) -> None:
        self._emit(
            REPLANNING_FAILED,
            {
                "iteration": state.iteration,
                "error": sanitize_preview(str(error), max_chars=_ERROR_PREVIEW_CHARS)
                or type(error).__name__,
                "failure_class": failure_class,
            },
        )

    def _finish(self, state: SchedulerState) -> Report:
        if state.termination_reason is None:
            state.termination_reason = (
                TerminationReason.QUEUE_DRAINED
                if len(state.queue) == 0
                else TerminationReason.ITERATION_CAP_REACHED
            )
        state.phase = SchedulerPhase.DONE
        self._emit(
            RUN_TERMINATED,
            {
                "reason": state.termination_reason.value,
                "iterations_used": state.iteration,
                "tasks_remaining": len(state.queue),
            },
        )
        logger.info(
            "Run finished: reason=%s iterations=%d completed=%d remaining=%d",
            state.termination_reason.value,
            state.iteration,
            len(state.ledger),
            len(state.queue),
        )
        return build_report(
            goal=state.goal,
            records=state.ledger.snapshot(),
            termination_reason=state.termination_reason,
            iterations_used=state.iteration,
            max_iterations=state.config.max_iterations,
            tasks_remaining=len(state.queue),
        )

    def _emit(self, event_type: str, details: dict[str, object]) -> None:
        try:
            self.event_sink.emit(event_type, details)
        except Exception:  # noqa: BLE001
            logger.exception("Event sink failed for %s", event_type)


def _failure_summary(error: BaseException) -> str:
    message = sanitize_preview(str(error), max_chars=_ERROR_PREVIEW_CHARS) or type(error).__name__
    return f"Task failed: {message}"
