"""Controllers for task-prioritizer CLI commands."""

from __future__ import annotations

import json
import logging
import signal
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, replace

from task_prioritizer.config import Settings
from task_prioritizer.oracle import open_oracle
from task_prioritizer.scheduler import (
    GoalPlanningFailed,
    ReasoningOracle,
    TaskScheduler,
    render_report_lines,
)
from task_prioritizer.scheduler.events import (
    CallbackEventSink,
    LoggingEventSink,
    SchedulerEventSink,
)

logger = logging.getLogger(__name__)

OracleFactory = Callable[..., AbstractContextManager[ReasoningOracle]]


@dataclass(slots=True)
class RunGoalCommand:
    """CLI input for one scheduler run."""

    goal: str
    max_iterations: int | None = None
    cutoff_window: int | None = None
    backend: str | None = None
    command_template: str | None = None
    model: str | None = None
    timeout_seconds: int | None = None
    output_format: str = "text"
    show_progress: bool = True


@dataclass(slots=True)
class RunGoalResult:
    """Run report to render in CLI."""

    lines: list[str]
    success: bool
    error: str | None = None


class PrioritizerCliController:
    """Builds settings and oracle for a CLI run and renders the report."""

    def __init__(self, oracle_factory: OracleFactory | None = None) -> None:
        self._oracle_factory = oracle_factory or open_oracle
        self._stop_requested = False
        self._stop_signal_name: str | None = None

    def run_goal(
        self,
        command: RunGoalCommand,
        *,
        emit: Callable[[str], None] = lambda _: None,
    ) -> RunGoalResult:
        settings = _apply_overrides(Settings.from_env(), command)
        settings.validate()
        self._stop_requested = False
        self._stop_signal_name = None

        with (
            self._signal_handlers(),
            self._oracle_factory(
                settings.oracle,
                shutdown_requested=self._is_stop_requested,
            ) as oracle,
        ):
            scheduler = TaskScheduler(
                oracle,
                event_sink=_event_sink(settings=settings, command=command, emit=emit),
            )
            try:
                report = scheduler.run(
                    command.goal,
                    settings.scheduler,
                    cancel_requested=self._is_stop_requested,
                )
            except GoalPlanningFailed as error:
                return RunGoalResult(lines=[str(error)], success=False, error=str(error))

        if self._stop_signal_name is not None:
            logger.info("Run cancelled by %s", self._stop_signal_name)
        if command.output_format == "json":
            lines = [json.dumps(report.to_dict(), ensure_ascii=False, indent=2)]
        else:
            lines = render_report_lines(report)
        return RunGoalResult(lines=lines, success=True)

    def _is_stop_requested(self) -> bool:
        return self._stop_requested

    def _request_stop(self, *, signal_name: str) -> None:
        self._stop_requested = True
        self._stop_signal_name = signal_name

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        if not hasattr(signal, "SIGINT"):
            yield
            return

        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)

        def _handler(signum: int, _: object | None) -> None:
            try:
                name = signal.Signals(signum).name
            except ValueError:
                name = str(signum)
            self._request_stop(signal_name=name)

        try:
            signal.signal(signal.SIGINT, _handler)
            signal.signal(signal.SIGTERM, _handler)
        except ValueError:
            # Signal handlers can only be installed in main thread.
            yield
            return
        try:
            yield
        finally:
            signal.signal(signal.SIGINT, original_sigint)
            signal.signal(signal.SIGTERM, original_sigterm)


def _apply_overrides(settings: Settings, command: RunGoalCommand) -> Settings:
    scheduler = settings.scheduler
    if command.max_iterations is not None:
        scheduler = replace(scheduler, max_iterations=command.max_iterations)
    if command.cutoff_window is not None:
        scheduler = replace(scheduler, generation_cutoff_window=command.cutoff_window)

    oracle = settings.oracle
    if command.backend is not None:
        oracle = replace(oracle, backend=command.backend)
    if command.command_template is not None:
        oracle = replace(oracle, command_template=command.command_template)
    if command.model is not None:
        oracle = replace(oracle, model=command.model)
    if command.timeout_seconds is not None:
        oracle = replace(oracle, timeout_seconds=command.timeout_seconds)
    return replace(settings, scheduler=scheduler, oracle=oracle)


def _event_sink(
    *,
    settings: Settings,
    command: RunGoalCommand,
    emit: Callable[[str], None],
) -> SchedulerEventSink | None:
    sinks: list[SchedulerEventSink] = []
    if command.show_progress:
        sinks.append(CallbackEventSink(emit))
    if settings.log_events:
        sinks.append(LoggingEventSink())
    if not sinks:
        return None
    if len(sinks) == 1:
        return sinks[0]
    return _FanOutEventSink(sinks)


class _FanOutEventSink:
    def __init__(self, sinks: list[SchedulerEventSink]) -> None:
        self._sinks = sinks

    def emit(self, event_type: str, details: dict[str, object]) -> None:
        for sink in self._sinks:
            sink.emit(event_type, details)
