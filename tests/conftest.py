"""Shared test fixtures."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Sequence

import pytest

from task_prioritizer.scheduler import (
    ExecutionRecord,
    OracleUnavailable,
    Task,
    TaskExecutionFailure,
)

ECHO_AGENT_COMMAND_TEMPLATE = (
    f"{sys.executable} -m task_prioritizer.oracle.backend.echo_agent "
    "--prompt-file {prompt_file} {prompt}"
)

TaskSeed = tuple[str, int]


def make_tasks(seeds: Iterable[TaskSeed], *, origin_iteration: int = 0) -> list[Task]:
    return [
        Task.create(description, priority=priority, origin_iteration=origin_iteration)
        for description, priority in seeds
    ]


class ScriptedOracle:
    """In-memory oracle double driven by a fixed script.

    ``additional`` holds one entry per replanning call; each entry is a list of
    (description, priority) pairs or an exception to raise. Calls past the
    script return nothing.
    """

    def __init__(
        self,
        initial: Sequence[TaskSeed] | Exception = (),
        *,
        additional: Sequence[Sequence[TaskSeed] | Exception] = (),
        fail_tasks: Iterable[str] = (),
        crash_tasks: Iterable[str] = (),
    ) -> None:
        self.initial = initial
        self.additional = list(additional)
        self.fail_tasks = set(fail_tasks)
        self.crash_tasks = set(crash_tasks)
        self.calls: list[tuple[str, object]] = []
        self.executed: list[str] = []
        self.ledger_sizes_seen: list[int] = []

    def generate_initial_tasks(self, goal: str) -> list[Task]:
        self.calls.append(("initial", goal))
        if isinstance(self.initial, Exception):
            raise self.initial
        return make_tasks(self.initial)

    def generate_additional_tasks(
        self,
        goal: str,
        ledger: Sequence[ExecutionRecord],
    ) -> list[Task]:
        self.calls.append(("additional", len(ledger)))
        if not self.additional:
            return []
        entry = self.additional.pop(0)
        if isinstance(entry, Exception):
            raise entry
        return make_tasks(entry, origin_iteration=len(ledger))

    def execute(self, task: Task, ledger: Sequence[ExecutionRecord]) -> str:
        self.calls.append(("execute", task.description))
        self.executed.append(task.description)
        self.ledger_sizes_seen.append(len(ledger))
        if task.description in self.fail_tasks:
            raise TaskExecutionFailure(
                f"could not do {task.description}",
                failure_class="timeout",
            )
        if task.description in self.crash_tasks:
            raise RuntimeError(f"boom in {task.description}")
        return f"done: {task.description}"

    @property
    def additional_calls(self) -> int:
        return sum(1 for kind, _ in self.calls if kind == "additional")


class RecordingEventSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, object]]] = []

    def emit(self, event_type: str, details: dict[str, object]) -> None:
        self.events.append((event_type, dict(details)))

    def types(self) -> list[str]:
        return [event_type for event_type, _ in self.events]

    def details_of(self, event_type: str) -> list[dict[str, object]]:
        return [details for kind, details in self.events if kind == event_type]


@pytest.fixture()
def event_sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture()
def planning_outage() -> OracleUnavailable:
    return OracleUnavailable("service unavailable", failure_class="backend_transient")


@pytest.fixture()
def echo_agent_env(monkeypatch):
    """Point the CLI backend at the local echo agent."""

    monkeypatch.setenv("TASK_PRIORITIZER_BACKEND", "cli")
    monkeypatch.setenv("TASK_PRIORITIZER_COMMAND_TEMPLATE", ECHO_AGENT_COMMAND_TEMPLATE)
    monkeypatch.setenv("TASK_PRIORITIZER_TIMEOUT_SECONDS", "60")
    monkeypatch.delenv("TASK_PRIORITIZER_MAX_ITERATIONS", raising=False)
    monkeypatch.delenv("TASK_PRIORITIZER_CUTOFF_WINDOW", raising=False)
    monkeypatch.delenv("TASK_PRIORITIZER_LOG_EVENTS", raising=False)
    return ECHO_AGENT_COMMAND_TEMPLATE
