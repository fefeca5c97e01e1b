"""Structured scheduler events and the sinks that receive them.

``iteration`` in event details counts completed execute cycles: 0 for the
initial plan, 1 after the first task ran, and so on.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Protocol

from task_prioritizer.sanitization import sanitize_preview

logger = logging.getLogger(__name__)

PLANNING_STARTED = "planning_started"
TASK_GENERATED = "task_generated"
TASK_EXECUTED = "task_executed"
REPLANNING_FAILED = "replanning_failed"
RUN_TERMINATED = "run_terminated"


class SchedulerEventSink(Protocol):
    """Receives scheduler lifecycle events."""

    def emit(self, event_type: str, details: dict[str, object]) -> None:
        """Handle one event. Must not raise."""


class NullEventSink:
    """Default sink: drops every event."""

    def emit(self, event_type: str, details: dict[str, object]) -> None:
        return None


class LoggingEventSink:
    """Writes events as JSON details through stdlib logging."""

    def __init__(
        self,
        event_logger: logging.Logger | None = None,
        level: int = logging.INFO,
    ) -> None:
        self._logger = event_logger or logger
        self._level = level

    def emit(self, event_type: str, details: dict[str, object]) -> None:
        level = logging.WARNING if event_type == REPLANNING_FAILED else self._level
        self._logger.log(
            level,
            "%s %s",
            event_type,
            json.dumps(details, ensure_ascii=False, sort_keys=True, default=str),
        )


class CallbackEventSink:
    """Formats events as short progress lines for CLI output."""

    def __init__(self, emit: Callable[[str], None]) -> None:
        self._emit = emit

    def emit(self, event_type: str, details: dict[str, object]) -> None:
        line = format_event_line(event_type, details)
        if line:
            self._emit(line)


def format_event_line(event_type: str, details: dict[str, object]) -> str:
    if event_type == PLANNING_STARTED:
        goal = sanitize_preview(str(details.get("goal", "")), max_chars=120)
        return f"Planning tasks for goal: {goal}"
    if event_type == TASK_GENERATED:
        return f"[{details.get('iteration')}] Queued {details.get('batch_size')} new task(s)"
    if event_type == TASK_EXECUTED:
        status = "ok" if details.get("success") else "failed"
        description = sanitize_preview(str(details.get("description", "")), max_chars=80)
        return f"[{details.get('iteration')}] {status}: {description}"
    if event_type == REPLANNING_FAILED:
        return f"[{details.get('iteration')}] Replanning skipped: {details.get('error')}"
    if event_type == RUN_TERMINATED:
        return (
            f"Run finished: reason={details.get('reason')} "
            f"iterations={details.get('iterations_used')}"
        )
    return ""
