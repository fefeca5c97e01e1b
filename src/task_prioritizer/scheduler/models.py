"""Domain models for the task-prioritization scheduler."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from uuid import uuid4

MIN_PRIORITY = 1
MAX_PRIORITY = 10
DEFAULT_PRIORITY = 5

MIN_EFFORT = 1
MAX_EFFORT = 5
DEFAULT_EFFORT = 3


class SchedulerPhase(str, Enum):
    """Lifecycle states of one scheduler run."""

    PLANNING = "planning"
    EXECUTING = "executing"
    REPLANNING = "replanning"
    DRAINING = "draining"
    DONE = "done"


class TerminationReason(str, Enum):
    """Why the scheduler loop stopped."""

    QUEUE_DRAINED = "queue_drained"
    ITERATION_CAP_REACHED = "iteration_cap_reached"
    GOAL_PLANNING_FAILED = "goal_planning_failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class Task:
    """One unit of work proposed by the oracle.

    Use :meth:`Task.create` rather than the constructor: it assigns the id and
    clamps ``priority`` / ``estimated_effort`` into their valid ranges. The
    constructor itself rejects out-of-range values with ``ValueError``.
    """

    task_id: str
    description: str
    priority: int = DEFAULT_PRIORITY
    estimated_effort: int = DEFAULT_EFFORT
    origin_iteration: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.description, str) or not self.description.strip():
            raise ValueError("Task description must be a non-empty string.")
        _require_int_in_range("priority", self.priority, MIN_PRIORITY, MAX_PRIORITY)
        _require_int_in_range("estimated_effort", self.estimated_effort, MIN_EFFORT, MAX_EFFORT)
        if not _is_int(self.origin_iteration) or self.origin_iteration < 0:
            raise ValueError(f"origin_iteration must be >= 0, got {self.origin_iteration!r}.")

    @classmethod
    def create(
        cls,
        description: str,
        *,
        priority: object = DEFAULT_PRIORITY,
        estimated_effort: object = DEFAULT_EFFORT,
        origin_iteration: int = 0,
    ) -> Task:
        normalized = description.strip() if isinstance(description, str) else ""
        if not normalized:
            raise ValueError("Task description must be a non-empty string.")
        return cls(
            task_id=str(uuid4()),
            description=normalized,
            priority=clamp_priority(priority),
            estimated_effort=clamp_effort(estimated_effort),
            origin_iteration=origin_iteration,
        )


@dataclass(frozen=True, slots=True)
class ExecutionRecord:
    """Ledger entry for one executed task."""

    task: Task
    result_summary: str
    success: bool
    iteration_index: int


def clamp_priority(value: object) -> int:
    return _clamp(value, low=MIN_PRIORITY, high=MAX_PRIORITY, default=DEFAULT_PRIORITY)


def clamp_effort(value: object) -> int:
    return _clamp(value, low=MIN_EFFORT, high=MAX_EFFORT, default=DEFAULT_EFFORT)


def _clamp(value: object, *, low: int, high: int, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return default
        number = round(value)
    elif isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return default
        if not math.isfinite(parsed):
            return default
        number = round(parsed)
    else:
        return default
    return max(low, min(high, number))


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_int_in_range(name: str, value: object, low: int, high: int) -> None:
    if not _is_int(value) or not low <= value <= high:
        raise ValueError(f"{name} must be an integer in [{low}, {high}], got {value!r}.")
