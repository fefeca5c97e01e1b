from __future__ import annotations

import allure
import pytest

from task_prioritizer.scheduler import ExecutionLedger, Task
from task_prioritizer.scheduler.models import clamp_effort, clamp_priority

pytestmark = [
    allure.epic("Scheduler Core"),
    allure.feature("Tasks and Ledger"),
]


def test_create_assigns_unique_ids_and_strips_description() -> None:
    first = Task.create("  write tests  ", priority=7, estimated_effort=2)
    second = Task.create("write tests", priority=7, estimated_effort=2)

    assert first.description == "write tests"
    assert first.task_id != second.task_id
    assert (first.priority, first.estimated_effort, first.origin_iteration) == (7, 2, 0)


@pytest.mark.parametrize("description", ["", "   ", "\n\t"])
def test_create_rejects_blank_description(description: str) -> None:
    with pytest.raises(ValueError, match="non-empty"):
        Task.create(description)


def test_create_rejects_negative_origin_iteration() -> None:
    with pytest.raises(ValueError, match="origin_iteration"):
        Task.create("task", origin_iteration=-1)


def test_task_is_immutable() -> None:
    task = Task.create("frozen")

    with pytest.raises(AttributeError):
        task.priority = 1  # type: ignore[misc]


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"description": ""}, "non-empty"),
        ({"description": "   "}, "non-empty"),
        ({"priority": 99}, "priority"),
        ({"priority": 0}, "priority"),
        ({"priority": True}, "priority"),
        ({"priority": 5.0}, "priority"),
        ({"estimated_effort": -4}, "estimated_effort"),
        ({"estimated_effort": 6}, "estimated_effort"),
        ({"origin_iteration": -1}, "origin_iteration"),
    ],
)
def test_constructor_rejects_out_of_range_fields(
    overrides: dict[str, object],
    message: str,
) -> None:
    fields: dict[str, object] = {
        "task_id": "t-1",
        "description": "valid",
        "priority": 5,
        "estimated_effort": 3,
        "origin_iteration": 0,
    }
    fields.update(overrides)

    with pytest.raises(ValueError, match=message):
        Task(**fields)  # type: ignore[arg-type]


def test_constructor_accepts_range_bounds() -> None:
    low = Task(task_id="lo", description="low", priority=1, estimated_effort=1)
    high = Task(task_id="hi", description="high", priority=10, estimated_effort=5)

    assert (low.priority, low.estimated_effort) == (1, 1)
    assert (high.priority, high.estimated_effort) == (10, 5)


def test_create_still_clamps_before_validation() -> None:
    task = Task.create("clamped", priority=99, estimated_effort=-4)

    assert (task.priority, task.estimated_effort) == (10, 1)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (0, 1),
        (-3, 1),
        (11, 10),
        (7, 7),
        (6.6, 7),
        ("8", 8),
        (" 42 ", 10),
        ("urgent", 5),
        (None, 5),
        (True, 5),
        (float("nan"), 5),
        ("inf", 5),
    ],
)
def test_clamp_priority(raw: object, expected: int) -> None:
    assert clamp_priority(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0, 1), (9, 5), (2, 2), ("3", 3), ([], 3)],
)
def test_clamp_effort(raw: object, expected: int) -> None:
    assert clamp_effort(raw) == expected


def test_ledger_preserves_execution_order_and_counts() -> None:
    ledger = ExecutionLedger()
    first = Task.create("first")
    second = Task.create("second")

    ledger.append(task=first, result_summary="ok", success=True, iteration_index=0)
    record = ledger.append(task=second, result_summary="nope", success=False, iteration_index=1)

    snapshot = ledger.snapshot()
    assert [entry.task.description for entry in snapshot] == ["first", "second"]
    assert ledger.latest() is record
    assert (ledger.succeeded_count, ledger.failed_count, len(ledger)) == (1, 1, 2)


def test_ledger_snapshot_is_not_affected_by_later_appends() -> None:
    ledger = ExecutionLedger()
    ledger.append(task=Task.create("a"), result_summary="ok", success=True, iteration_index=0)
    snapshot = ledger.snapshot()

    ledger.append(task=Task.create("b"), result_summary="ok", success=True, iteration_index=1)

    assert len(snapshot) == 1
    assert ExecutionLedger().latest() is None
