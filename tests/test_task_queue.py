from __future__ import annotations

import allure
from hypothesis import given, settings
from hypothesis import strategies as st

from task_prioritizer.scheduler import Task, TaskQueue

pytestmark = [
    allure.epic("Scheduler Core"),
    allure.feature("Task Queue"),
]


def _task(description: str, priority: int) -> Task:
    return Task.create(description, priority=priority)


def test_pop_returns_highest_priority_first() -> None:
    queue = TaskQueue([_task("low", 2), _task("high", 9), _task("mid", 5)])

    order = [queue.pop_highest().description for _ in range(3)]

    assert order == ["high", "mid", "low"]
    assert queue.pop_highest() is None


def test_equal_priorities_keep_insertion_order() -> None:
    queue = TaskQueue()
    queue.insert([_task("A", 5), _task("B", 5)])
    queue.insert([_task("C", 5)])

    assert [task.description for task in queue.snapshot()] == ["A", "B", "C"]


def test_new_high_priority_task_overtakes_pending_ones() -> None:
    queue = TaskQueue([_task("old-low", 3), _task("old-mid", 6)])

    queue.insert([_task("urgent", 10)])

    assert queue.peek().description == "urgent"
    assert len(queue) == 3


def test_insert_counts_tasks_and_ignores_empty_batches() -> None:
    queue = TaskQueue([_task("one", 1)])

    assert queue.insert([]) == 0
    assert queue.insert([_task("two", 2), _task("three", 3)]) == 2
    queue.pop_highest()

    assert queue.total_inserted == 3
    assert len(queue) == 2
    assert bool(TaskQueue()) is False


def test_duplicate_descriptions_are_kept() -> None:
    queue = TaskQueue([_task("same", 4), _task("same", 4)])

    assert len(queue) == 2
    first, second = queue.snapshot()
    assert first.task_id != second.task_id


_priorities = st.integers(min_value=1, max_value=10)


@settings(max_examples=100, deadline=None)
@given(batches=st.lists(st.lists(_priorities, max_size=6), max_size=6))
def test_queue_stays_sorted_and_stable_after_any_inserts(batches: list[list[int]]) -> None:
    queue = TaskQueue()
    arrival: dict[str, int] = {}
    for batch_index, batch in enumerate(batches):
        tasks = [
            _task(f"{batch_index}-{position}", priority)
            for position, priority in enumerate(batch)
        ]
        for task in tasks:
            arrival[task.task_id] = len(arrival)
        queue.insert(tasks)

    pending = queue.snapshot()
    for current, following in zip(pending, pending[1:], strict=False):
        assert current.priority >= following.priority
        if current.priority == following.priority:
            assert arrival[current.task_id] < arrival[following.task_id]
    assert queue.total_inserted == sum(len(batch) for batch in batches)


@settings(max_examples=50, deadline=None)
@given(
    initial=st.lists(_priorities, min_size=1, max_size=8),
    later=st.lists(_priorities, max_size=8),
)
def test_popped_task_is_never_below_remaining_ones(initial: list[int], later: list[int]) -> None:
    queue = TaskQueue(_task(f"i{index}", priority) for index, priority in enumerate(initial))
    popped = queue.pop_highest()
    queue.insert(_task(f"l{index}", priority) for index, priority in enumerate(later))

    assert popped is not None
    inserted = [task for task in queue.snapshot() if task.description.startswith("i")]
    assert all(popped.priority >= task.priority for task in inserted)
