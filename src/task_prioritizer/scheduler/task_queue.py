"""Priority-ordered queue of pending tasks."""

from __future__ import annotations

from collections.abc import Iterable

from task_prioritizer.scheduler.models import Task


class TaskQueue:
    """Pending tasks sorted by descending priority, FIFO among equal priorities.

    Every :meth:`insert` re-sorts the merged sequence so a freshly generated
    high-priority task can overtake older low-priority ones. ``sorted`` is
    stable, so appending the new batch after the remaining tasks keeps
    insertion order for ties.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._pending: list[Task] = []
        self._total_inserted = 0
        self.insert(tasks)

    def insert(self, tasks: Iterable[Task]) -> int:
        """Merge a batch into the queue and return how many tasks were added."""

        batch = list(tasks)
        if not batch:
            return 0
        self._pending = sorted([*self._pending, *batch], key=_descending_priority)
        self._total_inserted += len(batch)
        return len(batch)

    def pop_highest(self) -> Task | None:
        """Remove and return the front task, or ``None`` when drained."""

        if not self._pending:
            return None
        return self._pending.pop(0)

    def peek(self) -> Task | None:
        return self._pending[0] if self._pending else None

    def snapshot(self) -> tuple[Task, ...]:
        return tuple(self._pending)

    @property
    def total_inserted(self) -> int:
        return self._total_inserted

    def __len__(self) -> int:
        return len(self._pending)

    def __bool__(self) -> bool:
        return bool(self._pending)


def _descending_priority(task: Task) -> int:
    return -task.priority
