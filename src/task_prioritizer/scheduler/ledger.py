"""Append-only execution history."""

from __future__ import annotations

from task_prioritizer.scheduler.models import ExecutionRecord, Task


class ExecutionLedger:
    """Records executed tasks in execution order.

    The ledger is both the context handed back to the oracle and the input
    of the final report. Records are never mutated or removed.
    """

    def __init__(self) -> None:
        self._records: list[ExecutionRecord] = []

    def append(
        self,
        *,
        task: Task,
        result_summary: str,
        success: bool,
        iteration_index: int,
    ) -> ExecutionRecord:
        record = ExecutionRecord(
            task=task,
            result_summary=result_summary,
            success=success,
            iteration_index=iteration_index,
        )
        self._records.append(record)
        return record

    def snapshot(self) -> tuple[ExecutionRecord, ...]:
        """Immutable view in execution order."""

        return tuple(self._records)

    def latest(self) -> ExecutionRecord | None:
        return self._records[-1] if self._records else None

    @property
    def succeeded_count(self) -> int:
        return sum(1 for record in self._records if record.success)

    @property
    def failed_count(self) -> int:
        return sum(1 for record in self._records if not record.success)

    def __len__(self) -> int:
        return len(self._records)
