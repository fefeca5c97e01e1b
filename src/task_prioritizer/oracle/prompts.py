"""Prompt templates for task generation and execution."""

from __future__ import annotations

from collections.abc import Sequence

from task_prioritizer.scheduler.models import ExecutionRecord, Task

_CONTEXT_RESULT_CHARS = 600

GENERATION_SYSTEM_PROMPT = "Generate prioritized task lists. Respond with JSON only."
ADDITIONAL_SYSTEM_PROMPT = (
    "Generate additional tasks only if they are needed. Respond with JSON only."
)
EXECUTION_SYSTEM_PROMPT = "You are executing subtasks toward the goal: {goal}"

_TASK_FORMAT = """\
For each task provide: description, priority (1-10, 10 = most urgent), \
estimated_effort (1-5).
Format as a JSON array, for example:
[{{"description": "...", "priority": 8, "estimated_effort": 2}}]"""

INITIAL_TASKS_PROMPT = (
    """\
Goal: {goal}

Generate 5-7 specific, actionable tasks to achieve this goal.
"""
    + _TASK_FORMAT
)

ADDITIONAL_TASKS_PROMPT = (
    """\
Goal: {goal}
Completed: {completed}
Last result: {last_result}

Based on progress, are additional tasks needed? If yes, generate 1-2 new tasks.
Return an empty array [] if none are needed.
"""
    + _TASK_FORMAT
)

EXECUTE_TASK_PROMPT = """\
Goal: {goal}
{context}
Task: {task}

Carry out this task and reply with a concise summary of the result."""


def initial_tasks_prompt(goal: str) -> str:
    return INITIAL_TASKS_PROMPT.format(goal=goal)


def additional_tasks_prompt(goal: str, ledger: Sequence[ExecutionRecord]) -> str:
    completed = ", ".join(record.task.description for record in ledger) or "nothing yet"
    last_result = _clip(ledger[-1].result_summary) if ledger else "none"
    return ADDITIONAL_TASKS_PROMPT.format(
        goal=goal,
        completed=completed,
        last_result=last_result,
    )


def execution_system_prompt(goal: str) -> str:
    return EXECUTION_SYSTEM_PROMPT.format(goal=goal)


def execute_task_prompt(goal: str, task: Task, ledger: Sequence[ExecutionRecord]) -> str:
    if ledger:
        lines = ["Results so far:"]
        for position, record in enumerate(ledger, start=1):
            status = "done" if record.success else "failed"
            lines.append(
                f"{position}. [{status}] {record.task.description}: {_clip(record.result_summary)}",
            )
        context = "\n".join(lines) + "\n"
    else:
        context = ""
    return EXECUTE_TASK_PROMPT.format(goal=goal, context=context, task=task.description)


def _clip(text: str) -> str:
    flattened = " ".join(text.split())
    if len(flattened) <= _CONTEXT_RESULT_CHARS:
        return flattened
    return flattened[:_CONTEXT_RESULT_CHARS] + "..."
