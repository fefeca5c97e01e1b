"""Local deterministic agent for CLI backend integration tests and smoke runs."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

_DEFAULT_PLAN = (
    ("Clarify requirements for: {goal}", 9, 2),
    ("Draft an approach for: {goal}", 7, 3),
    ("Review the outcome of: {goal}", 4, 1),
)


def main(argv: list[str] | None = None) -> int:
    """Answer generation prompts with JSON task lists and echo execution prompts."""

    parser = argparse.ArgumentParser()
    parser.add_argument("--prompt-file", required=True)
    parser.add_argument(
        "--fail-purpose",
        default=None,
        help="Exit non-zero with a backend error for this purpose.",
    )
    args, _ = parser.parse_known_args(argv)

    purpose = os.getenv("TASK_PRIORITIZER_LLM_PURPOSE", "execute")
    if args.fail_purpose and args.fail_purpose == purpose:
        sys.stderr.write("Service temporarily unavailable\n")
        return 1

    prompt = Path(args.prompt_file).read_text("utf-8")
    goal = _find_line_value(prompt, "Goal:") or "the goal"

    if purpose == "initial_tasks":
        tasks = [
            {
                "description": description.format(goal=goal),
                "priority": priority,
                "estimated_effort": effort,
            }
            for description, priority, effort in _DEFAULT_PLAN
        ]
        sys.stdout.write(json.dumps(tasks))
    elif purpose == "additional_tasks":
        sys.stdout.write("[]")
    else:
        task = _find_line_value(prompt, "Task:") or prompt.strip().splitlines()[-1]
        sys.stdout.write(f"Completed: {task}")
    return 0


def _find_line_value(text: str, prefix: str) -> str | None:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith(prefix):
            return stripped[len(prefix) :].strip()
    return None


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
