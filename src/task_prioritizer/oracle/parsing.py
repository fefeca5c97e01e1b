"""Best-effort recovery of task proposals from free-form model output."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)
_DESCRIPTION_KEYS = ("description", "task", "title", "name")
_EFFORT_KEYS = ("estimated_effort", "estimatedEffort", "effort")


@dataclass(frozen=True, slots=True)
class TaskProposal:
    """Raw task fields as returned by the model; normalized later by ``Task.create``."""

    description: str
    priority: object
    estimated_effort: object


def parse_task_proposals(text: str) -> list[TaskProposal]:
    """Extract task proposals from model output.

    Accepts a bare JSON array, a fenced ```json block, an array embedded in
    prose, or an object with a ``tasks`` array. Anything unparseable yields an
    empty list: the model proposing nothing usable is not a transport failure.
    """

    items = _parse_json_items(text.strip())
    proposals: list[TaskProposal] = []
    for item in items:
        proposal = _to_proposal(item)
        if proposal is not None:
            proposals.append(proposal)
    return proposals


def _parse_json_items(text: str) -> list[object]:
    if not text:
        return []

    candidates = [text]
    candidates.extend(match.group(1) for match in _FENCED_JSON.finditer(text))
    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        items = _try_load_items(candidate)
        if items is not None:
            return items
    return []


def _try_load_items(raw: str) -> list[object] | None:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("tasks"), list):
        return parsed["tasks"]
    return None


def _to_proposal(item: object) -> TaskProposal | None:
    if isinstance(item, str):
        description = item.strip()
        return TaskProposal(description, None, None) if description else None
    if not isinstance(item, dict):
        return None

    description = ""
    for key in _DESCRIPTION_KEYS:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            description = value.strip()
            break
    if not description:
        return None
    effort = next((item[key] for key in _EFFORT_KEYS if key in item), None)
    return TaskProposal(
        description=description,
        priority=item.get("priority"),
        estimated_effort=effort,
    )
