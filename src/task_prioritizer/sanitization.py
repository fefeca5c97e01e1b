"""Redaction of credentials and addresses in oracle output.

Oracle output ends up in logs, progress events and the final report, and a
CLI agent that fails may echo its environment or request headers back.
"""

from __future__ import annotations

import re

_MAX_PREVIEW_CHARS = 2_000

_SECRET_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    # Authorization headers
    (re.compile(r"(?i)\b(bearer)\s+[\w.\-]{8,}"), r"\1 [redacted-token]"),
    (re.compile(r"(?i)\b(x-api-key)(\s*[:=]\s*)\S+"), r"\1\2[redacted]"),
    # Anthropic / OpenAI style keys
    (re.compile(r"(?i)\bsk-(?:ant-)?[\w\-]{8,}"), "[redacted-token]"),
    # KEY=value assignments from env dumps
    (
        re.compile(
            r"(?i)\b(?:task_prioritizer|anthropic|openai|claude)\w*?_(?:api_)?(?:key|token)"
            r"\s*[:=]\s*(['\"]?)[^'\"\s]+\1",
        ),
        "[redacted-secret]",
    ),
    (re.compile(r"(?i)([?&](?:token|key|api_key|signature|auth)=)[^&\s]+"), r"\1[redacted]"),
    (re.compile(r"\b[\w.%+-]+@[\w-]+(?:\.[\w-]+)*\.[A-Za-z]{2,}\b"), "[redacted-email]"),
)


def redact_secrets(text: str) -> str:
    """Replace tokens, API keys and email addresses with placeholders."""

    for pattern, replacement in _SECRET_RULES:
        text = pattern.sub(replacement, text)
    return text


def sanitize_preview(text: str, *, max_chars: int = _MAX_PREVIEW_CHARS) -> str:
    """Strip, redact and clamp ``text`` for display."""

    stripped = text.strip()
    if not stripped:
        return ""
    return redact_secrets(stripped)[:max_chars]
