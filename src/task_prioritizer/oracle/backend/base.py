"""Backend interface for LLM completions used by the oracle."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

TIMEOUT_EXIT_CODE = 124


class BackendRunError(RuntimeError):
    """Backend execution error with retryability hint."""

    def __init__(self, message: str, *, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


@dataclass(slots=True)
class BackendRunRequest:
    """Inputs required for one completion call."""

    purpose: str
    system: str
    prompt: str
    model: str
    max_tokens: int
    timeout_seconds: int
    shutdown_requested: Callable[[], bool] | None = None
    graceful_shutdown_seconds: int | None = None


@dataclass(slots=True)
class BackendRunResult:
    """Completion outcome from a backend.

    ``exit_code`` is the process exit code for CLI agents and the HTTP status
    for API backends (0 on success in both cases).
    """

    exit_code: int
    timed_out: bool
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class LlmBackend(Protocol):
    """Protocol implemented by completion backends."""

    name: str

    def run(self, request: BackendRunRequest) -> BackendRunResult:
        """Run one completion and return its raw output."""
