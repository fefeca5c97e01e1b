"""Completion backend implementations."""

from task_prioritizer.oracle.backend.base import (
    BackendRunError,
    BackendRunRequest,
    BackendRunResult,
    LlmBackend,
)
from task_prioritizer.oracle.backend.cli_backend import CliAgentBackend
from task_prioritizer.oracle.backend.http_backend import MessagesApiBackend

__all__ = [
    "BackendRunError",
    "BackendRunRequest",
    "BackendRunResult",
    "CliAgentBackend",
    "LlmBackend",
    "MessagesApiBackend",
]
