"""LLM-backed reasoning oracle."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from task_prioritizer.config import OracleSettings
from task_prioritizer.oracle.backend import CliAgentBackend, LlmBackend, MessagesApiBackend
from task_prioritizer.oracle.llm_oracle import LlmReasoningOracle

__all__ = ["LlmReasoningOracle", "build_backend", "open_oracle"]


def build_backend(settings: OracleSettings) -> LlmBackend:
    """Create the completion backend selected by settings."""

    settings.validate()
    if settings.backend == "http":
        return MessagesApiBackend(
            base_url=settings.api_base_url,
            api_key=settings.api_key or "",
            max_retries=settings.max_retries,
        )
    return CliAgentBackend(command_template=settings.command_template)


@contextmanager
def open_oracle(
    settings: OracleSettings,
    *,
    shutdown_requested: Callable[[], bool] | None = None,
) -> Iterator[LlmReasoningOracle]:
    """Yield an oracle for one run and release backend resources afterwards."""

    backend = build_backend(settings)
    try:
        yield LlmReasoningOracle(backend, settings, shutdown_requested=shutdown_requested)
    finally:
        if isinstance(backend, MessagesApiBackend):
            backend.close()
