"""Run a local CLI agent (``claude -p`` and similar) as a completion backend."""

from __future__ import annotations

import logging
import os
import shlex
import string
import subprocess
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

from task_prioritizer.oracle.backend.base import (
    TIMEOUT_EXIT_CODE,
    BackendRunError,
    BackendRunRequest,
    BackendRunResult,
)

logger = logging.getLogger(__name__)

TEMPLATE_PLACEHOLDERS = frozenset({"model", "prompt", "system", "prompt_file"})

_WAIT_SLICE_SECONDS = 0.1
_TERMINATE_WAIT_SECONDS = 2


class CliAgentBackend:
    """Render a command template per request and capture the agent's stdout.

    Supported placeholders: ``{prompt}`` (required), ``{model}``,
    ``{prompt_file}`` and ``{system}``. The prompt file holds the system text
    followed by the user prompt, for agents that prefer reading from disk.
    Each call gets a throwaway working directory under ``workdir_root``.
    """

    name = "cli"

    def __init__(self, *, command_template: str, workdir_root: Path | None = None) -> None:
        self.command_template = command_template
        self.workdir_root = workdir_root

    def run(self, request: BackendRunRequest) -> BackendRunResult:
        try:
            if self.workdir_root is not None:
                self.workdir_root.mkdir(parents=True, exist_ok=True)
            workspace = tempfile.TemporaryDirectory(
                prefix=f"{request.purpose}-",
                dir=self.workdir_root,
            )
        except OSError as error:
            raise BackendRunError(
                f"CLI backend could not prepare workdir: {error}",
                transient=True,
            ) from error

        with workspace as tmp:
            workdir = Path(tmp)
            prompt_file = workdir / "prompt.txt"
            try:
                prompt_file.write_text(_prompt_file_text(request), "utf-8")
            except (OSError, UnicodeError) as error:
                raise BackendRunError(
                    f"CLI backend could not write prompt file: {error}",
                    transient=False,
                ) from error
            argv = _build_run_args(
                command_template=self.command_template,
                model=request.model,
                prompt=request.prompt,
                system=request.system,
                prompt_file=prompt_file,
            )
            return self._spawn(argv, request=request, workdir=workdir)

    def _spawn(
        self,
        argv: list[str],
        *,
        request: BackendRunRequest,
        workdir: Path,
    ) -> BackendRunResult:
        env = {
            **os.environ,
            "TASK_PRIORITIZER_LLM_PURPOSE": request.purpose,
            "TASK_PRIORITIZER_LLM_MODEL": request.model,
        }
        stdout_path = workdir / "stdout.log"
        stderr_path = workdir / "stderr.log"

        logger.debug("Launching %s for %s", argv[0], request.purpose)
        try:
            with (
                stdout_path.open("w", encoding="utf-8") as stdout,
                stderr_path.open("w", encoding="utf-8") as stderr,
            ):
                process = subprocess.Popen(  # noqa: S603
                    argv,
                    env=env,
                    stdin=subprocess.DEVNULL,
                    stdout=stdout,
                    stderr=stderr,
                    text=True,
                )
                exit_code, timed_out = _supervise(
                    process,
                    timeout_seconds=request.timeout_seconds,
                    shutdown_requested=request.shutdown_requested,
                    grace_seconds=max(0, request.graceful_shutdown_seconds or 0),
                )
        except FileNotFoundError as error:
            raise BackendRunError(
                f"CLI backend command not found: {argv[0]}",
                transient=False,
            ) from error
        except OSError as error:
            raise BackendRunError(
                f"CLI backend failed to start: {error}",
                transient=True,
            ) from error

        if timed_out:
            logger.warning("CLI agent %s stopped before finishing %s", argv[0], request.purpose)
        return BackendRunResult(
            exit_code=exit_code,
            timed_out=timed_out,
            stdout=stdout_path.read_text("utf-8", errors="replace"),
            stderr=stderr_path.read_text("utf-8", errors="replace"),
        )


def _prompt_file_text(request: BackendRunRequest) -> str:
    system = request.system.strip()
    return f"{system}\n\n{request.prompt}" if system else request.prompt


def _build_run_args(
    *,
    command_template: str,
    model: str,
    prompt: str,
    system: str,
    prompt_file: Path,
) -> list[str]:
    """Substitute shell-quoted values into the template and split it into argv."""

    template = command_template.strip()
    if not template:
        raise BackendRunError("CLI backend command template is empty.", transient=False)

    try:
        parsed = string.Formatter().parse(template)
        fields = {name for _, name, _, _ in parsed if name is not None}
    except ValueError as error:
        raise BackendRunError(f"Malformed command template: {error}", transient=False) from error
    if "prompt" not in fields:
        raise BackendRunError(
            "CLI backend command template must include {prompt}.",
            transient=False,
        )
    unknown = sorted(fields - TEMPLATE_PLACEHOLDERS)
    if unknown:
        raise BackendRunError(
            f"Unsupported command template placeholder: {', '.join(unknown)}",
            transient=False,
        )

    values = {
        "model": model,
        "prompt": prompt,
        "system": system,
        "prompt_file": str(prompt_file),
    }
    quoted = {key: shlex.quote(value) for key, value in values.items()}
    argv = shlex.split(template.format(**quoted))
    if not argv:
        raise BackendRunError(
            "CLI backend command template rendered empty command.",
            transient=False,
        )
    return argv


def _supervise(
    process: subprocess.Popen[str],
    *,
    timeout_seconds: int,
    shutdown_requested: Callable[[], bool] | None,
    grace_seconds: int,
) -> tuple[int, bool]:
    """Wait for ``process``; stop it on timeout or after the shutdown grace period.

    Returns ``(exit_code, stopped)``; a stopped process reports ``TIMEOUT_EXIT_CODE``.
    """

    deadline = time.monotonic() + timeout_seconds
    while True:
        try:
            return process.wait(timeout=_WAIT_SLICE_SECONDS), False
        except subprocess.TimeoutExpired:
            pass

        now = time.monotonic()
        if shutdown_requested is not None and shutdown_requested():
            deadline = min(deadline, now + grace_seconds)
        if now >= deadline:
            _stop(process)
            return TIMEOUT_EXIT_CODE, True


def _stop(process: subprocess.Popen[str]) -> None:
    try:
        process.terminate()
        process.wait(timeout=_TERMINATE_WAIT_SECONDS)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait(timeout=_TERMINATE_WAIT_SECONDS)
    except OSError:
        return
