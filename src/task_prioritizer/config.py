"""Runtime configuration for the scheduler and its LLM oracle."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

SUPPORTED_BACKENDS = ("cli", "http")

DEFAULT_MODEL = "claude-sonnet-4-5"
DEFAULT_CLI_COMMAND_TEMPLATE = "claude -p --model {model} -- {prompt}"
DEFAULT_API_BASE_URL = "https://api.anthropic.com"


@dataclass(slots=True)
class SchedulerConfig:
    """Iteration budget and replanning cutoff for one run."""

    max_iterations: int = 20
    generation_cutoff_window: int = 5

    @property
    def generation_cutoff(self) -> int:
        """Last iteration after which replanning is still allowed."""

        return self.max_iterations - self.generation_cutoff_window

    def validate(self) -> None:
        """Raise configuration error on out-of-range values."""

        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, int):
            raise ValueError("max_iterations must be an integer.")
        if isinstance(self.generation_cutoff_window, bool) or not isinstance(
            self.generation_cutoff_window,
            int,
        ):
            raise ValueError("generation_cutoff_window must be an integer.")
        if self.max_iterations < 1:
            raise ValueError("TASK_PRIORITIZER_MAX_ITERATIONS must be >= 1.")
        if self.generation_cutoff_window < 0:
            raise ValueError("TASK_PRIORITIZER_CUTOFF_WINDOW must be >= 0.")


@dataclass(slots=True)
class OracleSettings:
    """LLM oracle backend settings."""

    backend: str = "cli"
    model: str = DEFAULT_MODEL
    command_template: str = DEFAULT_CLI_COMMAND_TEMPLATE
    api_base_url: str = DEFAULT_API_BASE_URL
    api_key: str | None = field(default=None, repr=False)
    timeout_seconds: int = 300
    graceful_shutdown_seconds: int = 10
    generation_max_tokens: int = 1024
    execution_max_tokens: int = 512
    max_retries: int = 2
    transient_exit_codes: tuple[int, ...] = (137, 143)

    def validate(self) -> None:
        if self.backend not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"Unsupported TASK_PRIORITIZER_BACKEND: {self.backend!r}. "
                f"Expected one of: {', '.join(SUPPORTED_BACKENDS)}.",
            )
        if not self.model.strip():
            raise ValueError("TASK_PRIORITIZER_MODEL must not be empty.")
        if self.timeout_seconds <= 0:
            raise ValueError("TASK_PRIORITIZER_TIMEOUT_SECONDS must be > 0.")
        if self.graceful_shutdown_seconds < 0:
            raise ValueError("TASK_PRIORITIZER_GRACEFUL_SHUTDOWN_SECONDS must be >= 0.")
        if self.generation_max_tokens <= 0 or self.execution_max_tokens <= 0:
            raise ValueError("Max token limits must be positive.")
        if self.backend == "cli" and "{prompt}" not in self.command_template:
            raise ValueError("TASK_PRIORITIZER_COMMAND_TEMPLATE must include {prompt}.")
        if self.backend == "http":
            parsed = urlparse(self.api_base_url)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ValueError(
                    "Invalid TASK_PRIORITIZER_API_BASE_URL: "
                    f"{self.api_base_url!r}. Expected an absolute http(s) URL.",
                )
            if not self.api_key:
                raise ValueError(
                    "An API key is required for the http backend. "
                    "Set TASK_PRIORITIZER_API_KEY or ANTHROPIC_API_KEY.",
                )


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    oracle: OracleSettings = field(default_factory=OracleSettings)
    log_events: bool = False

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults suitable for local runs."""

        return cls(
            scheduler=SchedulerConfig(
                max_iterations=int(os.getenv("TASK_PRIORITIZER_MAX_ITERATIONS", "20")),
                generation_cutoff_window=int(os.getenv("TASK_PRIORITIZER_CUTOFF_WINDOW", "5")),
            ),
            oracle=OracleSettings(
                backend=os.getenv("TASK_PRIORITIZER_BACKEND", "cli").strip().lower(),
                model=os.getenv("TASK_PRIORITIZER_MODEL", DEFAULT_MODEL),
                command_template=os.getenv(
                    "TASK_PRIORITIZER_COMMAND_TEMPLATE",
                    DEFAULT_CLI_COMMAND_TEMPLATE,
                ),
                api_base_url=os.getenv("TASK_PRIORITIZER_API_BASE_URL", DEFAULT_API_BASE_URL),
                api_key=(
                    os.getenv("TASK_PRIORITIZER_API_KEY") or os.getenv("ANTHROPIC_API_KEY") or None
                ),
                timeout_seconds=int(os.getenv("TASK_PRIORITIZER_TIMEOUT_SECONDS", "300")),
                graceful_shutdown_seconds=int(
                    os.getenv("TASK_PRIORITIZER_GRACEFUL_SHUTDOWN_SECONDS", "10"),
                ),
                generation_max_tokens=int(
                    os.getenv("TASK_PRIORITIZER_GENERATION_MAX_TOKENS", "1024"),
                ),
                execution_max_tokens=int(
                    os.getenv("TASK_PRIORITIZER_EXECUTION_MAX_TOKENS", "512"),
                ),
                max_retries=int(os.getenv("TASK_PRIORITIZER_HTTP_MAX_RETRIES", "2")),
                transient_exit_codes=_parse_int_tuple(
                    "TASK_PRIORITIZER_TRANSIENT_EXIT_CODES",
                    default=(137, 143),
                ),
            ),
            log_events=_env_bool("TASK_PRIORITIZER_LOG_EVENTS", default=False),
        )

    def validate(self) -> None:
        self.scheduler.validate()
        self.oracle.validate()


def _parse_int_tuple(name: str, *, default: tuple[int, ...]) -> tuple[int, ...]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    values: list[int] = []
    for part in raw.split(","):
        token = part.strip()
        if not token:
            continue
        try:
            values.append(int(token))
        except ValueError as error:
            raise ValueError(f"Invalid integer in {name}: {token!r}") from error
    return tuple(values)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
