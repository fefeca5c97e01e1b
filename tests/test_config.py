from __future__ import annotations

import allure
import pytest

from task_prioritizer.config import (
    DEFAULT_CLI_COMMAND_TEMPLATE,
    DEFAULT_MODEL,
    OracleSettings,
    SchedulerConfig,
    Settings,
)

pytestmark = [
    allure.epic("Configuration"),
    allure.feature("Environment Settings"),
]

_ENV_NAMES = (
    "TASK_PRIORITIZER_MAX_ITERATIONS",
    "TASK_PRIORITIZER_CUTOFF_WINDOW",
    "TASK_PRIORITIZER_BACKEND",
    "TASK_PRIORITIZER_MODEL",
    "TASK_PRIORITIZER_COMMAND_TEMPLATE",
    "TASK_PRIORITIZER_API_BASE_URL",
    "TASK_PRIORITIZER_API_KEY",
    "ANTHROPIC_API_KEY",
    "TASK_PRIORITIZER_TIMEOUT_SECONDS",
    "TASK_PRIORITIZER_TRANSIENT_EXIT_CODES",
    "TASK_PRIORITIZER_LOG_EVENTS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings.from_env()

    assert settings.scheduler.max_iterations == 20
    assert settings.scheduler.generation_cutoff_window == 5
    assert settings.scheduler.generation_cutoff == 15
    assert settings.oracle.backend == "cli"
    assert settings.oracle.model == DEFAULT_MODEL
    assert settings.oracle.command_template == DEFAULT_CLI_COMMAND_TEMPLATE
    assert settings.oracle.transient_exit_codes == (137, 143)
    assert settings.log_events is False
    settings.validate()


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("TASK_PRIORITIZER_MAX_ITERATIONS", "8")
    monkeypatch.setenv("TASK_PRIORITIZER_CUTOFF_WINDOW", "2")
    monkeypatch.setenv("TASK_PRIORITIZER_BACKEND", " HTTP ")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "secret")
    monkeypatch.setenv("TASK_PRIORITIZER_TRANSIENT_EXIT_CODES", "1, 75,")
    monkeypatch.setenv("TASK_PRIORITIZER_LOG_EVENTS", "yes")

    settings = Settings.from_env()

    assert settings.scheduler.generation_cutoff == 6
    assert settings.oracle.backend == "http"
    assert settings.oracle.api_key == "secret"
    assert settings.oracle.transient_exit_codes == (1, 75)
    assert settings.log_events is True
    settings.validate()


def test_api_key_is_hidden_from_repr() -> None:
    settings = OracleSettings(backend="http", api_key="sk-top-secret")

    assert "sk-top-secret" not in repr(settings)


def test_invalid_bool_env_raises(monkeypatch) -> None:
    monkeypatch.setenv("TASK_PRIORITIZER_LOG_EVENTS", "maybe")

    with pytest.raises(ValueError, match="TASK_PRIORITIZER_LOG_EVENTS"):
        Settings.from_env()


def test_invalid_exit_code_list_raises(monkeypatch) -> None:
    monkeypatch.setenv("TASK_PRIORITIZER_TRANSIENT_EXIT_CODES", "137,abc")

    with pytest.raises(ValueError, match="abc"):
        Settings.from_env()


@pytest.mark.parametrize(
    ("config", "message"),
    [
        (SchedulerConfig(max_iterations=0), "TASK_PRIORITIZER_MAX_ITERATIONS"),
        (SchedulerConfig(generation_cutoff_window=-2), "TASK_PRIORITIZER_CUTOFF_WINDOW"),
        (SchedulerConfig(max_iterations=True), "integer"),
    ],
)
def test_scheduler_config_validation(config: SchedulerConfig, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        config.validate()


def test_window_larger_than_cap_is_allowed() -> None:
    config = SchedulerConfig(max_iterations=3, generation_cutoff_window=10)

    config.validate()
    assert config.generation_cutoff < 0


@pytest.mark.parametrize(
    ("settings", "message"),
    [
        (OracleSettings(backend="grpc"), "Unsupported TASK_PRIORITIZER_BACKEND"),
        (OracleSettings(model="  "), "TASK_PRIORITIZER_MODEL"),
        (OracleSettings(timeout_seconds=0), "TASK_PRIORITIZER_TIMEOUT_SECONDS"),
        (OracleSettings(command_template="claude -p"), r"\{prompt\}"),
        (OracleSettings(backend="http", api_key=None), "API key"),
        (
            OracleSettings(backend="http", api_key="k", api_base_url="ftp://example.com"),
            "TASK_PRIORITIZER_API_BASE_URL",
        ),
    ],
)
def test_oracle_settings_validation(settings: OracleSettings, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        settings.validate()
