from __future__ import annotations

import json

import allure
from click.testing import CliRunner

from task_prioritizer import __version__
from task_prioritizer.main import task_prioritizer

pytestmark = [
    allure.epic("CLI"),
    allure.feature("Run Command"),
]


def test_version():
    assert __version__


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(task_prioritizer, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_run_prints_text_report(echo_agent_env) -> None:
    runner = CliRunner()
    result = runner.invoke(task_prioritizer, ["run", "launch the beta"])

    assert result.exit_code == 0, result.output
    assert "Task Prioritization Results" in result.output
    assert "Completed Tasks: 3 (failed: 0)" in result.output
    assert "1. [p9] Clarify requirements for: launch the beta" in result.output
    assert "Completed: Clarify requirements for: launch the beta" in result.output
    assert "Termination: queue_drained" in result.output


def test_run_json_output(echo_agent_env) -> None:
    runner = CliRunner()
    result = runner.invoke(
        task_prioritizer,
        ["run", "launch the beta", "--json", "--no-progress", "--max-iterations", "2"],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["tasks_completed"] == 2
    assert payload["tasks_remaining"] == 1
    assert payload["termination_reason"] == "iteration_cap_reached"
    assert [item["priority"] for item in payload["per_task_results"]] == [9, 7]


def test_run_fails_when_planning_fails(echo_agent_env, monkeypatch) -> None:
    monkeypatch.setenv(
        "TASK_PRIORITIZER_COMMAND_TEMPLATE",
        echo_agent_env + " --fail-purpose initial_tasks",
    )
    runner = CliRunner()
    result = runner.invoke(task_prioritizer, ["run", "launch the beta", "--no-progress"])

    assert result.exit_code == 1
    assert "Planning failed for goal 'launch the beta'" in result.output
    assert "Goal planning failed." in result.output


def test_run_reports_execution_failures(echo_agent_env, monkeypatch) -> None:
    monkeypatch.setenv(
        "TASK_PRIORITIZER_COMMAND_TEMPLATE",
        echo_agent_env + " --fail-purpose execute",
    )
    runner = CliRunner()
    result = runner.invoke(task_prioritizer, ["run", "launch the beta", "--no-progress"])

    assert result.exit_code == 0, result.output
    assert "Completed Tasks: 3 (failed: 3)" in result.output
    assert "[FAILED]" in result.output


def test_run_rejects_invalid_settings(echo_agent_env, monkeypatch) -> None:
    monkeypatch.setenv("TASK_PRIORITIZER_BACKEND", "grpc")
    runner = CliRunner()
    result = runner.invoke(task_prioritizer, ["run", "launch the beta"])

    assert result.exit_code == 1
    assert "Unsupported TASK_PRIORITIZER_BACKEND" in result.output


def test_run_rejects_negative_cutoff_window() -> None:
    runner = CliRunner()
    result = runner.invoke(task_prioritizer, ["run", "goal", "--cutoff-window", "-1"])

    assert result.exit_code == 2
