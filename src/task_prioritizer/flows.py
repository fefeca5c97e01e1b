"""Prefect flow wrapping one scheduler run.

Lets a goal be prioritized from a deployment or schedule. The flow returns
the report as a plain dict so Prefect can persist it as a flow result.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import replace
from typing import Any

from prefect import flow

from task_prioritizer.config import Settings
from task_prioritizer.oracle import open_oracle
from task_prioritizer.scheduler import ReasoningOracle, TaskScheduler
from task_prioritizer.scheduler.events import LoggingEventSink

logger = logging.getLogger(__name__)


@flow(name="prioritize_goal_flow")
def prioritize_goal_flow(
    goal: str,
    max_iterations: int | None = None,
    cutoff_window: int | None = None,
    oracle: ReasoningOracle | None = None,
) -> dict[str, Any]:
    """Run the scheduler for ``goal`` and return ``Report.to_dict()``.

    Without an explicit ``oracle`` the LLM oracle is built from
    ``Settings.from_env()``. ``GoalPlanningFailed`` propagates and fails the
    flow run.
    """

    settings = Settings.from_env()
    config = settings.scheduler
    if max_iterations is not None:
        config = replace(config, max_iterations=max_iterations)
    if cutoff_window is not None:
        config = replace(config, generation_cutoff_window=cutoff_window)
    config.validate()

    oracle_context = nullcontext(oracle) if oracle is not None else open_oracle(settings.oracle)
    with oracle_context as active_oracle:
        scheduler = TaskScheduler(active_oracle, event_sink=LoggingEventSink())
        report = scheduler.run(goal, config)

    logger.info(
        "Flow finished goal with %d task(s) completed, reason=%s",
        report.tasks_completed,
        report.termination_reason.value,
    )
    return report.to_dict()
