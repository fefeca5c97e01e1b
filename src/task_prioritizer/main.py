"""CLI entrypoint for task-prioritizer."""

import logging

import rich_click as click

from task_prioritizer import __version__
from task_prioritizer.config import SUPPORTED_BACKENDS
from task_prioritizer.controllers import PrioritizerCliController, RunGoalCommand

click.rich_click.USE_MARKDOWN = True
CONTROLLER = PrioritizerCliController()


@click.group()
@click.version_option(version=__version__, prog_name="task-prioritizer")
def task_prioritizer() -> None:
    """Autonomous task-prioritization CLI."""


@task_prioritizer.command("run")
@click.argument("goal")
@click.option(
    "--max-iterations",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum execute cycles (default 20 or TASK_PRIORITIZER_MAX_ITERATIONS).",
)
@click.option(
    "--cutoff-window",
    type=click.IntRange(min=0),
    default=None,
    help="Final iterations reserved for execution only, with no new tasks (default 5).",
)
@click.option(
    "--backend",
    type=click.Choice(SUPPORTED_BACKENDS, case_sensitive=False),
    default=None,
    help="Completion backend: CLI agent subprocess or Messages API over HTTP.",
)
@click.option(
    "--command-template",
    default=None,
    help="CLI agent command with {prompt} and optional {model}, {prompt_file}, {system}.",
)
@click.option("--model", default=None, help="Model name passed to the backend.")
@click.option(
    "--timeout-seconds",
    type=click.IntRange(min=1),
    default=None,
    help="Per-call timeout for the backend.",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print the report as JSON.",
)
@click.option(
    "--progress/--no-progress",
    default=True,
    show_default=True,
    help="Print progress lines to stderr while the run is in flight.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def run(  # noqa: PLR0913
    goal: str,
    max_iterations: int | None,
    cutoff_window: int | None,
    backend: str | None,
    command_template: str | None,
    model: str | None,
    timeout_seconds: int | None,
    as_json: bool,
    progress: bool,
    verbose: bool,
) -> None:
    """Plan, prioritize and execute subtasks for GOAL, then print a report."""

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    try:
        result = CONTROLLER.run_goal(
            RunGoalCommand(
                goal=goal,
                max_iterations=max_iterations,
                cutoff_window=cutoff_window,
                backend=backend.lower() if backend else None,
                command_template=command_template,
                model=model,
                timeout_seconds=timeout_seconds,
                output_format="json" if as_json else "text",
                show_progress=progress,
            ),
            emit=_emit_progress,
        )
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Goal planning failed.")


def _emit_progress(line: str) -> None:
    click.echo(line, err=True)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    task_prioritizer()
