"""CLI entrypoint for crew-tool."""

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import rich_click as click

from crew_tool import __version__
from crew_tool.config import parse_env_pair
from crew_tool.invocation.controllers import (
    CrewCliController,
    CrewInfoCommand,
    CrewListCommand,
    CrewRunCommand,
)
from crew_tool.invocation.models import CrewToolError

click.rich_click.USE_MARKDOWN = True
CREW_CONTROLLER = CrewCliController()

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

T = TypeVar("T")


@click.group()
@click.version_option(version=__version__, prog_name="crew-tool")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level. Defaults to CREW_TOOL_LOG_LEVEL or WARNING.",
)
def crew_tool(log_level: str | None) -> None:
    """Run crew-agents workers as supervised one-shot processes."""

    level = (log_level or os.getenv("CREW_TOOL_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@crew_tool.command("run")
@click.argument("package_name")
@click.argument("crew_name")
@click.option("--input", "input_payload", required=True, help="Input passed to the crew.")
@click.option(
    "--crew-agents-path",
    type=click.Path(path_type=Path),
    default=None,
    help="Worker working directory. Defaults to CREW_TOOL_CREW_AGENTS_PATH or auto-detection.",
)
@click.option(
    "--timeout-ms",
    type=click.IntRange(min=1),
    default=None,
    help="Invocation deadline. Defaults to CREW_TOOL_DEFAULT_TIMEOUT_MS.",
)
@click.option(
    "--env",
    "env_pairs",
    multiple=True,
    help="Extra KEY=VALUE environment variable for the worker. Can be repeated.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
    help="Output format.",
)
def run_crew(  # noqa: PLR0913
    package_name: str,
    crew_name: str,
    input_payload: str,
    crew_agents_path: Path | None,
    timeout_ms: int | None,
    env_pairs: tuple[str, ...],
    output_format: str,
) -> None:
    """Invoke one crew and print its classified result."""

    try:
        env = dict(parse_env_pair(pair) for pair in env_pairs)
    except ValueError as error:
        raise click.BadParameter(str(error), param_hint="--env") from error

    output = _guarded(
        lambda: CREW_CONTROLLER.run(
            CrewRunCommand(
                crew_agents_path=crew_agents_path,
                package_name=package_name,
                crew_name=crew_name,
                input_payload=input_payload,
                timeout_ms=timeout_ms,
                env=env,
                output_format=output_format.lower(),
            ),
        ),
    )
    _emit_lines(output.lines)
    if not output.success:
        raise click.exceptions.Exit(1)


@crew_tool.command("list")
@click.option(
    "--crew-agents-path",
    type=click.Path(path_type=Path),
    default=None,
    help="Worker working directory.",
)
def list_crews(crew_agents_path: Path | None) -> None:
    """List crews available to the worker."""

    _emit_lines(
        _guarded(lambda: CREW_CONTROLLER.list_crews(CrewListCommand(crew_agents_path))),
    )


@crew_tool.command("info")
@click.argument("package_name")
@click.argument("crew_name")
@click.option(
    "--crew-agents-path",
    type=click.Path(path_type=Path),
    default=None,
    help="Worker working directory.",
)
def crew_info(package_name: str, crew_name: str, crew_agents_path: Path | None) -> None:
    """Show details for one crew."""

    _emit_lines(
        _guarded(
            lambda: CREW_CONTROLLER.info(
                CrewInfoCommand(
                    crew_agents_path=crew_agents_path,
                    package_name=package_name,
                    crew_name=crew_name,
                ),
            ),
        ),
    )


def _guarded(action: Callable[[], T]) -> T:
    try:
        return action()
    except CrewToolError as error:
        raise click.ClickException(f"[{error.category.value}] {error}") from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    crew_tool()
