"""Controllers for crew CLI commands."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path

from crew_tool.config import CrewToolSettings
from crew_tool.invocation.models import (
    CrewToolError,
    ErrorCategory,
    InvocationRequest,
    InvocationResult,
)
from crew_tool.invocation.tool import CrewTool


@dataclass(slots=True)
class CrewRunCommand:
    """CLI input for one crew invocation."""

    crew_agents_path: Path | None
    package_name: str
    crew_name: str
    input_payload: str
    timeout_ms: int | None
    env: dict[str, str] = field(default_factory=dict)
    output_format: str = "table"


@dataclass(slots=True)
class CrewListCommand:
    """CLI input for crew listing."""

    crew_agents_path: Path | None


@dataclass(slots=True)
class CrewInfoCommand:
    """CLI input for crew inspection."""

    crew_agents_path: Path | None
    package_name: str
    crew_name: str


@dataclass(slots=True)
class CrewRunOutput:
    """Rendered run result and its success flag for exit status."""

    success: bool
    lines: list[str]


class CrewCliController:
    """Translate CLI commands into `CrewTool` calls and printable lines."""

    def run(self, command: CrewRunCommand) -> CrewRunOutput:
        tool = _build_tool(command.crew_agents_path)
        result = tool.invoke_crew_sync(
            InvocationRequest(
                package_name=command.package_name,
                crew_name=command.crew_name,
                input_payload=command.input_payload,
                timeout_ms=command.timeout_ms,
                extra_env=dict(command.env),
            ),
        )
        if command.output_format == "json":
            return CrewRunOutput(
                success=result.success,
                lines=[json.dumps(result.to_dict(), ensure_ascii=False)],
            )
        return CrewRunOutput(success=result.success, lines=_render_result(result))

    def list_crews(self, command: CrewListCommand) -> list[str]:
        tool = _build_tool(command.crew_agents_path)
        crews = asyncio.run(tool.list_crews())
        if not crews:
            return ["No crews found."]
        return [f"{crew.package}.{crew.name} - {crew.description}" for crew in crews]

    def info(self, command: CrewInfoCommand) -> list[str]:
        tool = _build_tool(command.crew_agents_path)
        crew = asyncio.run(tool.get_crew_info(command.package_name, command.crew_name))
        return [
            f"package: {crew.package}",
            f"crew: {crew.name}",
            f"description: {crew.description}",
        ]


def _build_tool(crew_agents_path: Path | None) -> CrewTool:
    try:
        settings = CrewToolSettings.from_env(crew_agents_path=crew_agents_path)
    except ValueError as error:
        raise CrewToolError(str(error), ErrorCategory.CONFIG) from error
    return CrewTool(settings)


def _render_result(result: InvocationResult) -> list[str]:
    lines = [
        f"success: {'yes' if result.success else 'no'}",
        f"duration_ms: {result.duration_ms}",
    ]
    if result.exit_code is not None:
        lines.append(f"exit_code: {result.exit_code}")
    if result.error_category is not None:
        lines.append(f"error_category: {result.error_category.value}")
    if result.error:
        lines.append(f"error: {result.error}")
    if result.output:
        lines.append("output:")
        lines.extend(result.output.splitlines())
    return lines
