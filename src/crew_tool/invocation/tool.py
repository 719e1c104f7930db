"""Facade for invoking, listing and describing crews."""

from __future__ import annotations

import asyncio
import logging
import re
import time

from crew_tool.config import CrewToolSettings
from crew_tool.invocation.backend.supervisor import ProcessSupervisor
from crew_tool.invocation.commands import (
    BuiltCommand,
    build_command,
    crew_info_args,
    list_crews_args,
    run_crew_args,
)
from crew_tool.invocation.failure_classifier import classify_outcome
from crew_tool.invocation.models import (
    CrewInfo,
    CrewToolError,
    ErrorCategory,
    InvocationRequest,
    InvocationResult,
)
from crew_tool.invocation.validator import validate_identifier, validate_invocation_request

logger = logging.getLogger(__name__)

_CREW_LIST_LINE = re.compile(r"^([^.]+)\.([^\s-]+)\s*-\s*(.+)$")
_DESCRIPTION_MARKER = "Description:"


class CrewTool:
    """Invoke crew-agents worker commands as supervised one-shot processes.

    Example:
        tool = CrewTool(CrewToolSettings(crew_agents_path=Path("./python")))
        result = await tool.invoke_crew(
            InvocationRequest(
                package_name="otterfall",
                crew_name="game_builder",
                input_payload="Create a QuestComponent",
            ),
        )
    """

    def __init__(self, settings: CrewToolSettings | None = None) -> None:
        try:
            resolved = settings or CrewToolSettings.from_env()
            resolved.validate()
        except ValueError as error:
            raise CrewToolError(str(error), ErrorCategory.CONFIG) from error
        self.settings = resolved
        self._supervisor = ProcessSupervisor(
            base_env=resolved.base_env,
            cwd=resolved.resolved_crew_agents_path(),
        )

    async def invoke_crew(self, request: InvocationRequest) -> InvocationResult:
        """Run one crew. Every failure is returned as data, never raised."""

        start_monotonic = time.monotonic()
        try:
            validate_invocation_request(request)
        except CrewToolError as error:
            logger.info("Rejected crew invocation: %s", error)
            return InvocationResult(
                success=False,
                error=str(error),
                error_category=error.category,
                duration_ms=max(0, int((time.monotonic() - start_monotonic) * 1000)),
            )

        timeout_ms = request.timeout_ms or self.settings.default_timeout_ms
        logger.info(
            "Invoking crew %s.%s with timeout %dms",
            request.package_name,
            request.crew_name,
            timeout_ms,
        )
        outcome = await self._supervisor.run(
            self._build(
                run_crew_args(request.package_name, request.crew_name, request.input_payload),
            ),
            timeout_ms=timeout_ms,
            extra_env=request.extra_env,
        )
        result = classify_outcome(outcome)
        if not result.success:
            logger.warning(
                "Crew %s.%s failed (%s): %s",
                request.package_name,
                request.crew_name,
                result.error_category.value if result.error_category else "unknown",
                result.error,
            )
        return result

    def invoke_crew_sync(self, request: InvocationRequest) -> InvocationResult:
        return asyncio.run(self.invoke_crew(request))

    async def list_crews(self) -> list[CrewInfo]:
        """List crews across all packages known to the worker."""

        result = await self._execute(list_crews_args())
        if not result.success:
            raise _command_error("Failed to list crews", result)
        return parse_crew_list(result.output or "")

    async def get_crew_info(self, package_name: str, crew_name: str) -> CrewInfo:
        """Describe one crew."""

        validate_identifier(package_name, "package name")
        validate_identifier(crew_name, "crew name")
        result = await self._execute(crew_info_args(package_name, crew_name))
        if not result.success:
            raise _command_error(
                "Failed to get crew info",
                result,
                package=package_name,
                crew=crew_name,
            )
        return parse_crew_info(package_name, crew_name, result.output or "")

    async def _execute(self, logical_args: list[str]) -> InvocationResult:
        outcome = await self._supervisor.run(
            self._build(logical_args),
            timeout_ms=self.settings.default_timeout_ms,
        )
        return classify_outcome(outcome)

    def _build(self, logical_args: list[str]) -> BuiltCommand:
        return build_command(
            self.settings.invocation_strategy,
            logical_args,
            launcher=self.settings.launcher,
            worker_binary=self.settings.worker_binary,
        )


def parse_crew_list(output: str) -> list[CrewInfo]:
    """Parse `package.crew - description` lines, skipping blanks and comments."""

    crews: list[CrewInfo] = []
    for line in output.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        match = _CREW_LIST_LINE.match(stripped)
        if match is None:
            continue
        crews.append(
            CrewInfo(
                package=match.group(1),
                name=match.group(2),
                description=match.group(3).strip(),
            ),
        )
    return crews


def parse_crew_info(package_name: str, crew_name: str, output: str) -> CrewInfo:
    description = ""
    for line in output.splitlines():
        if _DESCRIPTION_MARKER in line:
            description = line.split(_DESCRIPTION_MARKER, 1)[1].strip()
            break
    return CrewInfo(
        package=package_name,
        name=crew_name,
        description=description or "No description available",
    )


def _command_error(prefix: str, result: InvocationResult, **details: object) -> CrewToolError:
    return CrewToolError(
        f"{prefix}: {result.error}",
        result.error_category or ErrorCategory.CREW,
        {**details, "exit_code": result.exit_code},
    )
