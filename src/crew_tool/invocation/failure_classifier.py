"""Deterministic classification of process outcomes into invocation results."""

from __future__ import annotations

from crew_tool.invocation.models import ErrorCategory, InvocationResult, ProcessOutcome
from crew_tool.invocation.response_parser import parse_response

GENERIC_FAILURE_MESSAGE = "Crew execution failed"

INSTALL_HINT = (
    "Install crew-agents (for example `uv sync` inside the crew agents directory) "
    "or set CREW_TOOL_WORKER_BINARY / CREW_TOOL_LAUNCHER to an installed executable."
)


def classify_outcome(outcome: ProcessOutcome) -> InvocationResult:
    """Map one raw outcome onto the caller-visible result.

    Pure function of `outcome`: classifying the same outcome twice yields
    equal results.
    """

    if outcome.timed_out:
        return InvocationResult(
            success=False,
            output=outcome.stdout_text.strip() or None,
            error=f"Crew execution timed out after {outcome.timeout_ms}ms",
            error_category=ErrorCategory.SUBPROCESS,
            exit_code=None,
            duration_ms=outcome.duration_ms,
        )

    if outcome.spawn_error is not None:
        return _classify_spawn_error(outcome)

    if outcome.exit_code == 0:
        return _classify_success_exit(outcome)

    stdout = outcome.stdout_text.strip()
    stderr = outcome.stderr_text.strip()
    return InvocationResult(
        success=False,
        output=stdout or None,
        error=stderr or stdout or GENERIC_FAILURE_MESSAGE,
        error_category=ErrorCategory.CREW,
        exit_code=_public_exit_code(outcome.exit_code),
        duration_ms=outcome.duration_ms,
    )


def is_executable_missing(outcome: ProcessOutcome) -> bool:
    """Return True when the spawn error means the executable itself does not exist."""

    error = outcome.spawn_error
    if not isinstance(error, FileNotFoundError):
        return False
    # Popen reports a missing working directory as FileNotFoundError naming the cwd.
    return error.filename is None or str(error.filename) == outcome.executable


def _classify_spawn_error(outcome: ProcessOutcome) -> InvocationResult:
    error = outcome.spawn_error
    if is_executable_missing(outcome):
        return InvocationResult(
            success=False,
            error=(
                f"Failed to spawn process: executable not found: {outcome.executable}. "
                f"{INSTALL_HINT}"
            ),
            error_category=ErrorCategory.NOT_INSTALLED,
            duration_ms=outcome.duration_ms,
        )
    return InvocationResult(
        success=False,
        error=f"Failed to spawn process: {error}",
        error_category=ErrorCategory.SUBPROCESS,
        duration_ms=outcome.duration_ms,
    )


def _classify_success_exit(outcome: ProcessOutcome) -> InvocationResult:
    parsed = parse_response(outcome.stdout_text)
    duration_ms = parsed.duration_ms if parsed.duration_ms is not None else outcome.duration_ms
    if parsed.success:
        return InvocationResult(
            success=True,
            output=parsed.output,
            exit_code=0,
            duration_ms=duration_ms,
        )
    return InvocationResult(
        success=False,
        output=parsed.output or None,
        error=parsed.error or parsed.output or "Crew reported failure",
        error_category=ErrorCategory.CREW,
        exit_code=0,
        duration_ms=duration_ms,
    )


def _public_exit_code(exit_code: int | None) -> int | None:
    # Negative return codes encode the terminating signal number.
    if exit_code is None or exit_code < 0:
        return None
    return exit_code
