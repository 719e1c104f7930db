from __future__ import annotations

import allure

from crew_tool.invocation.failure_classifier import (
    GENERIC_FAILURE_MESSAGE,
    INSTALL_HINT,
    classify_outcome,
)
from crew_tool.invocation.models import ErrorCategory, ProcessOutcome

pytestmark = [
    allure.epic("Crew Invocation"),
    allure.feature("Result Classification"),
]


def _outcome(**overrides) -> ProcessOutcome:
    values: dict[str, object] = {
        "executable": "crew-agents",
        "timeout_ms": 1000,
        "duration_ms": 120,
        "exit_code": 0,
    }
    values.update(overrides)
    return ProcessOutcome(**values)  # type: ignore[arg-type]


def test_structured_success_ignores_stderr() -> None:
    result = classify_outcome(
        _outcome(stdout_bytes=b'{"success":true,"output":"X"}', stderr_bytes=b"warning: noisy"),
    )

    assert result.success is True
    assert result.output == "X"
    assert result.error is None
    assert result.error_category is None
    assert result.exit_code == 0
    assert result.duration_ms == 120


def test_plain_text_success_uses_fallback() -> None:
    result = classify_outcome(_outcome(stdout_bytes=b"hello\n"))

    assert result.success is True
    assert result.output == "hello"


def test_worker_reported_duration_overrides_wall_clock() -> None:
    result = classify_outcome(_outcome(stdout_bytes=b'{"output":"X","duration_ms":7}'))

    assert result.duration_ms == 7


def test_worker_self_reported_failure_wins_over_exit_code() -> None:
    result = classify_outcome(
        _outcome(stdout_bytes=b'{"success":false,"error":"crew refused"}'),
    )

    assert result.success is False
    assert result.error == "crew refused"
    assert result.error_category is ErrorCategory.CREW
    assert result.exit_code == 0


def test_non_zero_exit_uses_stderr_then_stdout_then_generic_message() -> None:
    with_stderr = classify_outcome(_outcome(exit_code=1, stderr_bytes=b"boom\n"))
    with_stdout = classify_outcome(_outcome(exit_code=3, stdout_bytes=b"partial"))
    silent = classify_outcome(_outcome(exit_code=2))

    assert with_stderr.success is False
    assert with_stderr.error == "boom"
    assert with_stderr.error_category is ErrorCategory.CREW
    assert with_stderr.exit_code == 1
    assert with_stdout.error == "partial"
    assert silent.error == GENERIC_FAILURE_MESSAGE


def test_unknown_or_signal_exit_is_crew_failure_without_signal_number() -> None:
    unknown = classify_outcome(_outcome(exit_code=None))
    signalled = classify_outcome(_outcome(exit_code=-9))

    assert unknown.error_category is ErrorCategory.CREW
    assert unknown.exit_code is None
    assert signalled.error_category is ErrorCategory.CREW
    assert signalled.exit_code is None


def test_timeout_takes_precedence_and_mentions_timeout_value() -> None:
    result = classify_outcome(
        _outcome(timed_out=True, timeout_ms=250, exit_code=-15, stdout_bytes=b"started\n"),
    )

    assert result.success is False
    assert result.error_category is ErrorCategory.SUBPROCESS
    assert "250ms" in (result.error or "")
    assert result.output == "started"
    assert result.exit_code is None


def test_missing_executable_is_not_installed_with_hint() -> None:
    error = FileNotFoundError(2, "No such file or directory", "crew-agents")

    result = classify_outcome(_outcome(exit_code=None, spawn_error=error))

    assert result.success is False
    assert result.error_category is ErrorCategory.NOT_INSTALLED
    assert INSTALL_HINT in (result.error or "")


def test_missing_working_directory_is_subprocess_failure() -> None:
    error = FileNotFoundError(2, "No such file or directory", "/nonexistent/path")

    result = classify_outcome(_outcome(exit_code=None, spawn_error=error))

    assert result.error_category is ErrorCategory.SUBPROCESS
    assert (result.error or "").startswith("Failed to spawn process")


def test_permission_denied_is_subprocess_failure() -> None:
    error = PermissionError(13, "Permission denied", "crew-agents")

    result = classify_outcome(_outcome(exit_code=None, spawn_error=error))

    assert result.error_category is ErrorCategory.SUBPROCESS


def test_classification_is_idempotent() -> None:
    outcome = _outcome(exit_code=1, stdout_bytes=b"out", stderr_bytes=b"err")

    first = classify_outcome(outcome)
    second = classify_outcome(outcome)

    assert first == second
    assert first.to_dict() == second.to_dict()
    assert first.to_dict()["error_category"] == "crew"


def test_invalid_spawn_arguments_are_subprocess_failures() -> None:
    result = classify_outcome(
        _outcome(exit_code=None, spawn_error=ValueError("embedded null byte")),
    )

    assert result.success is False
    assert result.error_category is ErrorCategory.SUBPROCESS
    assert "embedded null byte" in (result.error or "")
    assert result.exit_code is None


def test_unparseable_stdout_of_successful_exit_is_plain_text() -> None:
    result = classify_outcome(_outcome(stdout_bytes=b"1" * 5000))

    assert result.success is True
    assert result.output == "1" * 5000
