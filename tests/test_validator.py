from __future__ import annotations

import allure
import pytest

from crew_tool.invocation.models import CrewToolError, ErrorCategory, InvocationRequest
from crew_tool.invocation.validator import (
    MAX_IDENTIFIER_LENGTH,
    validate_identifier,
    validate_invocation_request,
)

pytestmark = [
    allure.epic("Crew Invocation"),
    allure.feature("Input Validation"),
]


@pytest.mark.parametrize(
    "value",
    ["otterfall", "game_builder", "crew-2", "A", "0", "a_b-C9", "x" * MAX_IDENTIFIER_LENGTH],
)
def test_validate_identifier_accepts_safe_names(value: str) -> None:
    assert validate_identifier(value, "crew name") == value


@pytest.mark.parametrize(
    "value",
    [
        "bad name",
        "pkg.crew",
        "../etc",
        "crew;rm -rf",
        "crew\n",
        "ünïcode",
        "--json",
        "$(whoami)",
    ],
)
def test_validate_identifier_rejects_unsafe_characters(value: str) -> None:
    with pytest.raises(
        CrewToolError,
        match="must be alphanumeric with hyphens/underscores",
    ) as info:
        validate_identifier(value, "package name")

    assert info.value.category is ErrorCategory.VALIDATION


def test_validate_identifier_rejects_empty_and_overlong_values() -> None:
    with pytest.raises(CrewToolError, match="non-empty") as empty:
        validate_identifier("", "crew name")
    with pytest.raises(CrewToolError, match="at most") as overlong:
        validate_identifier("x" * (MAX_IDENTIFIER_LENGTH + 1), "crew name")

    assert empty.value.category is ErrorCategory.VALIDATION
    assert overlong.value.category is ErrorCategory.VALIDATION


def test_validate_request_rejects_non_positive_timeout() -> None:
    request = InvocationRequest(
        package_name="demo",
        crew_name="echo",
        input_payload="hi",
        timeout_ms=0,
    )

    with pytest.raises(CrewToolError, match="Invalid timeout") as info:
        validate_invocation_request(request)

    assert info.value.category is ErrorCategory.VALIDATION


def test_validate_request_rejects_non_string_env_values() -> None:
    request = InvocationRequest(
        package_name="demo",
        crew_name="echo",
        input_payload="hi",
        extra_env={"RETRIES": 3},  # type: ignore[dict-item]
    )

    with pytest.raises(CrewToolError, match="Invalid environment entry"):
        validate_invocation_request(request)


def test_validate_request_accepts_well_formed_request() -> None:
    validate_invocation_request(
        InvocationRequest(
            package_name="otterfall",
            crew_name="game_builder",
            input_payload="Create a QuestComponent; then --json",
            timeout_ms=1000,
            extra_env={"GITHUB_TOKEN": "secret"},
        ),
    )


def test_validate_request_rejects_nul_in_payload() -> None:
    request = InvocationRequest(
        package_name="demo",
        crew_name="echo",
        input_payload="before\x00after",
    )

    with pytest.raises(CrewToolError, match="NUL") as info:
        validate_invocation_request(request)

    assert info.value.category is ErrorCategory.VALIDATION
    assert info.value.details == {"field": "input"}


@pytest.mark.parametrize(
    "extra_env",
    [{"A=B": "1"}, {"A\x00B": "1"}, {"TOKEN": "se\x00cret"}, {"": "1"}],
)
def test_validate_request_rejects_env_entries_the_os_cannot_hold(
    extra_env: dict[str, str],
) -> None:
    request = InvocationRequest(
        package_name="demo",
        crew_name="echo",
        input_payload="hi",
        extra_env=extra_env,
    )

    with pytest.raises(CrewToolError, match="Invalid environment entry") as info:
        validate_invocation_request(request)

    assert info.value.category is ErrorCategory.VALIDATION


def test_validate_request_treats_missing_env_as_empty() -> None:
    validate_invocation_request(
        InvocationRequest(
            package_name="demo",
            crew_name="echo",
            input_payload="hi",
            extra_env=None,  # type: ignore[arg-type]
        ),
    )


def test_validate_request_rejects_non_mapping_env() -> None:
    request = InvocationRequest(
        package_name="demo",
        crew_name="echo",
        input_payload="hi",
        extra_env=[("A", "1")],  # type: ignore[arg-type]
    )

    with pytest.raises(CrewToolError, match="must be a mapping") as info:
        validate_invocation_request(request)

    assert info.value.category is ErrorCategory.VALIDATION
