"""Pre-spawn validation of crew invocation requests."""

from __future__ import annotations

import re
from collections.abc import Mapping

from crew_tool.invocation.models import CrewToolError, ErrorCategory, InvocationRequest

MAX_IDENTIFIER_LENGTH = 128

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_identifier(value: object, field_name: str) -> str:
    """Return `value` if it is a safe package/crew identifier, else raise a validation error."""

    if not isinstance(value, str) or not value:
        raise CrewToolError(
            f"Invalid {field_name}: must be a non-empty string.",
            ErrorCategory.VALIDATION,
            {"field": field_name},
        )
    if len(value) > MAX_IDENTIFIER_LENGTH:
        raise CrewToolError(
            f"Invalid {field_name}: must be at most {MAX_IDENTIFIER_LENGTH} characters.",
            ErrorCategory.VALIDATION,
            {"field": field_name, "length": len(value)},
        )
    if _IDENTIFIER_PATTERN.fullmatch(value) is None:
        raise CrewToolError(
            f"Invalid {field_name} {value!r}: must be alphanumeric with hyphens/underscores.",
            ErrorCategory.VALIDATION,
            {"field": field_name},
        )
    return value


def validate_invocation_request(request: InvocationRequest) -> None:
    """Reject malformed requests before any process is spawned."""

    validate_identifier(request.package_name, "package name")
    validate_identifier(request.crew_name, "crew name")

    if not isinstance(request.input_payload, str):
        raise CrewToolError(
            "Invalid input: must be a string.",
            ErrorCategory.VALIDATION,
            {"field": "input"},
        )
    if "\x00" in request.input_payload:
        raise CrewToolError(
            "Invalid input: must not contain NUL characters.",
            ErrorCategory.VALIDATION,
            {"field": "input"},
        )
    if request.timeout_ms is not None and (
        isinstance(request.timeout_ms, bool)
        or not isinstance(request.timeout_ms, int)
        or request.timeout_ms <= 0
    ):
        raise CrewToolError(
            "Invalid timeout: must be a positive integer of milliseconds, "
            f"got {request.timeout_ms!r}.",
            ErrorCategory.VALIDATION,
            {"field": "timeout_ms"},
        )
    extra_env = request.extra_env if request.extra_env is not None else {}
    if not isinstance(extra_env, Mapping):
        raise CrewToolError(
            "Invalid environment: must be a mapping of strings.",
            ErrorCategory.VALIDATION,
            {"field": "env"},
        )
    for key, value in extra_env.items():
        if not is_valid_env_entry(key, value):
            raise CrewToolError(
                f"Invalid environment entry: {key!r}={value!r}.",
                ErrorCategory.VALIDATION,
                {"field": "env"},
            )


def is_valid_env_entry(key: object, value: object) -> bool:
    """Return True when `key=value` can be placed into a process environment."""

    if not isinstance(key, str) or not isinstance(value, str):
        return False
    if not key or "=" in key or "\x00" in key:
        return False
    return "\x00" not in value
