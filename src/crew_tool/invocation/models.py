"""Domain models for crew invocation and result classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Closed set of failure categories attached to every failed invocation."""

    CONFIG = "config"
    VALIDATION = "validation"
    SUBPROCESS = "subprocess"
    NOT_INSTALLED = "not_installed"
    CREW = "crew"


class InvocationStrategy(str, Enum):
    """How the worker binary is launched."""

    DIRECT = "direct"
    WRAPPED = "wrapped"


class TerminationState(str, Enum):
    """Per-invocation supervision state."""

    RUNNING = "running"
    SOFT_TERMINATE_SENT = "soft_terminate_sent"
    HARD_KILL_SENT = "hard_kill_sent"
    EXITED = "exited"


class CrewToolError(RuntimeError):
    """Crew tool failure carrying its error category."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.details = details or {}


@dataclass(slots=True)
class InvocationRequest:
    """Input for one crew invocation."""

    package_name: str
    crew_name: str
    input_payload: str
    timeout_ms: int | None = None
    extra_env: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ProcessOutcome:
    """Raw outcome of one supervised process, consumed by the classifier."""

    executable: str
    timeout_ms: int
    duration_ms: int
    exit_code: int | None = None
    stdout_bytes: bytes = b""
    stderr_bytes: bytes = b""
    spawn_error: OSError | ValueError | None = None
    timed_out: bool = False

    @property
    def stdout_text(self) -> str:
        return self.stdout_bytes.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr_bytes.decode("utf-8", errors="replace")


@dataclass(slots=True, frozen=True)
class InvocationResult:
    """Caller-visible outcome of one crew invocation."""

    success: bool
    duration_ms: int
    output: str | None = None
    error: str | None = None
    error_category: ErrorCategory | None = None
    exit_code: int | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize for JSON output."""

        return {
            "success": self.success,
            "output": self.output,
            "error": self.error,
            "error_category": (
                self.error_category.value if self.error_category is not None else None
            ),
            "exit_code": self.exit_code,
            "duration_ms": self.duration_ms,
        }


@dataclass(slots=True, frozen=True)
class CrewInfo:
    """One crew advertised by the worker."""

    package: str
    name: str
    description: str
