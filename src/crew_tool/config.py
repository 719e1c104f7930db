"""Runtime configuration for crew invocation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from crew_tool.invocation.models import InvocationStrategy
from crew_tool.invocation.validator import is_valid_env_entry

DEFAULT_TIMEOUT_MS = 300_000
DEFAULT_LAUNCHER = "uv"
DEFAULT_WORKER_BINARY = "crew-agents"

_CREW_AGENTS_PATH_CANDIDATES: tuple[str, ...] = ("./python", "../python", "../../python")


@dataclass(slots=True)
class CrewToolSettings:
    """Supervisor configuration shared read-only by all invocations."""

    invocation_strategy: InvocationStrategy = InvocationStrategy.WRAPPED
    launcher: str = DEFAULT_LAUNCHER
    worker_binary: str = DEFAULT_WORKER_BINARY
    crew_agents_path: Path | None = None
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS
    base_env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, crew_agents_path: Path | None = None) -> CrewToolSettings:
        """Load settings from environment with defaults matching a `uv` checkout."""

        configured_path = os.getenv("CREW_TOOL_CREW_AGENTS_PATH", "").strip()
        return cls(
            invocation_strategy=parse_strategy(
                os.getenv("CREW_TOOL_INVOCATION_STRATEGY", InvocationStrategy.WRAPPED.value),
            ),
            launcher=os.getenv("CREW_TOOL_LAUNCHER", DEFAULT_LAUNCHER).strip(),
            worker_binary=os.getenv("CREW_TOOL_WORKER_BINARY", DEFAULT_WORKER_BINARY).strip(),
            crew_agents_path=(
                crew_agents_path or (Path(configured_path) if configured_path else None)
            ),
            default_timeout_ms=_env_int("CREW_TOOL_DEFAULT_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            base_env=parse_env_pairs(os.getenv("CREW_TOOL_ENV", "")),
        )

    def validate(self) -> None:
        """Raise configuration error if the supervisor cannot be built from these settings."""

        if self.default_timeout_ms <= 0:
            raise ValueError("CREW_TOOL_DEFAULT_TIMEOUT_MS must be > 0.")
        if not self.worker_binary:
            raise ValueError("CREW_TOOL_WORKER_BINARY must not be empty.")
        if self.invocation_strategy is InvocationStrategy.WRAPPED and not self.launcher:
            raise ValueError("CREW_TOOL_LAUNCHER must not be empty for the wrapped strategy.")
        for key, value in self.base_env.items():
            if not is_valid_env_entry(key, value):
                raise ValueError(f"Invalid base environment entry: {key!r}={value!r}")

    def resolved_crew_agents_path(self) -> Path:
        """Return the worker working directory, detecting it when not configured."""

        if self.crew_agents_path is not None:
            return self.crew_agents_path
        return detect_crew_agents_path()


def detect_crew_agents_path(cwd: Path | None = None) -> Path:
    """Find the first nearby `python` directory holding a `pyproject.toml`."""

    base = cwd or Path.cwd()
    candidates = [base / candidate for candidate in _CREW_AGENTS_PATH_CANDIDATES]
    candidates.append(Path.cwd() / "python")
    for candidate in candidates:
        if (candidate / "pyproject.toml").is_file():
            return candidate
    return base / "python"


def parse_strategy(value: str) -> InvocationStrategy:
    """Parse invocation strategy name, rejecting unknown values."""

    normalized = value.strip().lower()
    try:
        return InvocationStrategy(normalized)
    except ValueError as error:
        allowed = ", ".join(strategy.value for strategy in InvocationStrategy)
        raise ValueError(
            f"Invalid CREW_TOOL_INVOCATION_STRATEGY: {value!r}. Expected one of: {allowed}.",
        ) from error


def parse_env_pairs(raw: str) -> dict[str, str]:
    """Parse `KEY=VALUE,KEY2=VALUE2` into a mapping."""

    pairs: dict[str, str] = {}
    for part in raw.split(","):
        token = part.strip()
        if not token:
            continue
        key, value = parse_env_pair(token)
        pairs[key] = value
    return pairs


def parse_env_pair(token: str) -> tuple[str, str]:
    """Split one `KEY=VALUE` entry; the value may contain `=` and commas."""

    if "=" not in token:
        raise ValueError(
            f"Invalid environment entry: {token!r}. Expected format 'KEY=VALUE'.",
        )
    key, value = token.split("=", 1)
    key = key.strip()
    if not key:
        raise ValueError(f"Invalid environment entry: {token!r}. Key must not be empty.")
    return key, value


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error
