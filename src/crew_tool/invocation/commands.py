"""Worker command construction for direct and wrapped invocation strategies."""

from __future__ import annotations

from dataclasses import dataclass

from crew_tool.invocation.models import InvocationStrategy

STRUCTURED_OUTPUT_FLAG = "--json"


@dataclass(slots=True, frozen=True)
class BuiltCommand:
    """Concrete executable and argument vector for one spawn."""

    executable: str
    args: tuple[str, ...]

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]


def build_command(
    strategy: InvocationStrategy,
    logical_args: list[str] | tuple[str, ...],
    *,
    launcher: str,
    worker_binary: str,
) -> BuiltCommand:
    """Map worker-level arguments onto the launcher or the worker binary itself."""

    if strategy is InvocationStrategy.WRAPPED:
        return BuiltCommand(executable=launcher, args=("run", worker_binary, *logical_args))
    return BuiltCommand(executable=worker_binary, args=tuple(logical_args))


def run_crew_args(package_name: str, crew_name: str, input_payload: str) -> list[str]:
    return ["run", package_name, crew_name, "--input", input_payload, STRUCTURED_OUTPUT_FLAG]


def list_crews_args() -> list[str]:
    return ["list"]


def crew_info_args(package_name: str, crew_name: str) -> list[str]:
    return ["info", package_name, crew_name]
