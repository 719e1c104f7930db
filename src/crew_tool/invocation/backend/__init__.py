"""Process supervision backend."""

from crew_tool.invocation.backend.supervisor import (
    SIGKILL_GRACE_PERIOD_MS,
    ProcessSupervisor,
    TerminationEscalator,
)

__all__ = [
    "SIGKILL_GRACE_PERIOD_MS",
    "ProcessSupervisor",
    "TerminationEscalator",
]
