"""Asyncio supervision of one-shot worker processes."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable, Mapping
from pathlib import Path

from crew_tool.invocation.commands import BuiltCommand
from crew_tool.invocation.models import ProcessOutcome, TerminationState

logger = logging.getLogger(__name__)

SIGKILL_GRACE_PERIOD_MS = 5000

_READ_CHUNK_BYTES = 65_536
_PIPE_DRAIN_TIMEOUT_SECONDS = 5.0
_KILLED_PIPE_DRAIN_TIMEOUT_SECONDS = 0.5


class TerminationEscalator:
    """Deadline timer and SIGTERM -> SIGKILL escalation for one process.

    `done` resolves exactly once, either when the process exit is observed or
    right after SIGKILL is sent. Both timer handles are cancelled at that point,
    so a late timer can never act on a finished invocation.
    """

    def __init__(self, process: asyncio.subprocess.Process, *, timeout_ms: int) -> None:
        self._process = process
        self._timeout_ms = timeout_ms
        self._loop = asyncio.get_running_loop()
        self._deadline_handle: asyncio.TimerHandle | None = None
        self._grace_handle: asyncio.TimerHandle | None = None
        self.state = TerminationState.RUNNING
        self.timed_out = False
        self.done: asyncio.Future[None] = self._loop.create_future()

    def arm(self) -> None:
        self._deadline_handle = self._loop.call_later(
            self._timeout_ms / 1000,
            self._on_deadline,
        )

    def cancel(self) -> None:
        """Stop the process through the same escalation as a timeout."""

        self._escalate()

    def on_exit(self) -> None:
        if self.state is TerminationState.EXITED:
            return
        self.state = TerminationState.EXITED
        self._settle()

    def _on_deadline(self) -> None:
        self._deadline_handle = None
        if self.state is not TerminationState.RUNNING:
            return
        self.timed_out = True
        logger.warning(
            "Worker pid=%s exceeded %dms deadline, sending SIGTERM",
            self._process.pid,
            self._timeout_ms,
        )
        self._escalate()

    def _escalate(self) -> None:
        if self.state is not TerminationState.RUNNING:
            return
        self.state = TerminationState.SOFT_TERMINATE_SENT
        self._send_signal(self._process.terminate)
        self._grace_handle = self._loop.call_later(
            SIGKILL_GRACE_PERIOD_MS / 1000,
            self._on_grace_expired,
        )

    def _on_grace_expired(self) -> None:
        self._grace_handle = None
        if self.state is not TerminationState.SOFT_TERMINATE_SENT:
            return
        self.state = TerminationState.HARD_KILL_SENT
        logger.warning(
            "Worker pid=%s ignored SIGTERM for %dms, sending SIGKILL",
            self._process.pid,
            SIGKILL_GRACE_PERIOD_MS,
        )
        self._send_signal(self._process.kill)
        self._settle()

    def _send_signal(self, send: Callable[[], None]) -> None:
        try:
            send()
        except ProcessLookupError:
            logger.debug("Worker pid=%s already exited before signal", self._process.pid)
        except OSError as error:
            logger.debug("Failed to signal worker pid=%s: %s", self._process.pid, error)

    def _settle(self) -> None:
        for handle in (self._deadline_handle, self._grace_handle):
            if handle is not None:
                handle.cancel()
        self._deadline_handle = None
        self._grace_handle = None
        if not self.done.done():
            self.done.set_result(None)


class ProcessSupervisor:
    """Spawn a worker per call and supervise it from spawn to exit."""

    def __init__(
        self,
        *,
        base_env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> None:
        self._base_env = dict(base_env or {})
        self._cwd = cwd

    async def run(
        self,
        command: BuiltCommand,
        *,
        timeout_ms: int,
        extra_env: Mapping[str, str] | None = None,
    ) -> ProcessOutcome:
        env = os.environ.copy()
        env.update(self._base_env)
        env.update(extra_env or {})

        start_monotonic = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                command.executable,
                *command.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                cwd=self._cwd,
            )
        except (OSError, ValueError) as error:
            logger.info("Failed to spawn %s: %s", command.executable, error)
            return ProcessOutcome(
                executable=command.executable,
                timeout_ms=timeout_ms,
                duration_ms=_elapsed_ms(start_monotonic),
                spawn_error=error,
            )

        logger.info("Spawned worker pid=%s: %s", process.pid, command.executable)
        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        readers = [
            asyncio.create_task(_drain(process.stdout, stdout_chunks)),
            asyncio.create_task(_drain(process.stderr, stderr_chunks)),
        ]
        escalator = TerminationEscalator(process, timeout_ms=timeout_ms)
        escalator.arm()
        exit_watcher = asyncio.create_task(_watch_exit(process, escalator))

        try:
            await asyncio.shield(escalator.done)
        except asyncio.CancelledError:
            escalator.cancel()
            await _finish(escalator, exit_watcher, readers)
            raise

        await _finish(escalator, exit_watcher, readers)
        exited = escalator.state is TerminationState.EXITED
        logger.info(
            "Worker pid=%s finished: state=%s returncode=%s",
            process.pid,
            escalator.state.value,
            process.returncode,
        )
        return ProcessOutcome(
            executable=command.executable,
            timeout_ms=timeout_ms,
            duration_ms=_elapsed_ms(start_monotonic),
            exit_code=process.returncode if exited else None,
            stdout_bytes=b"".join(stdout_chunks),
            stderr_bytes=b"".join(stderr_chunks),
            timed_out=escalator.timed_out,
        )


async def _drain(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK_BYTES)
        if not chunk:
            return
        chunks.append(chunk)


async def _watch_exit(
    process: asyncio.subprocess.Process,
    escalator: TerminationEscalator,
) -> None:
    await process.wait()
    escalator.on_exit()


async def _finish(
    escalator: TerminationEscalator,
    exit_watcher: asyncio.Task[None],
    readers: list[asyncio.Task[None]],
) -> None:
    await asyncio.shield(escalator.done)
    drain_timeout = (
        _PIPE_DRAIN_TIMEOUT_SECONDS
        if escalator.state is TerminationState.EXITED
        else _KILLED_PIPE_DRAIN_TIMEOUT_SECONDS
    )
    _, pending = await asyncio.wait(readers, timeout=drain_timeout)
    for task in pending:
        task.cancel()
    if not exit_watcher.done():
        exit_watcher.cancel()


def _elapsed_ms(start_monotonic: float) -> int:
    return max(0, int((time.monotonic() - start_monotonic) * 1000))
