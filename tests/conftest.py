"""Shared test fixtures."""

from __future__ import annotations

import stat
import sys
from pathlib import Path

import pytest

from crew_tool.config import CrewToolSettings
from crew_tool.invocation.models import InvocationStrategy

_WORKER_SCRIPT = f"""#!{sys.executable}
import sys

from crew_tool.invocation.backend.echo_worker import main

sys.exit(main())
"""

_LAUNCHER_SCRIPT = f"""#!{sys.executable}
import os
import sys

if sys.argv[1:2] != ["run"]:
    print("launcher expects: run <worker> ...", file=sys.stderr)
    sys.exit(64)
os.execv(sys.argv[2], sys.argv[2:])
"""


def _write_executable(path: Path, body: str) -> Path:
    path.write_text(body, "utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture()
def worker_binary(tmp_path: Path) -> Path:
    """Executable `crew-agents` stand-in backed by the echo worker."""

    return _write_executable(tmp_path / "crew-agents", _WORKER_SCRIPT)


@pytest.fixture()
def launcher_binary(tmp_path: Path) -> Path:
    """Executable `uv` stand-in that execs `run <worker> ...`."""

    return _write_executable(tmp_path / "fake-uv", _LAUNCHER_SCRIPT)


@pytest.fixture()
def direct_settings(tmp_path: Path, worker_binary: Path) -> CrewToolSettings:
    return CrewToolSettings(
        invocation_strategy=InvocationStrategy.DIRECT,
        worker_binary=str(worker_binary),
        crew_agents_path=tmp_path,
        default_timeout_ms=20_000,
    )
