"""Local deterministic crew worker for supervisor integration tests.

Behaviour of `run` is selected with `CREW_ECHO_MODE`:

- `json` (default): print `{"success": true, "output": <input>}`
- `text`: print the input as plain text
- `fail`: print the input to stderr and exit 1
- `report-failure`: exit 0 with `{"success": false, "error": <input>}`
- `timed`: like `json` with `duration_ms` from `CREW_ECHO_DURATION_MS`
- `env`: print the value of the variable named by the input
- `sleep`: sleep `CREW_ECHO_SLEEP_SECONDS` then behave like `json`
- `stubborn`: ignore SIGTERM, then sleep like `sleep`
"""

from __future__ import annotations

import argparse
import json
import os
import signal
import sys
import time

_CREWS = (
    ("demo", "echo", "Echo the input back"),
    ("demo", "fail_fast", "Always fail"),
    ("otterfall", "game_builder", "Build game components"),
)


def main(argv: list[str] | None = None) -> int:
    """Run one worker command."""

    parser = argparse.ArgumentParser(prog="crew-agents")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("list")
    info = subparsers.add_parser("info")
    info.add_argument("package")
    info.add_argument("crew")
    run = subparsers.add_parser("run")
    run.add_argument("package")
    run.add_argument("crew")
    run.add_argument("--input", required=True)
    run.add_argument("--json", action="store_true")
    args = parser.parse_args(argv)

    if args.command == "list":
        print("# available crews")
        for package, crew, description in _CREWS:
            print(f"{package}.{crew} - {description}")
        return 0
    if args.command == "info":
        return _info(args.package, args.crew)
    return _run(args.input, structured=args.json)


def _info(package: str, crew: str) -> int:
    for known_package, known_crew, description in _CREWS:
        if (known_package, known_crew) == (package, crew):
            print(f"Crew: {package}.{crew}")
            print(f"Description: {description}")
            return 0
    print(f"Unknown crew: {package}.{crew}", file=sys.stderr)
    return 2


def _run(payload: str, *, structured: bool) -> int:  # noqa: PLR0911
    mode = os.getenv("CREW_ECHO_MODE", "json" if structured else "text")
    if mode == "stubborn":
        signal.signal(signal.SIGTERM, signal.SIG_IGN)
    if mode in {"sleep", "stubborn"}:
        print(f"started {payload} pid={os.getpid()}", flush=True)
        time.sleep(float(os.getenv("CREW_ECHO_SLEEP_SECONDS", "30")))
        mode = "json"

    if mode == "text":
        print(payload)
        return 0
    if mode == "fail":
        print(payload, file=sys.stderr)
        return 1
    if mode == "report-failure":
        print(json.dumps({"success": False, "error": payload}))
        return 0
    if mode == "env":
        print(os.getenv(payload, ""))
        return 0
    body: dict[str, object] = {"success": True, "output": payload}
    if mode == "timed":
        body["duration_ms"] = int(os.getenv("CREW_ECHO_DURATION_MS", "0"))
    print(json.dumps(body))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
