"""Best-effort structured response parsing of worker stdout."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ParsedResponse:
    """Worker response after structured decoding or plain-text fallback."""

    success: bool
    output: str
    error: str | None = None
    duration_ms: int | None = None
    structured: bool = False


def parse_response(stdout_text: str) -> ParsedResponse:
    """Decode a JSON object from stdout, falling back to the trimmed text.

    Decode failures are not invocation failures: a worker that does not speak
    the structured protocol yet still produced successful plain-text output.
    """

    text = stdout_text.strip()
    payload = _try_load_dict(text)
    if payload is None:
        return ParsedResponse(success=True, output=text)

    success = payload.get("success")
    error = payload.get("error")
    return ParsedResponse(
        success=success if isinstance(success, bool) else True,
        output=_normalize_output(payload.get("output")),
        error=(error.strip() or None) if isinstance(error, str) else None,
        duration_ms=_normalize_duration(payload.get("duration_ms")),
        structured=True,
    )


def _try_load_dict(raw: str) -> dict[str, object] | None:
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def _normalize_output(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return json.dumps(value, ensure_ascii=False)


def _normalize_duration(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return int(round(value))
