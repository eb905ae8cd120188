"""Invocation timing, traces and token estimation."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class InvocationTrace:
    """Outcome of one dispatched tool call, handed to dispatcher observers."""

    request_id: str
    tool_id: str
    status: str
    latency_ms: float
    code: str | None = None


class Timer:
    """Simple context timer used by the dispatcher."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def estimate_tokens(text: str) -> int:
    """Token estimate for providers that do not report usage (~4 chars/token)."""
    return math.ceil(len(text) / 4)
