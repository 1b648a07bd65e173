"""Timing helpers and the latency summary printed by the benchmarks."""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class LatencyReport:
    """Total and per-message round-trip time for a batch of messages."""

    count: int
    elapsed_ms: float

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError(f"message count must be positive, got {self.count}")
        if self.elapsed_ms < 0:
            raise ValueError(f"elapsed time cannot be negative, got {self.elapsed_ms}")

    @classmethod
    def from_seconds(cls, count: int, seconds: float) -> LatencyReport:
        return cls(count, seconds * 1e3)

    @property
    def average_ms(self) -> float:
        return self.elapsed_ms / self.count

    def lines(self) -> list[str]:
        return [
            f"Total time for {self.count} messages: {self.elapsed_ms:.2f} ms",
            f"Average time per message: {self.average_ms:.2f} ms",
        ]


class Stopwatch:
    """Context manager measuring elapsed seconds on the monotonic clock."""

    def __init__(self) -> None:
        self._start = 0
        self.elapsed = 0.0

    def __enter__(self) -> Stopwatch:
        self._start = time.monotonic_ns()
        return self

    def __exit__(self, *args: object) -> None:
        self.elapsed = (time.monotonic_ns() - self._start) / 1e9