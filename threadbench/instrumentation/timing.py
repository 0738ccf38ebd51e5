"""
Timing utilities for benchmarking the program-under-test.

Provides a manual timer, a context manager for timing a block, and the
immutable per-round record produced by each benchmarked invocation.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class RunRecord:
    """Duration of one benchmarked invocation."""

    index: int
    duration_ms: int

    @property
    def seconds(self) -> float:
        """Duration in seconds, for display only."""
        return self.duration_ms / 1000.0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "index": self.index,
            "duration_ms": self.duration_ms,
        }


class Timer:
    """Simple timer for manual timing control."""

    def __init__(self, name: str = "timer"):
        self.name = name
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self._running = False

    def start(self) -> "Timer":
        """Start the timer."""
        self.start_time = time.perf_counter()
        self._running = True
        return self

    def stop(self) -> "Timer":
        """Stop the timer."""
        self.end_time = time.perf_counter()
        self._running = False
        return self

    @property
    def elapsed_ms(self) -> float:
        """Elapsed time in milliseconds."""
        end = self.end_time if not self._running else time.perf_counter()
        return (end - self.start_time) * 1000

    @property
    def elapsed_millis(self) -> int:
        """Elapsed time in whole milliseconds (truncated, never negative)."""
        return max(0, int(self.elapsed_ms))


@contextmanager
def timed(name: str = "operation") -> Iterator[Timer]:
    """Context manager for timing synchronous operations.

    Usage:
        with timed("my_operation") as timer:
            # do work
        print(f"Elapsed: {timer.elapsed_ms}ms")
    """
    timer = Timer(name).start()
    try:
        yield timer
    finally:
        timer.stop()
