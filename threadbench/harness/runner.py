"""
Benchmark runner for the program-under-test.

Runs warmup and timed rounds of the same argument vector one after another
and collects the duration of every round.
"""

import gc
import json
import os
import sys
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Iterable, Optional, TextIO

import psutil

from threadbench.instrumentation.timing import RunRecord
from threadbench.instrumentation.traces import get_tracer

from .errors import BenchmarkCancelled
from .invoker import Driver, Invoker, clean_args

# Amount of time to wait for long-running checks and benchmarks to finish.
LONG_TIMEOUT = timedelta(minutes=5).total_seconds()

# Amount of time to wait for short-running checks to finish.
SHORT_TIMEOUT = timedelta(seconds=30).total_seconds()


def running_on_github(env: Optional[dict] = None) -> bool:
    """Whether the harness is running on GitHub Actions."""
    env = os.environ if env is None else env
    return (
        env.get("CI", "").lower() == "true"
        and env.get("GITHUB_ACTIONS", "").lower() == "true"
    )


@dataclass
class BenchmarkConfig:
    """Configuration for a benchmark run."""

    warmup_runs: int = 5
    num_runs: int = 10
    long_timeout: float = LONG_TIMEOUT
    short_timeout: float = SHORT_TIMEOUT
    verbose: bool = True

    def __post_init__(self):
        if self.warmup_runs < 0:
            raise ValueError(f"warmup_runs must be non-negative, got {self.warmup_runs}")
        if self.num_runs < 1:
            raise ValueError(f"num_runs must be at least 1, got {self.num_runs}")

    @classmethod
    def from_env(cls, env: Optional[dict] = None, **overrides) -> "BenchmarkConfig":
        """Build a config from the environment.

        GitHub Actions runners get fewer rounds; either count can be forced
        with THREADBENCH_WARMUP_RUNS / THREADBENCH_TIMED_RUNS.
        """
        env = os.environ if env is None else env
        github = running_on_github(env)

        values = {
            "warmup_runs": int(env.get("THREADBENCH_WARMUP_RUNS", 2 if github else 5)),
            "num_runs": int(env.get("THREADBENCH_TIMED_RUNS", 6 if github else 10)),
        }
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "warmup_runs": self.warmup_runs,
            "num_runs": self.num_runs,
            "long_timeout": self.long_timeout,
            "short_timeout": self.short_timeout,
        }


@dataclass
class RunSeries:
    """Durations of every round for one argument vector.

    The first ``warmup_runs`` records are warmup rounds; the rest are timed.
    """

    argv: list[str]
    warmup_runs: int
    num_runs: int
    records: list[RunRecord] = field(default_factory=list)

    @property
    def warmup(self) -> list[RunRecord]:
        return self.records[:self.warmup_runs]

    @property
    def timed(self) -> list[RunRecord]:
        return self.records[self.warmup_runs:]

    @property
    def durations(self) -> list[int]:
        return [r.duration_ms for r in self.records]

    @property
    def minimum_ms(self) -> int:
        """Best observed duration over warmup and timed rounds."""
        return min(self.durations)

    @property
    def total_ms(self) -> int:
        """Sum of the timed rounds."""
        return sum(r.duration_ms for r in self.timed)

    @property
    def average_ms(self) -> float:
        """Mean of the timed rounds only."""
        return self.total_ms / self.num_runs

    def percentile(self, p: float) -> float:
        """Calculate a percentile of the timed rounds."""
        values = sorted(r.duration_ms for r in self.timed)
        if not values:
            return 0.0
        k = (len(values) - 1) * (p / 100)
        f = int(k)
        c = f + 1 if f + 1 < len(values) else f
        return values[f] + (k - f) * (values[c] - values[f])

    def to_dict(self) -> dict:
        """Convert series to dictionary for serialization."""
        return {
            "argv": self.argv,
            "warmup_runs": self.warmup_runs,
            "num_runs": self.num_runs,
            "records": [r.to_dict() for r in self.records],
            "minimum_ms": self.minimum_ms,
            "average_ms": self.average_ms,
            "median_ms": self.percentile(50),
        }

    def save(self, path: Path) -> None:
        """Save the series to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)


def free_memory(out: Optional[TextIO] = None, verbose: bool = True) -> dict:
    """Encourages the garbage collector to run; useful before benchmarking.

    Returns processor and memory information as a dict, printing it too when
    ``verbose`` is set.
    """
    out = out or sys.stdout
    mb = 1024 * 1024
    process = psutil.Process()

    before = process.memory_info().rss / mb
    gc.collect()
    after = process.memory_info().rss / mb

    info = {
        "processors": os.cpu_count() or 1,
        "memory_maximum_mb": psutil.virtual_memory().total / mb,
        "memory_before_mb": before,
        "memory_after_mb": after,
    }

    if not verbose:
        return info

    print("", file=out)
    print("```", file=out)
    print(f"{info['processors']:8.2f} Processors", file=out)
    print(f"{info['memory_maximum_mb']:8.2f} MB Memory Maximum", file=out)
    print(f"{before:8.2f} MB Memory Used (Before GC)", file=out)
    print(f"{after:8.2f} MB Memory Used (After GC)", file=out)
    print("```", file=out)
    print("", file=out)
    return info


class BenchmarkRunner:
    """Runs warmup and timed rounds of the program-under-test."""

    def __init__(
        self,
        driver: Driver,
        verbose: bool = True,
        invoker: Optional[Invoker] = None,
    ):
        self.driver = driver
        self.verbose = verbose
        self.invoker = invoker or Invoker(driver)
        self.tracer = get_tracer()
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop any run in progress before its next round.

        Used when a caller stops waiting on a run it cannot interrupt.
        Later runs on this runner are cancelled as well.
        """
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run(
        self,
        argv: Iterable[Optional[str]],
        warmup_runs: int,
        num_runs: int,
    ) -> RunSeries:
        """Run ``warmup_runs + num_runs`` rounds in order.

        Any failing round aborts the whole run with InvocationFailure, and a
        cancelled runner stops with BenchmarkCancelled before its next round.
        """
        if warmup_runs < 0 or num_runs < 1:
            raise ValueError(f"Invalid round counts: {warmup_runs} warmup, {num_runs} timed")

        args = clean_args(argv)
        series = RunSeries(argv=args, warmup_runs=warmup_runs, num_runs=num_runs)
        console = sys.stdout

        attributes = {
            "threadbench.argv": " ".join(args),
            "threadbench.warmup_runs": warmup_runs,
            "threadbench.num_runs": num_runs,
        }

        with self.tracer.span("benchmark_series", attributes) as span:
            if self.verbose:
                print("Benchmarking", end="", file=console, flush=True)

            try:
                for i in range(warmup_runs + num_runs):
                    if self.cancelled:
                        raise BenchmarkCancelled(f"Benchmark cancelled after {i} rounds", i)
                    elapsed = self.invoker(args)
                    series.records.append(RunRecord(index=i + 1, duration_ms=elapsed))
                    if self.verbose:
                        print(".", end="", file=console, flush=True)
            finally:
                if self.verbose:
                    print("done.", file=console, flush=True)

            if span:
                span.set_attribute("threadbench.minimum_ms", series.minimum_ms)
                span.set_attribute("threadbench.average_ms", series.average_ms)

        return series
