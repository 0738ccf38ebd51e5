"""
Runtime comparison of two argument sets.

Benchmarks each side in turn, derives the speedup from the best observed
durations, and persists a text report per scenario.
"""

import sys
from pathlib import Path
from typing import Iterable, Optional

from threadbench.instrumentation.traces import get_tracer

from .errors import SpeedupTooLow
from .invoker import Driver
from .reporter import ComparisonResult, TextReporter
from .runner import BenchmarkConfig, BenchmarkRunner, free_memory

# Slower or poor speedup cutoff.
BAD_SPEEDUP = 0.9

# Minimum speedup cutoff.
MIN_SPEEDUP = 1.1

# Moderate speedup cutoff.
MOD_SPEEDUP = 1.5

# Maximum speedup cutoff.
MAX_SPEEDUP = 2.0

SPEEDUP_FORMAT = "{workers} workers has a {speedup:.2f}x speedup (less than the {target:.1f}x required) compared to {baseline}."


def classify_speedup(speedup: float) -> str:
    """Name the band a speedup falls in."""
    if speedup < BAD_SPEEDUP:
        return "regression"
    if speedup < MIN_SPEEDUP:
        return "negligible"
    if speedup < MOD_SPEEDUP:
        return "minimum"
    if speedup < MAX_SPEEDUP:
        return "moderate"
    return "strong"


def assert_speedup(speedup: float, target: float, workers: int, baseline: str) -> None:
    """Fail with a readable message if ``speedup`` is below ``target``."""
    if not speedup >= target:
        message = SPEEDUP_FORMAT.format(
            workers=workers, speedup=speedup, target=target, baseline=baseline,
        )
        raise SpeedupTooLow(message, speedup, target)


class Comparator:
    """Compares the runtime of two argument sets for the same driver."""

    def __init__(
        self,
        driver: Driver,
        output_dir: Path,
        config: Optional[BenchmarkConfig] = None,
        runner: Optional[BenchmarkRunner] = None,
        reporter: Optional[TextReporter] = None,
    ):
        self.driver = driver
        self.output_dir = Path(output_dir)
        self.config = config or BenchmarkConfig.from_env()
        self.runner = runner or BenchmarkRunner(driver, verbose=self.config.verbose)
        self.reporter = reporter or TextReporter()
        self.tracer = get_tracer()

    def run(
        self,
        name: str,
        label1: str,
        argv1: Iterable[Optional[str]],
        label2: str,
        argv2: Iterable[Optional[str]],
        warmup_runs: Optional[int] = None,
        num_runs: Optional[int] = None,
    ) -> ComparisonResult:
        """Benchmark both sides, render and save the report."""
        warmup_runs = self.config.warmup_runs if warmup_runs is None else warmup_runs
        num_runs = self.config.num_runs if num_runs is None else num_runs
        console = sys.stdout

        attributes = {
            "threadbench.name": name,
            "threadbench.label1": label1,
            "threadbench.label2": label2,
        }

        with self.tracer.span("compare", attributes) as span:
            free_memory(console, verbose=self.config.verbose)

            # sides run one after the other, never interleaved
            series1 = self.runner.run(argv1, warmup_runs, num_runs)
            series2 = self.runner.run(argv2, warmup_runs, num_runs)

            result = ComparisonResult(
                name=name,
                label1=label1,
                label2=label2,
                series1=series1,
                series2=series2,
            )
            result.report = self.reporter.comparison_report(result)

            if self.config.verbose:
                print(result.report, end="", file=console, flush=True)

            result.path = self.reporter.save(result, self.output_dir)

            if span:
                span.set_attribute("threadbench.speedup", result.speedup)

        return result

    def cancel(self) -> None:
        """Stop a comparison that is still running, before its next round."""
        self.runner.cancel()

    def compare(
        self,
        name: str,
        label1: str,
        argv1: Iterable[Optional[str]],
        label2: str,
        argv2: Iterable[Optional[str]],
        warmup_runs: Optional[int] = None,
        num_runs: Optional[int] = None,
    ) -> float:
        """Compare two argument sets and return the speedup of side 2 over side 1."""
        return self.run(name, label1, argv1, label2, argv2, warmup_runs, num_runs).speedup
