"""
Speedup scenario definitions.

A scenario pairs a baseline argument vector with a multithreaded one and the
speedup the multithreaded side must reach:
1. One worker versus many workers
2. Single-threaded versus multithreaded
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from threadbench.harness.checks import assert_no_exceptions, run_with_timeout
from threadbench.harness.comparator import Comparator, assert_speedup
from threadbench.harness.errors import HarnessTimeout
from threadbench.harness.invoker import Driver, clean_args
from threadbench.harness.reporter import SINGLE_LABEL
from threadbench.harness.runner import BenchmarkConfig


class Threads(Enum):
    """The number of threads to use in testing."""

    ONE = 1
    TWO = 2
    THREE = 3

    @property
    def num(self) -> int:
        return self.value

    @property
    def text(self) -> str:
        return str(self.value)


# Default number of threads when benchmarking single versus multithreading.
BENCH_MULTI = Threads.THREE

# Default number of threads when benchmarking one versus many workers.
BENCH_WORKERS = Threads.THREE


@dataclass
class SpeedupScenario:
    """Definition of a speedup scenario."""

    name: str
    label1: str
    argv1: list[str]
    label2: str
    argv2: list[str]
    target: float
    workers: int
    baseline: str
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        self.argv1 = clean_args(self.argv1)
        self.argv2 = clean_args(self.argv2)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "label1": self.label1,
            "argv1": self.argv1,
            "label2": self.label2,
            "argv2": self.argv2,
            "target": self.target,
            "workers": self.workers,
            "baseline": self.baseline,
            "metadata": self.metadata,
        }


def one_many(
    name: str,
    argv1: list[str],
    argv2: list[str],
    target: float,
    workers: Threads = BENCH_WORKERS,
) -> SpeedupScenario:
    """One worker thread versus ``workers`` worker threads."""
    return SpeedupScenario(
        name=name,
        label1="1 Worker",
        argv1=argv1,
        label2=f"{workers.text} Workers",
        argv2=argv2,
        target=target,
        workers=workers.num,
        baseline="1 worker",
    )


def single_multi(
    name: str,
    argv1: list[str],
    argv2: list[str],
    target: float,
    workers: Threads = BENCH_MULTI,
) -> SpeedupScenario:
    """Single-threaded code versus ``workers`` worker threads."""
    return SpeedupScenario(
        name=name,
        label1=SINGLE_LABEL,
        argv1=argv1,
        label2=f"{workers.text} Workers",
        argv2=argv2,
        target=target,
        workers=workers.num,
        baseline="single-threading",
    )


def run_speedup_scenario(
    driver: Driver,
    scenario: SpeedupScenario,
    output_dir: Path,
    config: Optional[BenchmarkConfig] = None,
) -> float:
    """Run a scenario and assert its speedup target.

    Both argument vectors are run once first, so a broken driver fails fast
    instead of after a long benchmark.
    """
    config = config or BenchmarkConfig.from_env()

    # make sure the code runs without exceptions before timing it
    assert_no_exceptions(driver, scenario.argv1, config.short_timeout)
    assert_no_exceptions(driver, scenario.argv2, config.short_timeout)

    comparator = Comparator(driver, output_dir, config)
    try:
        speedup = run_with_timeout(
            comparator.compare,
            config.long_timeout,
            scenario.name,
            scenario.label1,
            scenario.argv1,
            scenario.label2,
            scenario.argv2,
        )
    except HarnessTimeout:
        # keep the abandoned rounds from overlapping later benchmarks
        comparator.cancel()
        raise
    assert_speedup(speedup, scenario.target, scenario.workers, scenario.baseline)
    return speedup
