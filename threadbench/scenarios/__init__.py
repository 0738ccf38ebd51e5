"""
Speedup scenario definitions for threaded benchmarking.
"""

from .definitions import (
    Threads,
    BENCH_MULTI,
    BENCH_WORKERS,
    SpeedupScenario,
    one_many,
    single_multi,
    run_speedup_scenario,
)

__all__ = [
    "Threads",
    "BENCH_MULTI",
    "BENCH_WORKERS",
    "SpeedupScenario",
    "one_many",
    "single_multi",
    "run_speedup_scenario",
]
