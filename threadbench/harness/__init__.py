"""
Benchmark harness for the program-under-test.

Provides invocation, benchmarking, comparison, thread detection and output
checking capabilities.
"""

from .errors import (
    HarnessError,
    InvocationFailure,
    HarnessTimeout,
    DetectionInconclusive,
    ComparisonMismatch,
    SpeedupTooLow,
    BenchmarkCancelled,
)

from .invoker import (
    Driver,
    CommandDriver,
    Invoker,
    clean_args,
    load_driver,
    error_header,
    filtered_trace,
)

from .runner import (
    BenchmarkConfig,
    BenchmarkRunner,
    RunSeries,
    free_memory,
    LONG_TIMEOUT,
    SHORT_TIMEOUT,
)

from .reporter import (
    ComparisonResult,
    TextReporter,
    JSONReporter,
    ChartReporter,
)

from .comparator import (
    Comparator,
    assert_speedup,
    classify_speedup,
    BAD_SPEEDUP,
    MIN_SPEEDUP,
    MOD_SPEEDUP,
    MAX_SPEEDUP,
)

from .detector import (
    ThreadActivityDetector,
    ThreadActivityResult,
    active_threads,
    assert_multithreaded,
)

from .differ import compare_files

from .checks import (
    OutputPaths,
    assert_file_exists,
    assert_multiple,
    assert_no_exceptions,
    check_output,
    check_uncaught,
    delete_files,
    run_with_timeout,
    setup_environment,
)

__all__ = [
    # Errors
    "HarnessError",
    "InvocationFailure",
    "HarnessTimeout",
    "DetectionInconclusive",
    "ComparisonMismatch",
    "SpeedupTooLow",
    "BenchmarkCancelled",
    # Invoker
    "Driver",
    "CommandDriver",
    "Invoker",
    "clean_args",
    "load_driver",
    "error_header",
    "filtered_trace",
    # Runner
    "BenchmarkConfig",
    "BenchmarkRunner",
    "RunSeries",
    "free_memory",
    "LONG_TIMEOUT",
    "SHORT_TIMEOUT",
    # Reporter
    "ComparisonResult",
    "TextReporter",
    "JSONReporter",
    "ChartReporter",
    # Comparator
    "Comparator",
    "assert_speedup",
    "classify_speedup",
    "BAD_SPEEDUP",
    "MIN_SPEEDUP",
    "MOD_SPEEDUP",
    "MAX_SPEEDUP",
    # Detector
    "ThreadActivityDetector",
    "ThreadActivityResult",
    "active_threads",
    "assert_multithreaded",
    # Differ
    "compare_files",
    # Checks
    "OutputPaths",
    "assert_file_exists",
    "assert_multiple",
    "assert_no_exceptions",
    "check_output",
    "check_uncaught",
    "delete_files",
    "run_with_timeout",
    "setup_environment",
]
