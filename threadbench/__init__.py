"""
threadbench - A harness for checking and benchmarking multithreaded programs.

This package drives an externally supplied program-under-test with argument
vectors, times it, detects whether it uses worker threads, and compares the
files it writes against expected output.

Key modules:
- harness: Invocation, benchmarking, comparison, thread detection, file checks
- instrumentation: Timing, output suppression and tracing
- scenarios: Predefined speedup scenarios
"""

__version__ = "0.1.0"

from . import instrumentation
from . import harness
from . import scenarios

__all__ = [
    "instrumentation",
    "harness",
    "scenarios",
]
