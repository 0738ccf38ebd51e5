"""
Error types raised by the harness.

Assertion-style failures subclass AssertionError so pytest reports them as
test failures rather than errors.
"""

from typing import Optional, Sequence


class HarnessError(Exception):
    """Base class for every harness failure."""


class InvocationFailure(HarnessError, AssertionError):
    """The program-under-test raised during a benchmarked or verified call."""

    def __init__(self, message: str, argv: Sequence[str] = ()):
        super().__init__(message)
        self.argv = list(argv)


class HarnessTimeout(HarnessError, TimeoutError):
    """A wrapped operation exceeded its wall-clock budget."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(f"{operation} timed out after {timeout:g}s")
        self.operation = operation
        self.timeout = timeout


class DetectionInconclusive(HarnessError, AssertionError):
    """No worker threads were observed while the action ran."""

    def __init__(self, message: str, before=frozenset(), after=frozenset(), workers=frozenset()):
        super().__init__(message)
        self.before = before
        self.after = after
        self.workers = workers


class ComparisonMismatch(HarnessError, AssertionError):
    """Actual output did not match the expected output."""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


class SpeedupTooLow(HarnessError, AssertionError):
    """A measured speedup fell below the required target."""

    def __init__(self, message: str, speedup: float, target: float):
        super().__init__(message)
        self.speedup = speedup
        self.target = target


class BenchmarkCancelled(HarnessError):
    """A benchmark run was stopped between rounds, usually after a timeout."""

    def __init__(self, message: str, completed: int = 0):
        super().__init__(message)
        self.completed = completed
