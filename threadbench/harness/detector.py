"""
Best-effort detection of worker threads.

Runs an action on a dedicated probe thread and samples the live threads of
the process until it finishes. Short-lived workers that start and end between
two samples are missed, so a negative result is only a hint.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .checks import run_with_timeout
from .errors import DetectionInconclusive
from .runner import LONG_TIMEOUT

# Thread names created by the harness, never workers.
HARNESS_PREFIXES = ("threadbench-",)

PROBE_NAME = "threadbench-probe"

DETECTION_MESSAGE = (
    "Unable to detect any worker threads. Are you positive threads are being "
    "created and used in your code? You can debug this by producing log output "
    "inside the run method of your worker threads. This is an imperfect check; "
    "if you are able to verify threads are being created and used, report the "
    "problem along with the thread names above."
)


def active_threads() -> frozenset[str]:
    """Returns the names of the live threads (approximate)."""
    return frozenset(t.name for t in threading.enumerate())


@dataclass(frozen=True)
class ThreadActivityResult:
    """Threads seen before and while an action ran."""

    before: frozenset[str]
    after: frozenset[str]
    workers: frozenset[str]

    @property
    def detected(self) -> bool:
        return len(self.workers) > 0

    def describe(self) -> str:
        return (
            f"\nThreads Before: {sorted(self.before)}"
            f"\nThreads After: {sorted(self.after)}"
            f"\nWorker Threads: {sorted(self.workers)}\n"
        )


class ThreadActivityDetector:
    """Determines whether an action spawns additional threads."""

    def __init__(
        self,
        poll_interval: float = 0.2,
        ignored_prefixes: Sequence[str] = HARNESS_PREFIXES,
    ):
        self.poll_interval = poll_interval
        self.ignored_prefixes = tuple(ignored_prefixes)

    def _is_harness(self, name: str) -> bool:
        return name.startswith(self.ignored_prefixes)

    def detect(self, action: Callable[[], object]) -> ThreadActivityResult:
        """Run ``action`` on a probe thread and collect the threads it started.

        An exception raised by the action is re-raised here once the probe
        thread has finished.
        """
        before: set[str] = set()
        after: set[str] = set()
        errors: list[BaseException] = []

        started = threading.Event()
        finished = threading.Event()

        def probe():
            # snapshot after this thread is already running
            before.update(active_threads())
            started.set()
            try:
                action()
            except BaseException as e:
                errors.append(e)
            finally:
                finished.set()

        driver = threading.Thread(target=probe, name=PROBE_NAME, daemon=True)
        driver.start()
        started.wait()

        after.update(active_threads())

        # an intentional polling loop, slow but catches short-lived workers
        while not finished.wait(self.poll_interval):
            after.update(active_threads())

        driver.join()

        if errors:
            raise errors[0]

        workers = frozenset(
            name for name in after - before if not self._is_harness(name)
        )
        return ThreadActivityResult(
            before=frozenset(before),
            after=frozenset(after),
            workers=workers,
        )

    def assert_multithreaded(
        self,
        action: Callable[[], object],
        timeout: Optional[float] = None,
    ) -> ThreadActivityResult:
        """Detect worker threads, failing with diagnostics if none are seen."""
        timeout = LONG_TIMEOUT if timeout is None else timeout
        result = run_with_timeout(self.detect, timeout, action)

        print(f"Workers: {sorted(result.workers)}")

        if not result.detected:
            message = f"{result.describe()}\n{DETECTION_MESSAGE}\n"
            raise DetectionInconclusive(message, result.before, result.after, result.workers)

        return result


def assert_multithreaded(
    action: Callable[[], object],
    timeout: Optional[float] = None,
) -> ThreadActivityResult:
    """Attempts to check that multiple threads are being used by ``action``."""
    return ThreadActivityDetector().assert_multithreaded(action, timeout)
