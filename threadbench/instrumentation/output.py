"""
Console output suppression.

The standard streams are process-wide state, so only one suppression window
may be open at a time. The lock is reentrant so a suppressed call may itself
invoke another suppressed call on the same thread.
"""

import os
import sys
import threading
from contextlib import contextmanager, redirect_stderr, redirect_stdout
from typing import Iterator, TextIO

_streams_lock = threading.RLock()


@contextmanager
def suppressed_output() -> Iterator[TextIO]:
    """Redirect stdout and stderr to the null device for the enclosed block.

    Yields the stdout stream that was active before redirection, so callers can
    still report progress. Both streams are restored on every exit path.

    Usage:
        with suppressed_output() as console:
            noisy_call()
            console.write(".")
    """
    with _streams_lock:
        console = sys.stdout
        with open(os.devnull, "w") as devnull:
            with redirect_stdout(devnull), redirect_stderr(devnull):
                yield console
