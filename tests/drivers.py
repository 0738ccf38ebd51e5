"""Small in-process drivers standing in for the program-under-test."""

import sys
import threading
import time
from pathlib import Path

NOT_CALLABLE = "just a string"


def main(argv):
    """Does nothing."""


def noisy_driver(argv):
    print("indexing", " ".join(argv))
    print("warning: noisy", file=sys.stderr)


def sleeping_driver(argv):
    """Sleeps 60ms, or 20ms when given a -threads flag."""
    time.sleep(0.02 if "-threads" in argv else 0.06)


def failing_driver(argv):
    _build_index(argv)


def _build_index(argv):
    raise ValueError(f"bad arguments: {' '.join(argv)}")


def exiting_driver(argv):
    sys.exit(int(argv[0]))


def threaded_driver(argv):
    """Starts and joins -threads N named workers that each sleep half a second."""
    count = int(argv[argv.index("-threads") + 1]) if "-threads" in argv else 2
    workers = [
        threading.Thread(target=time.sleep, args=(0.5,), name=f"search-worker-{i}")
        for i in range(count)
    ]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()


def writing_driver(argv):
    """Writes the remaining arguments, one per line, to the file named first."""
    path = Path(argv[0])
    path.write_text("".join(f"{line}\n" for line in argv[1:]), encoding="utf-8")


class RecordingDriver:
    """Remembers every argument vector it was called with."""

    def __init__(self, fail_on_call=None):
        self.calls = []
        self.fail_on_call = fail_on_call

    def __call__(self, argv):
        self.calls.append(list(argv))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise RuntimeError(f"call {len(self.calls)} failed")
