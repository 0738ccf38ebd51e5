"""
Correctness checks around the program-under-test.

Wraps driver calls in wall-clock timeouts, verifies generated files against
expected ones, and tracks exceptions that escape worker threads.
"""

import asyncio
import functools
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from .differ import compare_files
from .errors import ComparisonMismatch, HarnessTimeout
from .invoker import Driver, Invoker, clean_args, error_header, filtered_trace
from .runner import LONG_TIMEOUT

Check = Callable[[], Any]


async def _wait_for(fn: Callable, timeout: float, args: tuple, kwargs: dict) -> Any:
    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="threadbench-timeout")
    future = loop.run_in_executor(executor, functools.partial(fn, *args, **kwargs))
    try:
        return await asyncio.wait_for(future, timeout=timeout)
    except asyncio.TimeoutError:
        if future.done() and not future.cancelled():
            # fn raised a TimeoutError of its own
            raise
        name = getattr(fn, "__name__", type(fn).__name__)
        raise HarnessTimeout(name, timeout) from None
    finally:
        # the worker is abandoned if still running
        executor.shutdown(wait=False)


def run_with_timeout(fn: Callable, timeout: float, *args, **kwargs) -> Any:
    """Run ``fn`` on a worker thread, giving up after ``timeout`` seconds.

    On timeout the call is abandoned rather than cancelled; it may keep
    running in the background.
    """
    return asyncio.run(_wait_for(fn, timeout, args, kwargs))


def assert_no_exceptions(
    driver: Driver,
    argv: Iterable[Optional[str]],
    timeout: float = LONG_TIMEOUT,
) -> int:
    """Checks whether the driver runs without raising, within ``timeout``.

    Returns the elapsed milliseconds.
    """
    args = clean_args(argv)
    print(f"\nRunning driver {' '.join(args)}...")
    invoker = Invoker(driver, suppress_output=False)
    return run_with_timeout(invoker, timeout, args)


def assert_multiple(
    checks: Sequence[Check],
    argv: Sequence[str],
    header: str,
    error_type: type = AssertionError,
) -> None:
    """Runs every check, reporting all failures together."""
    failures: list[BaseException] = []

    for check in checks:
        try:
            check()
        except Exception as e:
            failures.append(e)

    if not failures:
        return

    debug = [error_header(argv, header), f"Error Details ({len(failures)}):"]
    for failure in failures:
        debug.append("\n")
        if isinstance(failure, AssertionError):
            debug.append(str(failure))
        else:
            debug.append(filtered_trace(failure))
        debug.append("\n")

    raise error_type("".join(debug))


def _readable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.R_OK)


def check_file(actual: Path, expected: Path, cleanup: bool = True) -> int:
    """Compares one generated file against its expected version.

    The actual file is deleted when it matches and ``cleanup`` is set;
    otherwise it is kept for debugging.
    """
    if not _readable(expected):
        raise ComparisonMismatch(f"\tUnable to read expected output file\n\t\tat {expected}")

    if not _readable(actual):
        raise ComparisonMismatch(f"\tUnable to read actual output file\n\t\tat {actual}")

    count = compare_files(actual, expected)

    if count <= 0:
        message = f"\tUnexpected output on line {-count}\n\t\tat {actual} and\n\t\tat {expected}"
        raise ComparisonMismatch(message, line=-count)

    if cleanup:
        actual.unlink()
    return count


def check_output(
    driver: Driver,
    argv: Iterable[Optional[str]],
    files: Mapping[Path, Path],
    timeout: float = LONG_TIMEOUT,
) -> None:
    """Checks whether the driver generates the expected output files.

    ``files`` maps each actual output path to its expected path. Matching
    actual files are deleted; mismatching ones are kept for debugging.
    """
    args = clean_args(argv)

    for actual in files:
        # remove old actual files and set up directories
        actual = Path(actual)
        actual.unlink(missing_ok=True)
        actual.absolute().parent.mkdir(parents=True, exist_ok=True)

    assert_no_exceptions(driver, args, timeout)

    checks = [
        functools.partial(check_file, Path(actual), Path(expected))
        for actual, expected in files.items()
    ]
    assert_multiple(checks, args, "Found error(s) while comparing file output.", ComparisonMismatch)


def assert_file_exists(path: Path, flag: str, exists: bool = True) -> Check:
    """Crafts a check of whether a file does (or does not) exist."""
    if exists:
        message = f"Always create {path} if the {flag} flag is present.\n"
    else:
        message = f"Never create {path} if the {flag} flag is missing.\n"

    def check():
        if Path(path).exists() != exists:
            raise AssertionError(message)

    return check


def delete_files(directory: Path) -> int:
    """Deletes all files under a directory, returning how many were removed."""
    count = 0
    for file in sorted(Path(directory).rglob("*")):
        if file.is_file():
            file.unlink()
            count += 1
    return count


# Failures from exceptions that escaped worker threads.
UNCAUGHT: list[str] = []
_uncaught_lock = threading.Lock()
_previous_hook = None


def _record_uncaught(args) -> None:
    name = args.thread.name if args.thread is not None else "unknown"
    with _uncaught_lock:
        UNCAUGHT.append(f"Thread {name} threw an exception: {args.exc_type.__name__}: {args.exc_value}")
    if _previous_hook is not None:
        _previous_hook(args)


def install_uncaught_handler() -> None:
    """Record exceptions that escape any thread's run method."""
    global _previous_hook
    if threading.excepthook is _record_uncaught:
        return
    _previous_hook = threading.excepthook
    threading.excepthook = _record_uncaught


def check_uncaught() -> None:
    """Fail if any thread threw an otherwise uncaught exception."""
    with _uncaught_lock:
        failures = list(UNCAUGHT)
        UNCAUGHT.clear()

    if failures:
        raise AssertionError("One or more threads threw an exception.\n" + "\n".join(failures))


@dataclass
class OutputPaths:
    """Locations of the input, expected, and actual files."""

    root: Path = field(default_factory=Path.cwd)
    input_dir: Optional[Path] = None
    expected_dir: Optional[Path] = None
    actual_dir: Optional[Path] = None

    def __post_init__(self):
        self.root = Path(self.root)
        self.input_dir = Path(self.input_dir or self.root / "input")
        self.expected_dir = Path(self.expected_dir or self.root / "expected")
        self.actual_dir = Path(self.actual_dir or self.root / "actual")

    @classmethod
    def from_env(cls, root: Optional[Path] = None) -> "OutputPaths":
        """Build paths, letting THREADBENCH_*_DIR variables override each one."""
        return cls(
            root=Path(root or os.getenv("THREADBENCH_ROOT") or Path.cwd()),
            input_dir=os.getenv("THREADBENCH_INPUT_DIR"),
            expected_dir=os.getenv("THREADBENCH_EXPECTED_DIR"),
            actual_dir=os.getenv("THREADBENCH_ACTUAL_DIR"),
        )


def setup_environment(paths: OutputPaths) -> int:
    """Makes sure the expected environment is set up before running checks.

    Returns the number of stale actual files removed.
    """
    print(f" Working Directory: {Path.cwd().resolve().name}")
    print(f"Expected Directory: {paths.expected_dir}")
    print()

    if not paths.input_dir.is_dir():
        raise FileNotFoundError(f"Unable to access: {paths.input_dir}")

    # create or clean up the actual directory
    paths.actual_dir.mkdir(parents=True, exist_ok=True)
    if not os.access(paths.actual_dir, os.W_OK):
        raise PermissionError(f"Unable to write to: {paths.actual_dir}")

    count = 0
    if "SKIP_ACTUAL_CLEANUP" not in os.environ:
        count = delete_files(paths.actual_dir)
        print(f"Removed {count} old actual files...")

    if not paths.expected_dir.is_dir():
        raise FileNotFoundError(f"Unable to access: {paths.expected_dir}")

    install_uncaught_handler()
    return count
