"""
Invocation of the program-under-test.

A driver is any callable accepting an argument vector. The Invoker calls it
synchronously, times it, and keeps its console output out of the way.
"""

import importlib
import shlex
import subprocess
import sys
import traceback
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from threadbench.instrumentation.output import suppressed_output
from threadbench.instrumentation.timing import timed

from .errors import InvocationFailure

# Type alias for the program-under-test entry point
Driver = Callable[[list[str]], Any]

HARNESS_PACKAGE = __name__.split(".")[0]


def clean_args(argv: Iterable[Optional[str]]) -> list[str]:
    """Drop missing and blank entries from an argument vector."""
    return [arg for arg in argv if arg is not None and arg.strip()]


def load_driver(reference: str) -> Driver:
    """Load an in-process driver from a ``package.module:function`` reference.

    The function name defaults to ``main`` when omitted.
    """
    module_name, _, attribute = reference.partition(":")
    module = importlib.import_module(module_name)
    driver = getattr(module, attribute or "main", None)
    if not callable(driver):
        raise ValueError(f"Driver {reference!r} is not callable")
    return driver


class CommandDriver:
    """Runs an external executable as the program-under-test.

    The child's output is relayed to the current ``sys.stdout`` and
    ``sys.stderr`` so that output suppression applies to it as well.
    """

    def __init__(self, command: Union[str, Sequence[str]], cwd: Optional[Path] = None):
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.command:
            raise ValueError("Command driver needs an executable")
        self.cwd = cwd

    def __call__(self, argv: list[str]) -> int:
        cmd = self.command + list(argv)
        proc = subprocess.run(
            cmd,
            cwd=self.cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if proc.stdout:
            sys.stdout.write(proc.stdout)
        if proc.stderr:
            sys.stderr.write(proc.stderr)
        if proc.returncode != 0:
            raise subprocess.CalledProcessError(proc.returncode, cmd, proc.stdout, proc.stderr)
        return proc.returncode

    def __repr__(self) -> str:
        return f"CommandDriver({shlex.join(self.command)!r})"


def call_driver(driver: Driver, argv: list[str]) -> None:
    """Call a driver, treating a clean ``SystemExit`` as a normal return."""
    try:
        driver(argv)
    except SystemExit as exit_:
        if exit_.code not in (None, 0):
            raise RuntimeError(f"Driver exited with status {exit_.code}") from exit_


def program_prefixes(driver: Driver) -> tuple[str, ...]:
    """Guess which module prefixes belong to the program-under-test."""
    module = getattr(driver, "__module__", None) or ""
    package = module.split(".")[0]
    if not package or package in (HARNESS_PACKAGE, "builtins", "__main__"):
        return ()
    return (package,)


def error_header(argv: Sequence[str], message: str) -> str:
    """Generates the header for debugging output when an error occurs."""
    lines = ["", "Error Message:", message, ""]
    lines.append(f"Arguments ({len(argv)}):")
    lines.append(" ".join(argv) if argv else "(none)")
    lines.append("")
    lines.append("Working Directory:")
    lines.append(Path.cwd().resolve().name)
    lines.append("")
    return "\n".join(lines) + "\n"


def _is_program_frame(module: str, prefixes: Sequence[str]) -> bool:
    if module == HARNESS_PACKAGE or module.startswith(HARNESS_PACKAGE + "."):
        return False
    if not prefixes:
        return True
    return any(module == p or module.startswith(p + ".") for p in prefixes)


def filtered_trace(thrown: BaseException, prefixes: Sequence[str] = ()) -> str:
    """Only keeps the most relevant parts of the stack trace.

    Frames from the harness are dropped, as are frames outside ``prefixes``
    when given. If nothing survives, the innermost frame is kept.
    """
    entries = list(traceback.walk_tb(thrown.__traceback__))
    summary = traceback.StackSummary.extract(entries)
    modules = [frame.f_globals.get("__name__", "") for frame, _ in entries]

    filtered = [
        frame for frame, module in zip(summary, modules)
        if _is_program_frame(module, prefixes)
    ]

    # make sure at least one line is displayed
    if not filtered and len(summary) > 0:
        filtered = [summary[-1]]

    text = f"{type(thrown).__name__}: {thrown}\n"
    return text + "".join(traceback.format_list(filtered))


def describe_failure(
    argv: Sequence[str],
    summary: str,
    thrown: BaseException,
    prefixes: Sequence[str] = (),
) -> str:
    """Full diagnostic for a failed invocation: header plus filtered trace."""
    return error_header(argv, summary) + "Error Details:\n" + filtered_trace(thrown, prefixes)


class Invoker:
    """Calls the program-under-test once, timing it with output suppressed."""

    def __init__(
        self,
        driver: Driver,
        suppress_output: bool = True,
        prefixes: Optional[Sequence[str]] = None,
    ):
        self.driver = driver
        self.suppress_output = suppress_output
        self.prefixes = tuple(prefixes) if prefixes is not None else program_prefixes(driver)

    def __call__(self, argv: Iterable[Optional[str]]) -> int:
        """Invoke the driver and return the elapsed whole milliseconds."""
        args = clean_args(argv)
        try:
            if self.suppress_output:
                with suppressed_output():
                    with timed("invoke") as timer:
                        call_driver(self.driver, args)
            else:
                with timed("invoke") as timer:
                    call_driver(self.driver, args)
        except Exception as e:
            message = describe_failure(args, "Unexpected exception while running driver.", e, self.prefixes)
            raise InvocationFailure(message, args) from e

        return timer.elapsed_millis
