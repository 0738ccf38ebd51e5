#!/usr/bin/env python3
"""
threadbench - Main entry point for checking a program-under-test.

Usage:
    threadbench [command] [options]

Commands:
    compare     - Benchmark two argument sets and report the speedup
    detect      - Check that a driver starts worker threads
    diff        - Compare two text files, ignoring trailing whitespace
"""

import argparse
import shlex
import sys
from pathlib import Path

from dotenv import load_dotenv

from threadbench.harness.checks import run_with_timeout
from threadbench.harness.comparator import Comparator, assert_speedup, classify_speedup
from threadbench.harness.detector import ThreadActivityDetector
from threadbench.harness.differ import compare_files
from threadbench.harness.errors import HarnessTimeout
from threadbench.harness.invoker import CommandDriver, Invoker, load_driver
from threadbench.harness.reporter import ChartReporter, JSONReporter
from threadbench.harness.runner import BenchmarkConfig
from threadbench.instrumentation.traces import init_tracing, shutdown_tracing


def resolve_driver(args):
    """Build the driver named on the command line."""
    if args.driver:
        return load_driver(args.driver)
    return CommandDriver(args.command)


def run_compare(args) -> int:
    """Benchmark two argument sets against each other."""
    overrides = {}
    if args.warmup is not None:
        overrides["warmup_runs"] = args.warmup
    if args.runs is not None:
        overrides["num_runs"] = args.runs
    config = BenchmarkConfig.from_env(**overrides)

    comparator = Comparator(resolve_driver(args), args.output_dir, config)
    try:
        result = run_with_timeout(
            comparator.run,
            config.long_timeout,
            args.name,
            args.label1,
            shlex.split(args.args1),
            args.label2,
            shlex.split(args.args2),
        )
    except HarnessTimeout:
        comparator.cancel()
        raise

    print(f"Report: {result.path}")
    print(f"Speedup band: {classify_speedup(result.speedup)}")

    if args.json:
        print(f"JSON: {JSONReporter(args.output_dir).save_comparison(result)}")
    if args.chart:
        print(f"Chart: {ChartReporter(args.output_dir).round_chart(result)}")

    if args.target is not None:
        assert_speedup(result.speedup, args.target, args.workers, args.label1)
    return 0


def run_detect(args) -> int:
    """Run the driver once and check that it started worker threads."""
    if args.command:
        print("Warning: worker threads of a separate process cannot be observed")

    driver = resolve_driver(args)
    invoker = Invoker(driver, suppress_output=not args.show_output)
    argv = shlex.split(args.args)

    detector = ThreadActivityDetector(poll_interval=args.poll_interval)
    detector.assert_multithreaded(lambda: invoker(argv), timeout=args.timeout)
    return 0


def run_diff(args) -> int:
    """Compare two files line by line."""
    count = compare_files(args.file1, args.file2)
    if count <= 0:
        print(f"Unexpected output on line {-count}")
        print(f"\tat {args.file1} and")
        print(f"\tat {args.file2}")
        return 1
    print(f"Files match ({count} comparisons)")
    return 0


def add_driver_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--driver",
        help="In-process driver as package.module:function (default function: main)",
    )
    group.add_argument(
        "--command",
        help="External command to run as the driver, e.g. 'java -jar search.jar'",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="threadbench",
        description="threadbench - Benchmark and check a multithreaded program",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    threadbench compare Search --driver search.driver:main \\
        --args1 "-text input -query q.txt" --args2 "-text input -query q.txt -threads 3"
    threadbench detect --driver search.driver --args "-text input -threads 2"
    threadbench diff actual/index.json expected/index.json
        """,
    )
    commands = parser.add_subparsers(dest="command_name", required=True)

    compare = commands.add_parser("compare", help="Benchmark two argument sets")
    compare.add_argument("name", help="Scenario name, used for the report file name")
    add_driver_arguments(compare)
    compare.add_argument("--label1", default="Single", help="Label of the first argument set (default: Single)")
    compare.add_argument("--label2", default="3 Workers", help="Label of the second argument set (default: 3 Workers)")
    compare.add_argument("--args1", default="", help="First argument set, shell quoted")
    compare.add_argument("--args2", default="", help="Second argument set, shell quoted")
    compare.add_argument("--warmup", type=int, default=None, help="Number of warmup runs")
    compare.add_argument("--runs", type=int, default=None, help="Number of timed runs")
    compare.add_argument("--target", type=float, default=None, help="Fail if the speedup is below this value")
    compare.add_argument("--workers", type=int, default=3, help="Worker count named in failure messages (default: 3)")
    compare.add_argument(
        "--output-dir",
        type=Path,
        default=Path("actual"),
        help="Directory to save reports (default: actual/)",
    )
    compare.add_argument("--json", action="store_true", help="Also save the comparison as JSON")
    compare.add_argument("--chart", action="store_true", help="Also save a per-round chart")

    detect = commands.add_parser("detect", help="Check that a driver starts worker threads")
    add_driver_arguments(detect)
    detect.add_argument("--args", default="", help="Argument set, shell quoted")
    detect.add_argument("--poll-interval", type=float, default=0.2, help="Seconds between samples (default: 0.2)")
    detect.add_argument("--timeout", type=float, default=None, help="Seconds before giving up (default: 300)")
    detect.add_argument("--show-output", action="store_true", help="Do not suppress driver output")

    diff = commands.add_parser("diff", help="Compare two text files")
    diff.add_argument("file1", type=Path)
    diff.add_argument("file2", type=Path)

    return parser


def main(argv=None) -> int:
    # Load environment variables from .env file
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    # Map commands to functions
    commands = {
        "compare": run_compare,
        "detect": run_detect,
        "diff": run_diff,
    }

    init_tracing()
    try:
        return commands[args.command_name](args)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1
    except (AssertionError, TimeoutError, OSError, ValueError, ImportError) as e:
        print(f"\nError: {e}")
        return 1
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    sys.exit(main())
