"""Tests for the command line entry point."""

import pytest

from threadbench.main import main


def test_diff_match(write_file, capsys):
    first = write_file("a.txt", "x\ny\n")
    second = write_file("b.txt", "x  \ny\n\n")

    assert main(["diff", str(first), str(second)]) == 0
    assert "Files match (3 comparisons)" in capsys.readouterr().out


def test_diff_mismatch(write_file, capsys):
    first = write_file("a.txt", "x\ny\n")
    second = write_file("b.txt", "x\nz\n")

    assert main(["diff", str(first), str(second)]) == 1
    assert "Unexpected output on line 2" in capsys.readouterr().out


def test_diff_missing_file(tmp_path, capsys):
    assert main(["diff", str(tmp_path / "a.txt"), str(tmp_path / "b.txt")]) == 1
    assert "Error:" in capsys.readouterr().out


def compare_args(output_dir, *extra):
    return [
        "compare", "Sleep",
        "--driver", "drivers:sleeping_driver",
        "--args1", "-text input",
        "--args2", "-text input -threads 3",
        "--warmup", "0",
        "--runs", "2",
        "--output-dir", str(output_dir),
        *extra,
    ]


def test_compare_writes_reports(output_dir, capsys):
    assert main(compare_args(output_dir, "--target", "1.1", "--json")) == 0

    out = capsys.readouterr().out
    assert "## Testing Sleep - Single versus 3 Workers" in out
    assert "Speedup band:" in out
    assert (output_dir / "bench-sleep-single.txt").exists()
    assert (output_dir / "bench-sleep-single.json").exists()


def test_compare_below_target(output_dir, capsys):
    assert main(compare_args(output_dir, "--target", "10")) == 1
    assert "less than the 10.0x required" in capsys.readouterr().out


def test_compare_bad_driver(output_dir, capsys):
    assert main(["compare", "X", "--driver", "drivers:NOT_CALLABLE", "--output-dir", str(output_dir)]) == 1
    assert "is not callable" in capsys.readouterr().out


def test_detect_threaded_driver(capsys):
    argv = ["detect", "--driver", "drivers:threaded_driver", "--args", "-threads 2", "--poll-interval", "0.05"]
    assert main(argv) == 0
    assert "search-worker-1" in capsys.readouterr().out


def test_detect_without_threads(capsys):
    argv = ["detect", "--driver", "drivers:sleeping_driver", "--poll-interval", "0.01"]
    assert main(argv) == 1
    assert "Unable to detect any worker threads" in capsys.readouterr().out


def test_driver_is_required():
    with pytest.raises(SystemExit):
        main(["compare", "Search"])
