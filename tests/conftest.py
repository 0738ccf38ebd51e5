"""Shared fixtures for the threadbench test suite."""

from pathlib import Path

import pytest

from threadbench.harness.runner import BenchmarkConfig


@pytest.fixture
def fast_config():
    """Few rounds and no console chatter."""
    return BenchmarkConfig(warmup_runs=1, num_runs=2, verbose=False)


@pytest.fixture
def output_dir(tmp_path) -> Path:
    return tmp_path / "actual"


@pytest.fixture
def write_file(tmp_path):
    """Write ``text`` to a file under tmp_path and return its path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        return path

    return _write
