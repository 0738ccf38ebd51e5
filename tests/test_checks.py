"""Tests for timeouts, output verification and the thread failure hook."""

import threading
import time

import pytest

import drivers
from threadbench.harness import checks
from threadbench.harness.checks import (
    OutputPaths,
    assert_file_exists,
    assert_multiple,
    assert_no_exceptions,
    check_output,
    check_uncaught,
    delete_files,
    install_uncaught_handler,
    run_with_timeout,
    setup_environment,
)
from threadbench.harness.errors import ComparisonMismatch, HarnessTimeout, InvocationFailure


class TestRunWithTimeout:
    def test_returns_value(self):
        assert run_with_timeout(lambda a, b=0: a + b, 1.0, 2, b=3) == 5

    def test_gives_up_after_timeout(self):
        start = time.monotonic()
        with pytest.raises(HarnessTimeout) as info:
            run_with_timeout(time.sleep, 0.1, 1.0)

        assert time.monotonic() - start < 0.9
        assert info.value.timeout == 0.1
        assert str(info.value) == "sleep timed out after 0.1s"

    def test_propagates_errors(self):
        def fail():
            raise KeyError("missing")

        with pytest.raises(KeyError):
            run_with_timeout(fail, 1.0)

    def test_own_timeout_error_is_not_a_harness_timeout(self):
        def fail():
            raise TimeoutError("socket")

        with pytest.raises(TimeoutError) as info:
            run_with_timeout(fail, 5.0)

        assert not isinstance(info.value, HarnessTimeout)


def test_assert_no_exceptions_shows_output(capsys):
    elapsed = assert_no_exceptions(drivers.noisy_driver, ["-text", "", "input"], timeout=5)

    assert elapsed >= 0
    out = capsys.readouterr().out
    assert "Running driver -text input..." in out
    assert "indexing -text input" in out


def test_assert_no_exceptions_failure():
    with pytest.raises(InvocationFailure):
        assert_no_exceptions(drivers.failing_driver, ["-text"], timeout=5)


def test_assert_no_exceptions_timeout():
    with pytest.raises(HarnessTimeout):
        assert_no_exceptions(drivers.sleeping_driver, [], timeout=0.01)


class TestCheckOutput:
    def test_matching_output_is_cleaned_up(self, tmp_path, write_file):
        expected = write_file("expected/index.txt", "alpha\nbeta\n")
        actual = tmp_path / "actual" / "nested" / "index.txt"

        check_output(drivers.writing_driver, [str(actual), "alpha", "beta"], {actual: expected}, timeout=5)

        assert not actual.exists()

    def test_stale_actual_file_is_replaced(self, tmp_path, write_file):
        expected = write_file("expected/index.txt", "fresh\n")
        actual = write_file("actual/index.txt", "stale\n")

        check_output(drivers.writing_driver, [str(actual), "fresh"], {actual: expected}, timeout=5)

        assert not actual.exists()

    def test_mismatch_keeps_actual_file(self, tmp_path, write_file):
        expected = write_file("expected/index.txt", "alpha\nbeta\n")
        actual = tmp_path / "actual" / "index.txt"

        with pytest.raises(ComparisonMismatch) as info:
            check_output(drivers.writing_driver, [str(actual), "alpha", "BETA"], {actual: expected}, timeout=5)

        assert actual.exists()
        message = str(info.value)
        assert "Found error(s) while comparing file output." in message
        assert "Error Details (1):" in message
        assert "Unexpected output on line 2" in message
        assert f"at {actual} and" in message

    def test_missing_expected_file(self, tmp_path):
        actual = tmp_path / "actual" / "index.txt"
        expected = tmp_path / "expected" / "index.txt"

        with pytest.raises(ComparisonMismatch, match="Unable to read expected output file"):
            check_output(drivers.writing_driver, [str(actual), "x"], {actual: expected}, timeout=5)

    def test_missing_actual_file(self, tmp_path, write_file):
        expected = write_file("expected/index.txt", "x\n")
        actual = tmp_path / "actual" / "index.txt"

        with pytest.raises(ComparisonMismatch, match="Unable to read actual output file"):
            check_output(drivers.main, [], {actual: expected}, timeout=5)

    def test_every_mismatch_is_reported(self, tmp_path, write_file):
        expected1 = write_file("expected/a.txt", "a\n")
        expected2 = write_file("expected/b.txt", "b\n")
        actual1 = tmp_path / "actual" / "a.txt"
        actual2 = tmp_path / "actual" / "b.txt"

        with pytest.raises(ComparisonMismatch) as info:
            check_output(drivers.main, [], {actual1: expected1, actual2: expected2}, timeout=5)

        assert "Error Details (2):" in str(info.value)


def test_assert_multiple_runs_every_check():
    calls = []

    def ok():
        calls.append("ok")

    def broken():
        calls.append("broken")
        raise AssertionError("first problem")

    def crashing():
        calls.append("crashing")
        raise RuntimeError("second problem")

    with pytest.raises(AssertionError) as info:
        assert_multiple([broken, ok, crashing], ["-text"], "Checks failed.")

    assert calls == ["broken", "ok", "crashing"]
    message = str(info.value)
    assert "Error Message:\nChecks failed." in message
    assert "Error Details (2):" in message
    assert "first problem" in message
    assert "RuntimeError: second problem" in message


def test_assert_multiple_passes_silently():
    assert_multiple([lambda: None, lambda: None], [], "unused")


def test_assert_file_exists(tmp_path):
    path = tmp_path / "index.json"

    assert_file_exists(path, "-index", exists=False)()
    with pytest.raises(AssertionError, match="Always create"):
        assert_file_exists(path, "-index")()

    path.write_text("{}")
    assert_file_exists(path, "-index")()
    with pytest.raises(AssertionError, match="Never create"):
        assert_file_exists(path, "-index", exists=False)()


def test_delete_files(tmp_path, write_file):
    write_file("actual/a.txt", "a")
    write_file("actual/sub/b.txt", "b")

    assert delete_files(tmp_path / "actual") == 2
    assert (tmp_path / "actual" / "sub").is_dir()
    assert not any(p.is_file() for p in (tmp_path / "actual").rglob("*"))


@pytest.fixture
def isolated_hook(monkeypatch):
    """Keeps the thread failure hook from leaking between tests."""
    monkeypatch.setattr(threading, "excepthook", lambda args: None)
    monkeypatch.setattr(checks, "_previous_hook", None)
    checks.UNCAUGHT.clear()
    yield
    checks.UNCAUGHT.clear()


class TestSetupEnvironment:
    def make_paths(self, tmp_path):
        for name in ("input", "expected"):
            (tmp_path / name).mkdir()
        return OutputPaths(tmp_path)

    def test_cleans_actual_directory(self, tmp_path, write_file, isolated_hook, monkeypatch):
        monkeypatch.delenv("SKIP_ACTUAL_CLEANUP", raising=False)
        paths = self.make_paths(tmp_path)
        write_file("actual/old.txt", "old")

        assert setup_environment(paths) == 1
        assert threading.excepthook is checks._record_uncaught

    def test_skip_cleanup(self, tmp_path, write_file, isolated_hook, monkeypatch):
        monkeypatch.setenv("SKIP_ACTUAL_CLEANUP", "1")
        paths = self.make_paths(tmp_path)
        old = write_file("actual/old.txt", "old")

        assert setup_environment(paths) == 0
        assert old.exists()

    def test_creates_actual_directory(self, tmp_path, isolated_hook):
        paths = self.make_paths(tmp_path)
        setup_environment(paths)
        assert paths.actual_dir.is_dir()

    def test_missing_input_directory(self, tmp_path, isolated_hook):
        with pytest.raises(FileNotFoundError, match="Unable to access"):
            setup_environment(OutputPaths(tmp_path))

    def test_missing_expected_directory(self, tmp_path, isolated_hook):
        (tmp_path / "input").mkdir()
        with pytest.raises(FileNotFoundError):
            setup_environment(OutputPaths(tmp_path))


def test_output_paths_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("THREADBENCH_ROOT", str(tmp_path))
    monkeypatch.setenv("THREADBENCH_EXPECTED_DIR", str(tmp_path / "golden"))
    monkeypatch.delenv("THREADBENCH_INPUT_DIR", raising=False)
    monkeypatch.delenv("THREADBENCH_ACTUAL_DIR", raising=False)

    paths = OutputPaths.from_env()

    assert paths.input_dir == tmp_path / "input"
    assert paths.expected_dir == tmp_path / "golden"
    assert paths.actual_dir == tmp_path / "actual"


def test_uncaught_thread_exceptions_are_recorded(isolated_hook):
    install_uncaught_handler()

    def crash():
        raise RuntimeError("worker died")

    worker = threading.Thread(target=crash, name="search-worker-9")
    worker.start()
    worker.join()

    with pytest.raises(AssertionError) as info:
        check_uncaught()

    assert "Thread search-worker-9 threw an exception: RuntimeError: worker died" in str(info.value)
    check_uncaught()
