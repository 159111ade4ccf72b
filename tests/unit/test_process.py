"""Unit tests for the subprocess-backed process runner."""

from __future__ import annotations

import os
import sys

import pytest

from buildvcs.process import (
    NOT_FOUND_STATUS,
    ProcessError,
    ProcessResult,
    SubprocessRunner,
    check,
    suppress_stderr,
)


def py(code):
    return [sys.executable, "-c", code]


class TestSubprocessRunner:
    """Test SubprocessRunner.run() and stream()."""

    def test_run_captures_stdout(self):
        result = SubprocessRunner().run(py("print('hello')"))
        assert result.success is True
        assert result.stdout == "hello\n"
        assert result.argv[0] == sys.executable

    def test_run_reports_exit_status(self):
        result = SubprocessRunner().run(py("import sys; sys.exit(3)"))
        assert result.success is False
        assert result.returncode == 3

    def test_run_in_directory(self, tmp_path):
        result = SubprocessRunner().run(py("import os; print(os.getcwd())"), cwd=tmp_path)
        assert os.path.realpath(result.stdout.strip()) == os.path.realpath(tmp_path)

    def test_pwd_not_inherited(self, monkeypatch):
        monkeypatch.setenv("PWD", "/somewhere/else")
        result = SubprocessRunner().run(py("import os; print(os.environ.get('PWD', 'unset'))"))
        assert result.stdout.strip() == "unset"

    def test_missing_executable(self):
        result = SubprocessRunner().run(["buildvcs-no-such-tool-xyz", "--version"])
        assert result.returncode == NOT_FOUND_STATUS
        assert result.stdout == ""

    def test_timeout(self):
        result = SubprocessRunner(timeout=1).run(py("import time; time.sleep(30)"))
        assert result.success is False

    def test_timeout_from_config(self, monkeypatch):
        monkeypatch.setenv("BUILDVCS_COMMAND_TIMEOUT", "7")
        assert SubprocessRunner()._timeout == 7

    def test_stream_lines_and_status(self):
        runner = SubprocessRunner()
        with runner.stream(py("print('a'); print('b'); raise SystemExit(2)")) as lines:
            assert list(lines) == ["a", "b"]
        assert lines.returncode == 2
        assert lines.success is False

    def test_stream_merge_stderr(self):
        code = "import sys; sys.stderr.write('warn\\n'); sys.stderr.flush()"
        with SubprocessRunner().stream(py(code), merge_stderr=True) as lines:
            assert list(lines) == ["warn"]
        assert lines.success is True

    def test_stream_stopped_early(self):
        code = "import sys\nfor i in range(100000):\n    print(i)\n"
        with SubprocessRunner().stream(py(code)) as lines:
            for line in lines:
                assert line == "0"
                break
        assert lines.returncode is not None

    def test_stream_missing_executable(self):
        with SubprocessRunner().stream(["buildvcs-no-such-tool-xyz"]) as lines:
            assert list(lines) == []
        assert lines.returncode == NOT_FOUND_STATUS


class TestCheck:
    def test_passes_success_through(self):
        result = ProcessResult(argv=("true",), returncode=0)
        assert check(result) is result

    def test_raises_on_failure(self):
        with pytest.raises(ProcessError) as excinfo:
            check(ProcessResult(argv=("svn", "info"), returncode=1))
        assert excinfo.value.returncode == 1
        assert excinfo.value.argv == ("svn", "info")


class TestSuppressStderr:
    """Test the scoped stderr redirection."""

    def test_child_stderr_discarded(self, capfd):
        runner = SubprocessRunner()
        with suppress_stderr():
            runner.run(py("import sys; sys.stderr.write('noise\\n')"))
        runner.run(py("import sys; sys.stderr.write('signal\\n')"))
        captured = capfd.readouterr()
        assert "noise" not in captured.err
        assert "signal" in captured.err

    def test_restored_after_exception(self, capfd):
        before = os.fstat(2)
        with pytest.raises(RuntimeError):
            with suppress_stderr():
                raise RuntimeError("boom")
        after = os.fstat(2)
        assert (before.st_dev, before.st_ino) == (after.st_dev, after.st_ino)
        os.write(2, b"still here\n")
        assert "still here" in capfd.readouterr().err
