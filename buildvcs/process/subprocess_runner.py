from __future__ import annotations

import contextlib
import logging
import os
import subprocess
import sys
from typing import Dict, Iterator, Optional, Sequence

from .. import config as vcs_config
from .interface import PathLike, ProcessResult

logger = logging.getLogger(__name__)

# Exit status reported when the executable cannot be started at all,
# matching what a shell reports for "command not found".
NOT_FOUND_STATUS = 127


def _child_environment() -> Dict[str, str]:
    # Children always get an explicit cwd; PWD must not contradict it
    env = dict(os.environ)
    env.pop("PWD", None)
    return env


class _PipeLineStream:
    """LineStream over the stdout pipe of a Popen object."""

    def __init__(self, proc: Optional[subprocess.Popen]) -> None:
        self._proc = proc
        self.returncode: Optional[int] = None if proc is not None else NOT_FOUND_STATUS

    def __iter__(self) -> Iterator[str]:
        if self._proc is None or self._proc.stdout is None:
            return
        for line in self._proc.stdout:
            yield line.rstrip("\n")

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def close(self) -> None:
        if self._proc is None:
            return
        if self._proc.stdout is not None:
            self._proc.stdout.close()
        self.returncode = self._proc.wait()


class SubprocessRunner:
    """ProcessRunner implementation on top of the subprocess module.

    Boundary rules:
    - Only this module starts external processes.
    - Backends depend on the `ProcessRunner` protocol, never on subprocess.
    """

    def __init__(
        self,
        *,
        timeout: Optional[int] = None,
        trace: Optional[bool] = None,
    ) -> None:
        if timeout is None:
            timeout = vcs_config.command_timeout()
        self._timeout = timeout if timeout and timeout > 0 else None
        self._trace = vcs_config.trace_commands() if trace is None else trace

    def _log_command(self, argv: Sequence[str], cwd: Optional[PathLike]) -> None:
        level = logging.INFO if self._trace else logging.DEBUG
        logger.log(level, "Running %s (cwd=%s)", list(argv), cwd or os.getcwd())

    def run(self, argv: Sequence[str], cwd: Optional[PathLike] = None) -> ProcessResult:
        self._log_command(argv, cwd)
        try:
            completed = subprocess.run(
                list(argv),
                cwd=cwd,
                env=_child_environment(),
                stdout=subprocess.PIPE,
                text=True,
                errors="replace",
                timeout=self._timeout,
            )
        except FileNotFoundError as exc:
            logger.warning("Cannot run %s: %s", argv[0], exc)
            return ProcessResult(argv=tuple(argv), returncode=NOT_FOUND_STATUS)
        except subprocess.TimeoutExpired as exc:
            logger.warning("Command %s timed out after %ss", list(argv), exc.timeout)
            stdout = exc.stdout or ""
            if isinstance(stdout, bytes):
                stdout = stdout.decode("utf-8", errors="replace")
            return ProcessResult(argv=tuple(argv), returncode=-9, stdout=stdout)

        logger.debug("Command %s exited with %d", argv[0], completed.returncode)
        return ProcessResult(
            argv=tuple(argv),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
        )

    @contextlib.contextmanager
    def stream(
        self,
        argv: Sequence[str],
        cwd: Optional[PathLike] = None,
        merge_stderr: bool = False,
    ) -> Iterator[_PipeLineStream]:
        self._log_command(argv, cwd)
        try:
            proc: Optional[subprocess.Popen] = subprocess.Popen(
                list(argv),
                cwd=cwd,
                env=_child_environment(),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else None,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as exc:
            logger.warning("Cannot run %s: %s", argv[0], exc)
            proc = None

        lines = _PipeLineStream(proc)
        try:
            yield lines
        finally:
            lines.close()
            logger.debug("Command %s exited with %s", argv[0], lines.returncode)


@contextlib.contextmanager
def suppress_stderr() -> Iterator[None]:
    """Point file descriptor 2 at the null device for the duration of the block.

    Child processes inherit the redirected descriptor. The original stream is
    restored on exit, including when the block raises.
    """
    try:
        sys.stderr.flush()
    except (AttributeError, ValueError):
        pass
    saved = os.dup(2)
    try:
        with open(os.devnull, "w") as null:
            os.dup2(null.fileno(), 2)
        yield
    finally:
        try:
            sys.stderr.flush()
        except (AttributeError, ValueError):
            pass
        os.dup2(saved, 2)
        os.close(saved)
