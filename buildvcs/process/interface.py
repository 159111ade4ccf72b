from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import ContextManager, Iterator, Optional, Protocol, Sequence, Tuple, Union

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of a blocking tool invocation.

    - argv: command that was run
    - returncode: exit status (127 when the executable could not be started)
    - stdout: whole captured standard output, decoded as text
    """

    argv: Tuple[str, ...]
    returncode: int
    stdout: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class LineStream(Protocol):
    """Lines of a running tool's output, read as they are produced.

    ``returncode`` is None until the stream has been closed (which waits
    for the process).
    """

    returncode: Optional[int]

    def __iter__(self) -> Iterator[str]:  # pragma: no cover - protocol
        ...

    @property
    def success(self) -> bool:  # pragma: no cover - protocol
        ...


class ProcessRunner(Protocol):
    """Abstract process execution used by the VCS backends.

    Implementations never raise for a non-zero exit; status is reported in
    the result so callers decide what a failure means.
    """

    def run(
        self,
        argv: Sequence[str],
        cwd: Optional[PathLike] = None,
    ) -> ProcessResult:  # pragma: no cover - protocol
        """Run to completion and capture stdout."""
        ...

    def stream(
        self,
        argv: Sequence[str],
        cwd: Optional[PathLike] = None,
        merge_stderr: bool = False,
    ) -> ContextManager[LineStream]:  # pragma: no cover - protocol
        """Start a process and yield its output line by line.

        Leaving the context closes the pipe and waits for the process, so
        ``returncode`` is set afterwards even if iteration stopped early.
        """
        ...


class ProcessError(RuntimeError):
    """Raised when a caller requires a tool invocation to succeed."""

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str] = (),
        returncode: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.argv = tuple(argv)
        self.returncode = returncode
        self.__cause__ = cause


def check(result: ProcessResult) -> ProcessResult:
    """Return ``result`` unchanged, raising ProcessError if it failed."""
    if not result.success:
        raise ProcessError(
            f"command failed with exit status {result.returncode}: {' '.join(result.argv)}",
            argv=result.argv,
            returncode=result.returncode,
        )
    return result
