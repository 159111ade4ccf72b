"""Shared fixtures for buildvcs tests."""

from __future__ import annotations

import contextlib
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import pytest

from buildvcs import config as vcs_config
from buildvcs import vcs
from buildvcs.process import ProcessResult


class ScriptedStream:
    def __init__(self, lines: Sequence[str], returncode: int) -> None:
        self._lines = list(lines)
        self._final = returncode
        self.returncode: Optional[int] = None
        self.consumed = 0

    def __iter__(self) -> Iterator[str]:
        for line in self._lines:
            self.consumed += 1
            yield line

    @property
    def success(self) -> bool:
        return self.returncode == 0


class ScriptedRunner:
    """ProcessRunner double answering commands from a table keyed by argv."""

    def __init__(self, default_returncode: int = 0) -> None:
        self.responses: Dict[Tuple[str, ...], Tuple[str, int]] = {}
        self.calls: List[Tuple[Tuple[str, ...], Optional[str]]] = []
        self.streams: List[ScriptedStream] = []
        self.default_returncode = default_returncode

    def add(self, argv: Sequence[str], stdout: str = "", returncode: int = 0) -> None:
        self.responses[tuple(str(a) for a in argv)] = (stdout, returncode)

    def _lookup(self, argv: Sequence[str]) -> Tuple[str, int]:
        return self.responses.get(tuple(argv), ("", self.default_returncode))

    def run(self, argv, cwd=None) -> ProcessResult:
        self.calls.append((tuple(argv), None if cwd is None else str(cwd)))
        stdout, returncode = self._lookup(argv)
        return ProcessResult(argv=tuple(argv), returncode=returncode, stdout=stdout)

    @contextlib.contextmanager
    def stream(self, argv, cwd=None, merge_stderr=False):
        self.calls.append((tuple(argv), None if cwd is None else str(cwd)))
        stdout, returncode = self._lookup(argv)
        lines = ScriptedStream(stdout.splitlines(), returncode)
        self.streams.append(lines)
        try:
            yield lines
        finally:
            lines.returncode = returncode

    def argvs(self) -> List[Tuple[str, ...]]:
        return [argv for argv, _ in self.calls]


@pytest.fixture
def runner() -> ScriptedRunner:
    return ScriptedRunner()


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Run every test against built-in defaults."""
    for key in (
        "BUILDVCS_CONFIG",
        "BUILDVCS_SVN_COMMAND",
        "BUILDVCS_GIT_COMMAND",
        "BUILDVCS_BACKEND_ORDER",
        "BUILDVCS_STABLE_BRANCH_PREFIX",
        "BUILDVCS_KEEP_TEMP",
        "BUILDVCS_TEMP_PREFIX",
        "BUILDVCS_COMMAND_TIMEOUT",
        "BUILDVCS_TRACE_COMMANDS",
    ):
        monkeypatch.delenv(key, raising=False)
    vcs_config.reset_config()
    vcs.reset_registry()
    yield
    vcs_config.reset_config()
    vcs.reset_registry()
