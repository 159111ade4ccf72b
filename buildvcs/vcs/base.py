"""Backend contract shared by every VCS implementation.

A backend instance is bound to one source root. The shared driver in
`VCS.get_revisions` relativizes local paths, silences the client's stderr,
and turns the backend's raw answer into a `RevisionInfo`.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Optional, Pattern, Sequence, Union

from .. import config as vcs_config
from .. import fs
from ..process import ProcessResult, ProcessRunner, SubprocessRunner, suppress_stderr
from ..sinks import LineSink
from .errors import NotFoundError, ToolInvocationError
from .paths import PathLike, is_local_path, relative_to
from .timestamps import normalize

logger = logging.getLogger(__name__)


class BranchHandle:
    """Addressable reference to a branch or tag.

    For URL-based backends the value is a full URL; for git it is a ref
    name. Two handles are equal when their string forms are equal.
    """

    __slots__ = ("value",)

    def __init__(self, value: str) -> None:
        self.value = value

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"BranchHandle({self.value!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, BranchHandle):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)


Locator = Union[str, os.PathLike, BranchHandle, None]


@dataclass(frozen=True)
class RawRevisions:
    """Unnormalized revision data as extracted from client output.

    ``failure`` holds the result of the invocation that should have produced
    the revisions when that invocation failed.
    """

    last: Optional[str] = None
    changed: Optional[str] = None
    modified: Optional[str] = None
    branch: Optional[str] = None
    failure: Optional[ProcessResult] = None


@dataclass(frozen=True)
class RevisionInfo:
    last_revision: str
    changed_revision: str
    modified_timestamp: Optional[datetime] = None
    branch: Optional[str] = None


@dataclass(frozen=True)
class GrepMatch:
    """One matching line together with its regex match."""

    path: str
    line: str
    match: "re.Match[str]"

    def group(self, *groups: Union[int, str]) -> Any:
        return self.match.group(*groups)

    def groups(self) -> Sequence[Optional[str]]:
        return self.match.groups()


def compile_pattern(pattern: Union[str, Pattern[str]]) -> Pattern[str]:
    if isinstance(pattern, str):
        return re.compile(pattern)
    return pattern


class VCS:
    """Base backend.

    Subclasses set ``name`` and ``marker`` and implement the ``_raw_revisions``
    hook plus the branch, grep and export operations.
    """

    name = "none"
    marker: Optional[str] = None

    def __init__(
        self,
        srcdir: Optional[PathLike],
        runner: Optional[ProcessRunner] = None,
    ) -> None:
        self.srcdir = srcdir
        self.runner = runner if runner is not None else SubprocessRunner()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.srcdir!r})"

    # --- revision queries ---

    def get_revisions(self, path: Locator = None) -> RevisionInfo:
        """Last revision, revision that last changed ``path``, its date and branch.

        Args:
            path: Local path (relativized against the source root), a
                BranchHandle or URL passed through unchanged, or None for the
                whole working copy

        Returns:
            RevisionInfo with normalized timestamp

        Raises:
            NotFoundError: If the last or changed revision is missing
            ToolInvocationError: If they are missing because the client failed
            FormatError: If the reported date cannot be parsed
        """
        if is_local_path(path) and self.srcdir is not None:
            path = relative_to(self.srcdir, path)

        with suppress_stderr():
            raw = self._raw_revisions(path)
        logger.debug("Raw revisions for %s in %s: %s", path, self.srcdir, raw)

        if raw.last is None:
            self._not_found("last revision not found", raw)
        if raw.changed is None:
            self._not_found("changed revision not found", raw)

        modified = normalize(raw.modified) if raw.modified else None
        return RevisionInfo(
            last_revision=raw.last,
            changed_revision=raw.changed,
            modified_timestamp=modified,
            branch=raw.branch,
        )

    @staticmethod
    def _not_found(message: str, raw: RawRevisions) -> None:
        if raw.failure is not None:
            raise ToolInvocationError(
                f"{message}: {' '.join(raw.failure.argv)} exited with {raw.failure.returncode}",
                argv=raw.failure.argv,
                returncode=raw.failure.returncode,
            )
        raise NotFoundError(message)

    def _raw_revisions(self, path: Locator) -> RawRevisions:  # pragma: no cover - abstract
        raise NotImplementedError

    # --- branch addressing ---

    def branch(self, name: str) -> BranchHandle:  # pragma: no cover - abstract
        raise NotImplementedError

    def tag(self, name: str) -> BranchHandle:
        return self.branch(name)

    def trunk(self) -> BranchHandle:  # pragma: no cover - abstract
        raise NotImplementedError

    def branch_list(self, pattern: str) -> Iterator[str]:  # pragma: no cover - abstract
        raise NotImplementedError

    # --- content ---

    def grep(
        self,
        pattern: Union[str, Pattern[str]],
        tag: Optional[BranchHandle],
        *files: str,
    ) -> Iterator[GrepMatch]:  # pragma: no cover - abstract
        raise NotImplementedError

    def _scan(self, argv: Sequence[str], regex: Pattern[str], path: str) -> Iterator[GrepMatch]:
        """Run ``argv`` and yield its output lines that match ``regex``."""
        with self.runner.stream(argv, cwd=self.srcdir) as lines:
            for line in lines:
                found = regex.search(line)
                if found:
                    yield GrepMatch(path=path, line=line, match=found)

    # --- export ---

    def export(
        self,
        revision: Optional[str],
        url: Union[str, BranchHandle],
        dest_dir: PathLike,
        keep_temp: Optional[bool] = None,
        sink: Optional[LineSink] = None,
    ) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError

    @staticmethod
    def _keep_temp(keep_temp: Optional[bool]) -> bool:
        return vcs_config.keep_temp() if keep_temp is None else keep_temp

    def after_export(self, dest_dir: PathLike) -> None:
        """Remove this backend's bookkeeping directory from an export result."""
        if self.marker:
            fs.rm_rf(os.path.join(dest_dir, self.marker))
