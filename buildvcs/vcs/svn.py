"""Subversion backend.

Revisions are the repository's sequential revision numbers. Branches and
tags are URLs under the repository root (``branches/<name>``,
``tags/<name>``, ``trunk``).
"""

from __future__ import annotations

import logging
import os
import posixpath
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, Optional, Pattern, Union

from .. import config as vcs_config
from .. import fs
from ..process import ProcessResult, ProcessRunner
from ..sinks import LineSink
from .base import VCS, BranchHandle, GrepMatch, Locator, RawRevisions, compile_pattern
from .errors import NotFoundError
from .paths import PathLike, is_local_path

logger = logging.getLogger(__name__)

BRANCH_RE = re.compile(r"\A\^/(?:branches/|tags/)?(.+)\Z")


@dataclass(frozen=True)
class SvnInfo:
    """Fields of interest from ``svn info --xml``."""

    revision: Optional[str] = None
    commit_revision: Optional[str] = None
    date: Optional[str] = None
    url: Optional[str] = None
    relative_url: Optional[str] = None
    root: Optional[str] = None
    wcroot: Optional[str] = None

    @property
    def branch(self) -> Optional[str]:
        if not self.relative_url:
            return None
        match = BRANCH_RE.match(self.relative_url)
        return match.group(1) if match else None

    @classmethod
    def from_xml(cls, text: str) -> "SvnInfo":
        """Parse client output; empty or malformed output gives an empty SvnInfo."""
        if not text.strip():
            return cls()
        try:
            document = ET.fromstring(text)
        except ET.ParseError as exc:
            logger.warning("Unparsable svn info output: %s", exc)
            return cls()

        entry = document.find("entry")
        if entry is None:
            return cls()
        commit = entry.find("commit")
        return cls(
            revision=entry.get("revision"),
            commit_revision=commit.get("revision") if commit is not None else None,
            date=entry.findtext("commit/date"),
            url=entry.findtext("url"),
            relative_url=entry.findtext("relative-url"),
            root=entry.findtext("repository/root"),
            wcroot=entry.findtext("wc-info/wcroot-abspath"),
        )


def search_root(path: PathLike) -> Optional[str]:
    """Nearest directory at or above ``path`` holding a ``.svn`` directory."""
    parent = fs.canonical(path)
    while True:
        wkdir = parent
        if os.path.isdir(os.path.join(wkdir, SVN.marker)):
            return wkdir
        parent = os.path.dirname(wkdir)
        if parent == wkdir:
            return None


class SVN(VCS):
    name = "svn"
    marker = ".svn"

    def __init__(
        self,
        srcdir: Optional[PathLike],
        runner: Optional[ProcessRunner] = None,
    ) -> None:
        super().__init__(srcdir, runner=runner)
        self.command = vcs_config.svn_command()
        self._info: Optional[SvnInfo] = None
        self._url: Optional[str] = None
        self._wcroot: Optional[str] = None

    def _info_result(self, location: Union[str, PathLike]) -> ProcessResult:
        return self.runner.run([self.command, "info", "--xml", os.fspath(location)])

    # --- revision queries ---

    def _raw_revisions(self, path: Locator) -> RawRevisions:
        remote = path is not None and not is_local_path(path)
        if remote:
            location = str(path)
        elif path is None:
            location = os.fspath(self.srcdir) if self.srcdir is not None else "."
        elif self.srcdir is not None:
            location = os.path.join(self.srcdir, path)
        else:
            location = os.fspath(path)

        info = None
        result = None
        if self.srcdir is not None and remote:
            # The working copy may already be checked out from that URL
            result = self._info_result(self.srcdir)
            info = SvnInfo.from_xml(result.stdout)
            if info.url != location:
                info = None
        if info is None:
            result = self._info_result(location)
            info = SvnInfo.from_xml(result.stdout)

        return RawRevisions(
            last=info.revision,
            changed=info.commit_revision,
            modified=info.date,
            branch=info.branch,
            failure=None if result.success else result,
        )

    def get_info(self) -> SvnInfo:
        """Cached ``svn info`` of the source root."""
        if self._info is None:
            self._info = SvnInfo.from_xml(self._info_result(self.srcdir or ".").stdout)
        return self._info

    def url(self) -> Optional[str]:
        """Repository root URL with a trailing slash."""
        if self._url is None:
            root = self.get_info().root
            if root:
                self._url = root.rstrip("/") + "/"
        return self._url

    def wcroot(self) -> Optional[str]:
        """Top directory of the working copy holding the source root."""
        if self._wcroot is None:
            self._wcroot = self.get_info().wcroot
            if not self._wcroot and self.srcdir is not None:
                self._wcroot = search_root(self.srcdir)
        return self._wcroot

    # --- branch addressing ---

    def _under_root(self, relative: str) -> BranchHandle:
        base = self.url()
        if base is None:
            raise NotFoundError(f"repository root not found for {self.srcdir}")
        return BranchHandle(base + relative)

    def branch(self, name: str) -> BranchHandle:
        return self._under_root(f"branches/{name}")

    def tag(self, name: str) -> BranchHandle:
        return self._under_root(f"tags/{name}")

    def trunk(self) -> BranchHandle:
        return self._under_root("trunk")

    def branch_list(self, pattern: str) -> Iterator[str]:
        argv = [self.command, "ls", str(self.branch(""))]
        with self.runner.stream(argv) as lines:
            for line in lines:
                name = line.rstrip().rstrip("/")
                if fnmatchcase(name, pattern):
                    yield name

    # --- content ---

    def grep(
        self,
        pattern: Union[str, Pattern[str]],
        tag: Optional[BranchHandle],
        *files: str,
    ) -> Iterator[GrepMatch]:
        regex = compile_pattern(pattern)
        for name in files:
            target = posixpath.join(str(tag), name) if tag is not None else name
            yield from self._scan([self.command, "cat", target], regex, name)

    # --- export ---

    def _local_subdir(self) -> Optional[str]:
        """Path of the source root inside its working copy, or None."""
        if self.srcdir is None:
            return None
        rootdir = self.wcroot()
        if not rootdir:
            return None
        srcdir = fs.canonical(self.srcdir)
        rootdir = fs.canonical(rootdir)
        if srcdir == rootdir:
            return ""
        if srcdir.startswith(rootdir + os.sep):
            return srcdir[len(rootdir) + 1:]
        return None

    def export(
        self,
        revision: Optional[str],
        url: Union[str, BranchHandle],
        dest_dir: PathLike,
        keep_temp: Optional[bool] = None,
        sink: Optional[LineSink] = None,
    ) -> bool:
        """Produce a pristine tree in ``dest_dir``.

        When the source root lives in a local working copy, the copy's
        ``.svn`` contents are symlinked into ``dest_dir`` and ``svn revert``
        rebuilds the files from pristine storage. Otherwise ``svn export``
        fetches ``url`` at ``revision``.

        Args:
            revision: Revision to export on the remote path (HEAD if None)
            url: Repository URL or BranchHandle for the remote path
            dest_dir: Destination directory
            keep_temp: Leave the linked ``.svn`` in place for inspection
            sink: Receives client output lines other than added-file notices

        Returns:
            True on success
        """
        keep = self._keep_temp(keep_temp)
        subdir = self._local_subdir()
        if subdir is not None:
            return self._export_local(subdir, Path(dest_dir), keep)

        argv = [self.command, "export"]
        if revision:
            argv += ["-r", str(revision)]
        argv += [str(url), os.fspath(dest_dir)]
        logger.info("Exporting %s@%s to %s", url, revision or "HEAD", dest_dir)
        with self.runner.stream(argv) as lines:
            for line in lines:
                if line.startswith("A"):
                    continue
                if sink is not None:
                    sink.write_line(line)
        if not lines.success:
            logger.error("svn export of %s failed with %s", url, lines.returncode)
        return lines.success

    def _export_local(self, subdir: str, dest: Path, keep: bool) -> bool:
        rootdir = fs.canonical(self.wcroot())
        svndir = dest / self.marker
        logger.info("Exporting %s from local working copy %s", subdir or ".", rootdir)
        fs.link_entries(os.path.join(rootdir, self.marker), svndir)

        result = self.runner.run([self.command, "-q", "revert", "-R", subdir or "."], cwd=dest)
        if not result.success:
            logger.error("svn revert in %s failed with %s", dest, result.returncode)
            return False
        if not keep:
            fs.rm_rf(svndir)
        if subdir:
            self._hoist(dest, subdir)
        return True

    @staticmethod
    def _hoist(dest: Path, subdir: str) -> None:
        """Move the contents of ``dest/subdir`` up to ``dest``."""
        scratch = fs.make_temp_dir(vcs_config.temp_prefix(), dest / subdir)
        holder = dest / scratch.name
        os.rename(scratch, holder)
        fs.move_contents(dest / subdir, holder)

        relative = Path(subdir)
        while relative != Path("."):
            os.rmdir(dest / relative)
            relative = relative.parent

        fs.move_contents(holder, dest)
        os.rmdir(holder)
