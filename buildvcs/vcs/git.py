"""Git backend.

Revision numbers come from the ``git-svn-id: <url>@<rev> <uuid>`` trailer
that git-svn writes into imported commit messages, so repositories mirrored
from Subversion report the same sequential revisions as the svn backend.
Branches and tags are plain ref names.
"""

from __future__ import annotations

import logging
import os
import re
from fnmatch import fnmatchcase
from typing import Iterator, List, Optional, Pattern, Union

from .. import config as vcs_config
from ..process import ProcessRunner
from ..sinks import LineSink
from .base import VCS, BranchHandle, GrepMatch, Locator, RawRevisions, compile_pattern
from .paths import PathLike

logger = logging.getLogger(__name__)

# Passed to ``git log --grep`` to select commits carrying a revision trailer
REVISION_GREP = "^ *git-svn-id: .*@[0-9][0-9]*"
REVISION_RE = re.compile(r"git-svn-id: .*?@(\d+) \S+\s*\Z")
DATE_RE = re.compile(r"^Date:\s+(.*)$", re.MULTILINE)
HEAD_RE = re.compile(r"\A(?:refs/heads/)?(.+)")


class GIT(VCS):
    name = "git"
    marker = ".git"

    def __init__(
        self,
        srcdir: Optional[PathLike],
        runner: Optional[ProcessRunner] = None,
    ) -> None:
        super().__init__(srcdir, runner=runner)
        self.command = vcs_config.git_command()

    def _git(self, *args: str) -> List[str]:
        argv = [self.command]
        if self.srcdir is not None:
            argv += ["-C", os.fspath(self.srcdir)]
        argv.extend(args)
        return argv

    # --- revision queries ---

    def _raw_revisions(self, path: Locator) -> RawRevisions:
        logcmd = self._git("log", "-n1", "--date=iso", f"--grep={REVISION_GREP}")
        result = self.runner.run(logcmd)
        failure = None if result.success else result
        log = result.stdout
        last = self._revision_from(log)

        if path is not None:
            result = self.runner.run(logcmd + [str(path)])
            if failure is None and not result.success:
                failure = result
            log = result.stdout
            changed = self._revision_from(log)
        else:
            changed = last

        date = DATE_RE.search(log)
        head = self.runner.run(self._git("symbolic-ref", "HEAD"))
        branch = None
        if head.success:
            match = HEAD_RE.match(head.stdout)
            branch = match.group(1).strip() if match else None

        return RawRevisions(
            last=last,
            changed=changed,
            modified=date.group(1).strip() if date else None,
            branch=branch,
            failure=failure,
        )

    @staticmethod
    def _revision_from(log: str) -> Optional[str]:
        match = REVISION_RE.search(log)
        return match.group(1) if match else None

    # --- branch addressing ---

    def branch(self, name: str) -> BranchHandle:
        return BranchHandle(name)

    def trunk(self) -> BranchHandle:
        return self.branch("trunk")

    def stable(self) -> Optional[BranchHandle]:
        """Highest ``<prefix><major>_<minor>`` branch by version number, if any.

        ``release_1_10`` ranks above ``release_1_9``.
        """
        prefix = vcs_config.stable_branch_prefix()
        result = self.runner.run(
            self._git("for-each-ref", "--format=%(refname:short)", f"refs/heads/{prefix}[0-9]*")
        )
        versions = re.findall(rf"^{re.escape(prefix)}(\d+)_(\d+)$", result.stdout, re.MULTILINE)
        if not versions:
            logger.debug("No stable branch matching %s in %s", prefix, self.srcdir)
            return None
        major, minor = max(versions, key=lambda version: (int(version[0]), int(version[1])))
        return self.branch(f"{prefix}{major}_{minor}")

    def branch_list(self, pattern: str) -> Iterator[str]:
        argv = self._git("for-each-ref", "--format=%(refname:short)", f"refs/heads/{pattern}")
        with self.runner.stream(argv) as lines:
            for line in lines:
                name = line.rstrip()
                if fnmatchcase(name, pattern):
                    yield name

    # --- content ---

    def grep(
        self,
        pattern: Union[str, Pattern[str]],
        tag: Optional[BranchHandle],
        *files: str,
    ) -> Iterator[GrepMatch]:
        """Matching lines of ``files`` at ``tag`` (the work tree when None).

        git supplies every line of each tracked file; matching is done with
        Python's ``re`` so capture groups behave as the caller expects.
        """
        regex = compile_pattern(pattern)
        for name in files:
            argv = self._git("grep", "-h", "-I", "-e", "")
            if tag is not None:
                argv.append(str(tag))
            argv += ["--", name]
            yield from self._scan(argv, regex, name)

    # --- export ---

    def export(
        self,
        revision: Optional[str],
        url: Union[str, BranchHandle],
        dest_dir: PathLike,
        keep_temp: Optional[bool] = None,
        sink: Optional[LineSink] = None,
    ) -> bool:
        """Clone branch ``url`` of the source repository into ``dest_dir``.

        The clone shares the source's object store, so nothing is fetched
        over the network. ``revision`` is unused: the branch tip is exported.
        """
        keep = self._keep_temp(keep_temp)
        source = os.fspath(self.srcdir) if self.srcdir is not None else "."
        argv = [self.command, "clone", "-s", source, "-b", str(url), os.fspath(dest_dir)]
        logger.info("Cloning %s of %s into %s", url, source, dest_dir)
        with self.runner.stream(argv, merge_stderr=True) as lines:
            for line in lines:
                if sink is not None:
                    sink.write_line(line)
        if not lines.success:
            logger.error("git clone of %s failed with %s", url, lines.returncode)
            return False
        if not keep:
            self.after_export(dest_dir)
        return True
