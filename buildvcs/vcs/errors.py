from __future__ import annotations

from typing import Optional, Sequence


class VCSError(RuntimeError):
    """Base class for errors raised by the VCS layer."""


class NotFoundError(VCSError):
    """No backend governs a path, or a revision query found no revision."""


class ToolInvocationError(NotFoundError):
    """A revision query came back empty because the VCS client failed.

    Subclass of NotFoundError so callers that only care about "no revision"
    keep working; callers that need to tell a broken client apart from an
    empty answer can catch this one first.
    """

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str] = (),
        returncode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.argv = tuple(argv)
        self.returncode = returncode


class FormatError(VCSError, ValueError):
    """A timestamp reported by a VCS client could not be understood."""
