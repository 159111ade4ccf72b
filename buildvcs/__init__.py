"""Revision metadata and pristine exports for build tooling, whatever the VCS.

Boundary rules:
- Backends depend only on `buildvcs.process.ProcessRunner` to run clients.
- Filesystem manipulation goes through `buildvcs.fs`.
"""

from .vcs import (
    BranchHandle,
    FormatError,
    GrepMatch,
    NotFoundError,
    RevisionInfo,
    ToolInvocationError,
    VCS,
    VCSError,
    detect,
)

__version__ = "0.1.0"

__all__ = [
    "BranchHandle",
    "FormatError",
    "GrepMatch",
    "NotFoundError",
    "RevisionInfo",
    "ToolInvocationError",
    "VCS",
    "VCSError",
    "detect",
]
