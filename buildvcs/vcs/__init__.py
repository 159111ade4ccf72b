"""Backend-agnostic revision queries and exports.

Usage:
    backend = detect(srcdir)
    info = backend.get_revisions(os.path.join(srcdir, "version.h"))
    backend.export(info.last_revision, backend.trunk(), "/tmp/export")
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Type

from .. import config as vcs_config
from ..process import ProcessRunner
from .base import VCS, BranchHandle, GrepMatch, RawRevisions, RevisionInfo
from .errors import FormatError, NotFoundError, ToolInvocationError, VCSError
from .git import GIT
from .paths import PathLike, relative_to
from .registry import BackendRegistry
from .svn import SVN
from .timestamps import normalize

logger = logging.getLogger(__name__)

BACKENDS: Dict[str, Type[VCS]] = {
    SVN.name: SVN,
    GIT.name: GIT,
}

_default_registry: Optional[BackendRegistry] = None


def build_registry(order: Optional[list] = None) -> BackendRegistry:
    """Registry holding the known backends in ``order`` (config order if None)."""
    registry = BackendRegistry()
    for name in order if order is not None else vcs_config.backend_order():
        backend = BACKENDS.get(name)
        if backend is None:
            logger.warning("Unknown backend %r in backend order, skipping", name)
            continue
        registry.register(backend.marker, backend)
    return registry


def default_registry() -> BackendRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = build_registry()
    return _default_registry


def detect(path: PathLike, runner: Optional[ProcessRunner] = None) -> VCS:
    """Backend bound to ``path`` for the VCS managing it.

    Raises:
        NotFoundError: If ``path`` is not inside any recognized working copy
    """
    return default_registry().detect(path, runner=runner)


def reset_registry() -> None:
    """Drop the default registry so the next detect() re-reads the config."""
    global _default_registry
    _default_registry = None


__all__ = [
    "BACKENDS",
    "BackendRegistry",
    "BranchHandle",
    "FormatError",
    "GIT",
    "GrepMatch",
    "NotFoundError",
    "RawRevisions",
    "RevisionInfo",
    "SVN",
    "ToolInvocationError",
    "VCS",
    "VCSError",
    "build_registry",
    "default_registry",
    "detect",
    "normalize",
    "relative_to",
    "reset_registry",
]
