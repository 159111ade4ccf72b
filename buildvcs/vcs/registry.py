"""Detection of the VCS governing a directory.

The registry is an ordered list of (marker directory, backend factory)
pairs. Detection tries each backend in registration order and, for that
backend, looks for its marker in the directory and then in every ancestor up
to the filesystem root. A directory that holds the markers of two backends
therefore resolves to the one registered first.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, List, Optional, Tuple

from ..process import ProcessRunner
from .base import VCS
from .errors import NotFoundError
from .paths import PathLike

logger = logging.getLogger(__name__)

BackendFactory = Callable[..., VCS]


def _has_marker(directory: str, marker: str) -> bool:
    return os.path.isdir(os.path.join(directory, marker))


class BackendRegistry:
    """Ordered (marker, factory) pairs; first match wins."""

    def __init__(self) -> None:
        self._entries: List[Tuple[str, BackendFactory]] = []

    def register(self, marker: str, factory: BackendFactory) -> None:
        """Append a backend to the detection order.

        Args:
            marker: Bookkeeping directory name, e.g. ".svn"
            factory: Callable building the backend from (srcdir, runner=...)
        """
        self._entries.append((marker, factory))
        logger.debug("Registered %s for marker %s", factory, marker)

    @property
    def entries(self) -> Tuple[Tuple[str, BackendFactory], ...]:
        return tuple(self._entries)

    def find_marker_root(self, path: PathLike, marker: str) -> Optional[str]:
        """Closest directory at or above ``path`` that contains ``marker``."""
        current = os.fspath(path)
        if _has_marker(current, marker):
            return current
        while True:
            parent = os.path.realpath(os.path.join(current, os.pardir))
            if parent == current:
                return None  # stop at the root directory
            if _has_marker(parent, marker):
                return parent
            current = parent

    def detect(self, path: PathLike, runner: Optional[ProcessRunner] = None) -> VCS:
        """Backend instance for the working copy containing ``path``.

        Raises:
            NotFoundError: If no registered marker is found in ``path`` or
                any of its ancestors
        """
        for marker, factory in self._entries:
            root = self.find_marker_root(path, marker)
            if root is not None:
                logger.debug("Detected %s at %s for %s", marker, root, path)
                return factory(path, runner=runner)
        raise NotFoundError(f"not under a recognized vcs: {path}")
