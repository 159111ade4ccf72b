from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urlsplit

PathLike = Union[str, Path]


def is_local_path(path: Any) -> bool:
    """True for filesystem paths.

    BranchHandles and strings carrying a URL scheme (``svn://``, ``file://``)
    are remote locators. A one-letter scheme is a Windows drive, not a URL.
    """
    if isinstance(path, str):
        return len(urlsplit(path).scheme) <= 1
    return isinstance(path, os.PathLike)


def relative_to(root: PathLike, target: Optional[PathLike]) -> str:
    """Path of ``target`` relative to ``root``, both canonicalized first.

    ``root`` must exist; ``target`` may name a file that does not. A
    ``target`` of None means "no path filter" and yields ``"."``.

    Examples:
        relative_to("/repo", "/repo/src/a.txt") -> "src/a.txt"
        relative_to("/repo/src", "/repo/doc") -> "../doc"
        relative_to("/repo", "/repo") -> "."
    """
    if target is None:
        return "."
    root_parts = list(Path(os.path.realpath(os.fspath(root), strict=True)).parts)
    target_parts = list(Path(os.path.realpath(os.fspath(target))).parts)

    while root_parts and target_parts and root_parts[0] == target_parts[0]:
        root_parts.pop(0)
        target_parts.pop(0)

    if not root_parts and not target_parts:
        return "."
    return os.sep.join([os.pardir] * len(root_parts) + target_parts)
