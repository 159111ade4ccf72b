"""Filesystem primitives used by the exporters."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def canonical(path: PathLike, strict: bool = True) -> str:
    """Absolute path with symlinks, ``.`` and ``..`` resolved.

    With ``strict`` the path must exist. Otherwise the missing tail is kept
    as given, which lets callers name export destinations that are not
    there yet.
    """
    return os.path.realpath(os.fspath(path), strict=strict)


def mkdir_p(path: PathLike) -> Path:
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def rm_rf(path: PathLike) -> None:
    """Remove a file, symlink or directory tree; a missing path is fine."""
    target = Path(path)
    if target.is_symlink() or target.is_file():
        target.unlink()
    elif target.is_dir():
        shutil.rmtree(target)


def entries(directory: PathLike) -> List[Path]:
    """All entries of ``directory``, dotfiles included, in name order."""
    base = Path(directory)
    return [base / name for name in sorted(os.listdir(base))]


def link_entries(source_dir: PathLike, dest_dir: PathLike) -> int:
    """Symlink each entry of ``source_dir`` into ``dest_dir``.

    Returns:
        Number of links created
    """
    dest = mkdir_p(dest_dir)
    count = 0
    for entry in entries(source_dir):
        os.symlink(entry, dest / entry.name)
        count += 1
    logger.debug("Linked %d entries of %s into %s", count, source_dir, dest)
    return count


def move_contents(source_dir: PathLike, dest_dir: PathLike) -> None:
    """Move every entry of ``source_dir`` into ``dest_dir``."""
    dest = Path(dest_dir)
    for entry in entries(source_dir):
        shutil.move(os.fspath(entry), os.fspath(dest / entry.name))


def make_temp_dir(prefix: str, parent: PathLike) -> Path:
    """Create a uniquely named directory inside ``parent``."""
    return Path(tempfile.mkdtemp(prefix=prefix, dir=os.fspath(parent)))
