"""Filesystem access used by the line counter and split planner."""
from __future__ import annotations

import stat
from pathlib import Path
from typing import BinaryIO, Protocol

from common.models import FileStatus


class FileSystem(Protocol):
    """Minimal capability the planner needs from a storage backend."""

    def status(self, path: Path) -> FileStatus:
        ...

    def open(self, path: Path) -> BinaryIO:
        ...


class LocalFileSystem:
    """Reads split targets from the local disk."""

    def status(self, path: Path) -> FileStatus:
        info = path.stat()
        is_dir = stat.S_ISDIR(info.st_mode)
        return FileStatus(path=path, is_dir=is_dir, length=0 if is_dir else info.st_size)

    def open(self, path: Path) -> BinaryIO:
        return path.open("rb")


LOCAL_FILESYSTEM = LocalFileSystem()
