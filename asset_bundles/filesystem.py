"""Filesystem primitives used by the publisher and file collector.

The publisher never touches os/shutil directly; it goes through a
FilesystemOps implementation so tests can observe or replace the calls.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class FilesystemOps(Protocol):
    """Protocol for the filesystem operations publishing depends on."""

    def exists(self, path: Path) -> bool: ...

    def is_file(self, path: Path) -> bool: ...

    def last_modified_time(self, path: Path) -> int: ...

    def ensure_directory(self, path: Path, mode: int) -> None: ...

    def copy_directory(self, src: Path, dst: Path, mode: int | None = None) -> None: ...

    def create_symlink(self, src: Path, dst: Path) -> None: ...


class LocalFilesystem:
    """FilesystemOps backed by the local disk."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def last_modified_time(self, path: Path) -> int:
        """Return the modification time in whole seconds."""
        return int(path.stat().st_mtime)

    def ensure_directory(self, path: Path, mode: int) -> None:
        """Create path and missing parents, applying mode to every directory created."""
        if path.is_dir():
            return
        missing = []
        current = path
        while not current.exists():
            missing.append(current)
            current = current.parent
        for directory in reversed(missing):
            directory.mkdir(exist_ok=True)
            # mkdir honours the umask; chmod gives the exact mode
            os.chmod(directory, mode)
        logger.debug(f"Created directory {path} (mode {mode:o})")

    def copy_directory(self, src: Path, dst: Path, mode: int | None = None) -> None:
        """Copy src into dst, merging over existing files.

        A single-file source is copied into dst, which is created as a directory.
        When mode is given, every directory created here (dst, its missing
        parents and the copied subdirectories) gets exactly that mode;
        directories that already exist are left alone.
        """
        self._make_directory(dst, mode)
        if src.is_file():
            shutil.copy2(src, dst / src.name)
        else:
            for root, dirs, files in os.walk(src, followlinks=True):
                target = dst / Path(root).relative_to(src)
                for name in dirs:
                    self._make_directory(target / name, mode)
                for name in files:
                    shutil.copy2(Path(root) / name, target / name)
        logger.debug(f"Copied {src} -> {dst}")

    def _make_directory(self, path: Path, mode: int | None) -> None:
        if mode is not None:
            self.ensure_directory(path, mode)
        else:
            path.mkdir(parents=True, exist_ok=True)

    def create_symlink(self, src: Path, dst: Path) -> None:
        dst.symlink_to(src, target_is_directory=src.is_dir())
        logger.debug(f"Linked {dst} -> {src}")
