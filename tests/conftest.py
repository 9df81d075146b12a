"""Pytest configuration and shared fixtures for asset bundle tests."""

import logging
from pathlib import Path

import pytest
from asset_bundles.filesystem import LocalFilesystem


class RecordingFilesystem(LocalFilesystem):
    """LocalFilesystem that records copy and symlink calls."""

    def __init__(self) -> None:
        self.copies: list[tuple[Path, Path]] = []
        self.links: list[tuple[Path, Path]] = []

    def copy_directory(self, src: Path, dst: Path, mode: int | None = None) -> None:
        self.copies.append((src, dst))
        super().copy_directory(src, dst, mode)

    def create_symlink(self, src: Path, dst: Path) -> None:
        self.links.append((src, dst))
        super().create_symlink(src, dst)


@pytest.fixture
def recording_fs():
    return RecordingFilesystem()


@pytest.fixture
def source_tree(tmp_path):
    """Create bundle source directories and an empty public directory."""
    src = tmp_path / "src"

    app = src / "app"
    (app / "js").mkdir(parents=True)
    (app / "css").mkdir()
    (app / "js" / "app.js").write_text("console.log('app');")
    (app / "css" / "app.css").write_text("body {}")

    jquery = src / "jquery"
    jquery.mkdir()
    (jquery / "jquery.js").write_text("/* jquery */")

    public = tmp_path / "public" / "assets"
    public.mkdir(parents=True)

    return {"root": tmp_path, "src": src, "app": app, "jquery": jquery, "public": public}


@pytest.fixture
def restore_root_logger():
    """Remove handlers a test installs on the root logger and restore its level."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
