"""Asset manager: the caller-facing entry point.

Typical use:

    manager = create_asset_manager(load_settings())
    manager.register("app")
    for key, entry in manager.get_script_files().items():
        ...
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from pathlib import Path

from .collector import FileCollector
from .collector import FileEntry
from .exceptions import BundleNotAllowedError
from .filesystem import FilesystemOps
from .filesystem import LocalFilesystem
from .loader import BundleLoader
from .loader import FileBundleLoader
from .logging_setup import init_json_logging
from .paths import AliasPathResolver
from .paths import PathResolver
from .publisher import AssetPublisher
from .resolver import DependencyResolver
from .resolver import RegistrationSession
from .resolver import RegistryEntry
from .settings import AssetSettings
from .settings import load_settings
from .store import BundleStore

logger = logging.getLogger(__name__)


class AssetManager:
    """Registers bundles and exposes their ordered script and style files.

    One manager owns one registration session; registering more bundles
    extends it. Registration calls are serialized. State after a failed
    register() is undefined: take session.snapshot() beforehand if you need
    to roll back.
    """

    def __init__(
        self,
        store: BundleStore,
        publisher: AssetPublisher | None = None,
        paths: PathResolver | None = None,
        filesystem: FilesystemOps | None = None,
        asset_map: Mapping[str, str] | None = None,
        allowed_bundles: list[str] | None = None,
    ):
        """
        Args:
            store: Bundle definitions
            publisher: Publisher for local bundles with a source_path
            paths: Alias resolver for base paths and URLs
            filesystem: Filesystem used for asset existence checks
            asset_map: Asset remap table
            allowed_bundles: If non-empty, only these bundles and their
                dependencies may be registered or obtained
        """
        self._store = store
        self._publisher = publisher
        self._paths = paths or AliasPathResolver()
        self._fs = filesystem or LocalFilesystem()
        self._asset_map = dict(asset_map or {})
        self._allowed_bundles = list(allowed_bundles or [])
        self._allowed_closure: set[str] | None = None
        self._resolver = DependencyResolver(store, publisher)
        self._session = RegistrationSession()
        self._lock = threading.RLock()

    @property
    def session(self) -> RegistrationSession:
        return self._session

    def register(self, name: str, script_position: int | None = None, style_position: int | None = None) -> None:
        """Register a bundle and its dependencies.

        Args:
            name: Bundle name
            script_position: Forces a minimum script position onto the bundle and its dependencies
            style_position: Forces a minimum style position onto the bundle and its dependencies
        """
        with self._lock:
            self._check_allowed(name)
            self._resolver.register(self._session, name, script_position, style_position)
        logger.debug(f"Registered '{name}'; registry: {self._session.names()}")

    def is_registered(self, name: str) -> bool:
        return name in self._session

    def get_bundle(self, name: str) -> RegistryEntry:
        """Return the registry entry for name, registering it first if needed."""
        with self._lock:
            self._check_allowed(name)
            entry = self._session.get(name)
            if entry is None:
                entry = self._resolver.register(self._session, name)
            return entry

    def get_script_files(self) -> dict[str, FileEntry]:
        return self._collect().scripts

    def get_style_files(self) -> dict[str, FileEntry]:
        return self._collect().styles

    def get_published_path(self, source_path: str) -> Path | None:
        if self._publisher is None:
            return None
        return self._publisher.get_published_path(source_path)

    def get_published_url(self, source_path: str) -> str | None:
        if self._publisher is None:
            return None
        return self._publisher.get_published_url(source_path)

    def _collect(self) -> FileCollector:
        with self._lock:
            collector = FileCollector(self._session, self._paths, self._fs, self._asset_map)
            collector.collect_all()
        return collector

    def _check_allowed(self, name: str) -> None:
        if not self._allowed_bundles:
            return
        if self._allowed_closure is None:
            self._allowed_closure = self._dependency_closure(self._allowed_bundles)
        if name not in self._allowed_closure:
            raise BundleNotAllowedError(f'The "{name}" asset bundle is not allowed.')

    def _dependency_closure(self, names: list[str]) -> set[str]:
        closure: set[str] = set()
        pending = list(names)
        while pending:
            name = pending.pop()
            if name in closure:
                continue
            closure.add(name)
            pending.extend(self._store.get(name).dependencies)
        return closure


def create_asset_manager(
    settings: AssetSettings | None = None,
    loader: BundleLoader | None = None,
    filesystem: FilesystemOps | None = None,
) -> AssetManager:
    """Build an AssetManager from settings.

    When settings.log_path is set, the JSONL log sink is installed first (see
    logging_setup.init_json_logging); otherwise logging is left to the caller.

    Args:
        settings: Asset settings (default: load_settings())
        loader: Bundle loader (default: FileBundleLoader over settings.bundle_paths)
        filesystem: Filesystem implementation (default: LocalFilesystem)
    """
    if settings is None:
        settings = load_settings()
    if settings.log_path is not None:
        init_json_logging(settings.log_path, settings.log_level)

    paths = AliasPathResolver(settings.aliases)
    fs = filesystem or LocalFilesystem()
    store = BundleStore(
        loader or FileBundleLoader(settings.bundle_paths),
        customized=settings.customized_bundles,
        base_path=settings.base_path,
        base_url=settings.base_url,
    )
    publisher = AssetPublisher(paths, settings.publisher_config(), fs)
    return AssetManager(
        store,
        publisher,
        paths=paths,
        filesystem=fs,
        asset_map=settings.asset_map,
        allowed_bundles=settings.allowed_bundles,
    )
