"""Collects ordered, deduplicated script and style entries from a registry."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any

from .exceptions import AssetNotFoundError
from .exceptions import BundleNotFoundError
from .exceptions import InvalidFileEntryError
from .exceptions import MissingConfigurationError
from .filesystem import FilesystemOps
from .filesystem import LocalFilesystem
from .paths import AliasPathResolver
from .paths import PathResolver
from .resolver import RegistrationSession
from .resolver import RegistryEntry
from .schema import BundleDefinition
from .schema import normalize_entry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileEntry:
    """A resolved script or style ready for output."""

    url: str
    position: int | None = None
    options: dict[str, Any] = field(default_factory=dict)


def is_relative_url(url: str) -> bool:
    """Return True if url has no scheme and is not protocol-relative."""
    return not url.startswith("//") and "://" not in url


def _is_bundle_relative(url: str) -> bool:
    return is_relative_url(url) and not url.startswith("/")


def _join_url(base_url: str, url: str) -> str:
    return f"{base_url.rstrip('/')}/{url}"


def map_asset(asset_map: Mapping[str, str], bundle: BundleDefinition, url: str) -> str | None:
    """Look up url in an asset remap table.

    An exact key wins. Otherwise the URL is prefixed with the bundle's
    source_path (when relative) and the longest key that is a suffix of it
    is used.

    Example:
        >>> map_asset({"jquery.js": "//cdn.example.com/jquery.min.js"}, bundle, "dist/jquery.js")
        '//cdn.example.com/jquery.min.js'
    """
    if not asset_map:
        return None
    if url in asset_map:
        return asset_map[url]

    asset = url
    if bundle.source_path and is_relative_url(url):
        asset = _join_url(bundle.source_path, url)

    best: str | None = None
    for source in asset_map:
        if source and len(source) <= len(asset) and asset.endswith(source):
            if best is None or len(source) > len(best):
                best = source
    return asset_map[best] if best is not None else None


def _default_options(bundle: BundleDefinition, axis: str) -> dict[str, Any]:
    options = bundle.script_options if axis == "script" else bundle.style_options
    for key in options:
        if not isinstance(key, str):
            raise InvalidFileEntryError(
                f'Default {axis} options of bundle "{bundle.name}" must use named keys, got {key!r}'
            )
    return dict(options)


class FileCollector:
    """Walks a registration session and folds bundle files into ordered maps.

    Dependencies are collected before dependents, so their files come first.
    Keys are the entry's explicit key or its resolved URL. Writing an existing
    key replaces the entry but keeps its original place in the order.
    """

    def __init__(
        self,
        session: RegistrationSession,
        paths: PathResolver | None = None,
        filesystem: FilesystemOps | None = None,
        asset_map: Mapping[str, str] | None = None,
    ):
        self._session = session
        self._paths = paths or AliasPathResolver()
        self._fs = filesystem or LocalFilesystem()
        self._asset_map = dict(asset_map or {})
        self._collected: set[str] = set()
        self._scripts: dict[str, FileEntry] = {}
        self._styles: dict[str, FileEntry] = {}

    @property
    def scripts(self) -> dict[str, FileEntry]:
        return dict(self._scripts)

    @property
    def styles(self) -> dict[str, FileEntry]:
        return dict(self._styles)

    def collect_all(self) -> None:
        """Collect every bundle in the session, in registry order."""
        for entry in self._session:
            self.collect(entry.name)

    def collect(self, name: str) -> None:
        """Collect name and its dependencies.

        Raises:
            BundleNotFoundError: If name is not registered in the session
            InvalidFileEntryError: For malformed entries or default options
            MissingConfigurationError: If a local bundle has no base_path/base_url
            AssetNotFoundError: If a local asset file does not exist
        """
        if name in self._collected:
            return

        entry = self._session.get(name)
        if entry is None:
            raise BundleNotFoundError(f'Asset bundle "{name}" is not registered')

        self._collected.add(name)
        for dep in entry.dependencies:
            self.collect(dep)

        self._collect_files(entry, "script", self._scripts)
        self._collect_files(entry, "style", self._styles)

    def _collect_files(self, entry: RegistryEntry, axis: str, target: dict[str, FileEntry]) -> None:
        bundle = entry.bundle
        raw_entries = bundle.scripts if axis == "script" else bundle.styles
        if not raw_entries:
            return

        defaults = _default_options(bundle, axis)
        bundle_position = entry.script_position if axis == "script" else entry.style_position

        for raw in raw_entries:
            spec = normalize_entry(raw)
            url = self.resolve_url(bundle, spec.url)
            position = spec.position if spec.position is not None else bundle_position
            target[spec.key or url] = FileEntry(url=url, position=position, options={**defaults, **spec.options})

        logger.debug(f"Collected {len(raw_entries)} {axis} file(s) from bundle '{bundle.name}'")

    def resolve_url(self, bundle: BundleDefinition, url: str) -> str:
        """Resolve an entry URL against the asset map and the bundle's publish location."""
        mapped = map_asset(self._asset_map, bundle, url)
        if mapped is not None:
            logger.debug(f"Asset {url} of bundle '{bundle.name}' remapped to {mapped}")
            return mapped

        if bundle.remote:
            if bundle.base_url and _is_bundle_relative(url):
                return _join_url(self._paths.resolve(bundle.base_url), url)
            return url

        if not bundle.base_path or bundle.base_url is None:
            raise MissingConfigurationError(
                f'base_path and base_url must be set for bundle "{bundle.name}" to resolve {url}'
            )

        if not _is_bundle_relative(url):
            return url

        asset_path = Path(self._paths.resolve(bundle.base_path)) / url
        if not self._fs.exists(asset_path):
            raise AssetNotFoundError(f'Asset file of bundle "{bundle.name}" does not exist: {asset_path}')

        return _join_url(self._paths.resolve(bundle.base_url), url)
