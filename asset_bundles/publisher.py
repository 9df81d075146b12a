"""Asset publishing.

Publishes a bundle's source directory under its base path exactly once per
resolved source path and remembers where it went:

    source_path (@vendor/jquery/dist)
        -> base_path/<hash>   (copy or symlink)
        -> base_url/<hash>

The hash is derived from the source path and its modification time, so a
changed source lands in a new directory across process restarts.
"""

from __future__ import annotations

import logging
import zlib
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import replace
from pathlib import Path

from .exceptions import AssetNotFoundError
from .exceptions import MissingConfigurationError
from .exceptions import PublishIOError
from .filesystem import FilesystemOps
from .filesystem import LocalFilesystem
from .once import OnceCache
from .paths import AliasPathResolver
from .paths import PathResolver
from .schema import BundleDefinition

logger = logging.getLogger(__name__)

HashCallback = Callable[[str], str]
PublishedBundle = tuple[Path, str]


@dataclass(frozen=True)
class PublisherConfig:
    """Immutable publisher configuration.

    Attributes:
        force_copy: Copy the source even when the destination already exists.
            Useful during development; expensive in production.
        link_assets: Symlink the source directory instead of copying it.
        dir_mode: Permission bits for directories created while publishing.
        hash_callback: Produces the destination directory name from the source
            path. Defaults to a CRC32 of the path and its modification time.
    """

    force_copy: bool = False
    link_assets: bool = False
    dir_mode: int = 0o775
    hash_callback: HashCallback | None = None

    def with_force_copy(self, force_copy: bool) -> PublisherConfig:
        return replace(self, force_copy=force_copy)

    def with_link_assets(self, link_assets: bool) -> PublisherConfig:
        return replace(self, link_assets=link_assets)

    def with_dir_mode(self, dir_mode: int) -> PublisherConfig:
        return replace(self, dir_mode=dir_mode)

    def with_hash_callback(self, hash_callback: HashCallback | None) -> PublisherConfig:
        return replace(self, hash_callback=hash_callback)


class AssetPublisher:
    """Publishes bundle source directories and caches the results.

    Contract:
    - Inputs: BundleDefinition with source_path, base_path, base_url
    - Outputs: (published directory, published URL)
    - Side effects: one copy or symlink per resolved source path for the
      lifetime of this publisher, even under concurrent calls
    - Errors: MissingConfigurationError, AssetNotFoundError, PublishIOError
    """

    def __init__(
        self,
        paths: PathResolver | None = None,
        config: PublisherConfig | None = None,
        filesystem: FilesystemOps | None = None,
    ):
        self._paths = paths or AliasPathResolver()
        self._config = config or PublisherConfig()
        self._fs = filesystem or LocalFilesystem()
        self._published: OnceCache[Path, PublishedBundle] = OnceCache()

    @property
    def config(self) -> PublisherConfig:
        return self._config

    def publish(self, bundle: BundleDefinition) -> PublishedBundle:
        """Publish the bundle's source directory.

        Args:
            bundle: Bundle to publish

        Returns:
            Tuple of (published directory, published URL)

        Raises:
            MissingConfigurationError: If source_path, base_path or base_url is not set
            AssetNotFoundError: If the source path does not exist
            PublishIOError: If the copy or symlink fails
        """
        if not bundle.source_path:
            raise MissingConfigurationError(f'The source_path must be defined for bundle "{bundle.name}".')

        source = self._absolute(bundle.source_path)
        cached = self._published.get(source)
        if cached is not None:
            logger.debug(f"Bundle '{bundle.name}' already published from {source}")
            return cached

        return self._published.get_or_create(source, lambda: self._publish_directory(bundle, source))

    def get_published_path(self, source_path: str) -> Path | None:
        published = self._published.get(self._absolute(source_path))
        return published[0] if published is not None else None

    def get_published_url(self, source_path: str) -> str | None:
        published = self._published.get(self._absolute(source_path))
        return published[1] if published is not None else None

    def _absolute(self, source_path: str) -> Path:
        return Path(self._paths.resolve(source_path)).resolve()

    def _publish_directory(self, bundle: BundleDefinition, source: Path) -> PublishedBundle:
        if not bundle.base_path:
            raise MissingConfigurationError(f'The base_path must be defined for bundle "{bundle.name}".')
        if bundle.base_url is None:
            raise MissingConfigurationError(f'The base_url must be defined for bundle "{bundle.name}".')
        if not self._fs.exists(source):
            raise AssetNotFoundError(f"The source_path to be published does not exist: {source}")

        dir_name = self._hash(source)
        dst_dir = Path(self._paths.resolve(bundle.base_path)) / dir_name
        dst_url = f"{self._paths.resolve(bundle.base_url).rstrip('/')}/{dir_name}"

        if self._config.link_assets:
            self._link(bundle, source, dst_dir)
        elif self._should_copy(bundle, dst_dir):
            logger.info(
                f"Publishing bundle '{bundle.name}': copying {source} -> {dst_dir}",
                extra={"event": "asset.publish.copy", "bundle": bundle.name},
            )
            try:
                self._fs.copy_directory(source, dst_dir, self._config.dir_mode)
            except OSError as e:
                raise PublishIOError(f"Failed to copy {source} to {dst_dir}: {e}") from e

        logger.debug(f"Published bundle '{bundle.name}' at {dst_dir} ({dst_url})")
        return dst_dir, dst_url

    def _link(self, bundle: BundleDefinition, source: Path, dst_dir: Path) -> None:
        if self._fs.exists(dst_dir):
            return

        try:
            self._fs.ensure_directory(dst_dir.parent, self._config.dir_mode)
            logger.info(
                f"Publishing bundle '{bundle.name}': linking {source} -> {dst_dir}",
                extra={"event": "asset.publish.link", "bundle": bundle.name},
            )
            self._fs.create_symlink(source, dst_dir)
        except OSError as e:
            # Another process may have linked the same directory first
            if not self._fs.exists(dst_dir):
                raise PublishIOError(f"Failed to link {source} to {dst_dir}: {e}") from e
            logger.warning(f"Symlink {dst_dir} was created concurrently; reusing it")

    def _should_copy(self, bundle: BundleDefinition, dst_dir: Path) -> bool:
        force_copy = bundle.publish_options.force_copy
        if force_copy is None:
            force_copy = self._config.force_copy
        return force_copy or not self._fs.exists(dst_dir)

    def _hash(self, source: Path) -> str:
        """Return the destination directory name for a source path.

        Default: hex CRC32 of the source directory (the containing directory
        for a single-file source), the source mtime and the link flag.
        """
        if self._config.hash_callback is not None:
            return self._config.hash_callback(str(source))

        mtime = self._fs.last_modified_time(source)
        path = source.parent if self._fs.is_file(source) else source
        link_flag = "1" if self._config.link_assets else ""
        return f"{zlib.crc32(f'{path}{mtime}|{link_flag}'.encode()):x}"
