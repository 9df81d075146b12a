"""Asset bundle registration, ordering and publishing.

Bundles are named collections of scripts and styles with dependencies on
other bundles. Registering a bundle resolves its dependency closure into a
topologically ordered registry, publishes each local bundle's source
directory once, and yields deduplicated, ordered script and style lists.
"""

from .collector import FileCollector
from .collector import FileEntry
from .exceptions import AssetError
from .exceptions import AssetNotFoundError
from .exceptions import BundleNotAllowedError
from .exceptions import BundleNotFoundError
from .exceptions import CircularDependencyError
from .exceptions import InvalidConfigError
from .exceptions import InvalidFileEntryError
from .exceptions import MissingConfigurationError
from .exceptions import PositionConflictError
from .exceptions import PublishIOError
from .filesystem import FilesystemOps
from .filesystem import LocalFilesystem
from .loader import BundleFactoryRegistry
from .loader import BundleLoader
from .loader import FileBundleLoader
from .manager import AssetManager
from .manager import create_asset_manager
from .paths import AliasPathResolver
from .paths import PathResolver
from .publisher import AssetPublisher
from .publisher import PublisherConfig
from .resolver import DependencyResolver
from .resolver import RegistrationSession
from .resolver import RegistryEntry
from .schema import BundleDefinition
from .schema import FileSpec
from .schema import PublishOptions
from .settings import AssetSettings
from .settings import load_settings
from .store import BundleStore

__all__ = [
    "AliasPathResolver",
    "AssetError",
    "AssetManager",
    "AssetNotFoundError",
    "AssetPublisher",
    "AssetSettings",
    "BundleDefinition",
    "BundleFactoryRegistry",
    "BundleLoader",
    "BundleNotAllowedError",
    "BundleNotFoundError",
    "BundleStore",
    "CircularDependencyError",
    "DependencyResolver",
    "FileBundleLoader",
    "FileCollector",
    "FileEntry",
    "FileSpec",
    "FilesystemOps",
    "InvalidConfigError",
    "InvalidFileEntryError",
    "LocalFilesystem",
    "MissingConfigurationError",
    "PathResolver",
    "PositionConflictError",
    "PublishIOError",
    "PublishOptions",
    "PublisherConfig",
    "RegistrationSession",
    "RegistryEntry",
    "create_asset_manager",
    "load_settings",
]
