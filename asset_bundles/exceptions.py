"""Exceptions raised by bundle registration, publishing and file collection.

Every error derives from AssetError so callers can catch the whole family.
Errors are never aggregated: resolution stops at the first failure, and the
registry state of the failed session is undefined afterwards.
"""

from __future__ import annotations


class AssetError(Exception):
    """Base class for all asset bundle errors."""


class CircularDependencyError(AssetError):
    """Raised when a bundle is reached again while it is still being registered."""

    def __init__(self, name: str, chain: list[str] | None = None):
        self.name = name
        self.chain = list(chain or [])
        path = " -> ".join([*self.chain, name]) if self.chain else name
        super().__init__(f'A circular dependency is detected for bundle "{name}": {path}')


class PositionConflictError(AssetError):
    """Raised when a dependent requires an earlier position than a bundle already has."""

    def __init__(self, name: str, axis: str):
        self.name = name
        self.axis = axis
        super().__init__(
            f'An asset bundle that depends on "{name}" has a lower {axis} file position configured than "{name}".'
        )


class MissingConfigurationError(AssetError):
    """Raised when source_path, base_path or base_url is required but not set."""


class InvalidConfigError(AssetError):
    """Raised for malformed settings, bundle definition files or customizations."""


class BundleNotFoundError(AssetError, LookupError):
    """Raised when a loader cannot resolve a bundle name."""


class BundleNotAllowedError(AssetError):
    """Raised when allowed bundle names are configured and the name is not reachable from them."""


class InvalidFileEntryError(AssetError, ValueError):
    """Raised for a malformed script/style entry or options map."""


class AssetNotFoundError(AssetError, FileNotFoundError):
    """Raised when an expected local asset file or source directory is missing."""


class PublishIOError(AssetError, OSError):
    """Raised when copying or symlinking a bundle directory fails."""
