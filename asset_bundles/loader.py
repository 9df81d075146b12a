"""Bundle loaders.

Two loaders are provided:
- BundleFactoryRegistry: name -> constructor map populated at startup
- FileBundleLoader: YAML/TOML definition files discovered on search paths
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any
from typing import Protocol

import tomli
import yaml
from pydantic import ValidationError

from .exceptions import BundleNotFoundError
from .exceptions import InvalidConfigError
from .schema import BundleDefinition

logger = logging.getLogger(__name__)

BundleFactory = Callable[[], BundleDefinition]

DEFINITION_SUFFIXES = (".yaml", ".yml", ".toml")


class BundleLoader(Protocol):
    """Protocol for bundle loaders."""

    def load(self, name: str) -> BundleDefinition:
        """Load the definition for a bundle name."""
        ...


class BundleFactoryRegistry:
    """Registry mapping bundle names to constructors."""

    def __init__(self, factories: dict[str, BundleFactory] | None = None):
        self._factories: dict[str, BundleFactory] = dict(factories or {})

    def register(self, name: str, factory: BundleFactory) -> None:
        """Register (or replace) the constructor for a bundle name."""
        self._factories[name] = factory
        logger.debug(f"Registered bundle factory '{name}'")

    def add(self, bundle: BundleDefinition) -> None:
        """Register a ready-made definition under its own name."""
        self.register(bundle.name, lambda: bundle)

    def names(self) -> list[str]:
        return sorted(self._factories)

    def load(self, name: str) -> BundleDefinition:
        """Construct the bundle registered under name.

        Raises:
            BundleNotFoundError: If no factory is registered for name
            InvalidConfigError: If the factory does not return a bundle named name
        """
        factory = self._factories.get(name)
        if factory is None:
            raise BundleNotFoundError(f'Asset bundle "{name}" is not registered')

        bundle = factory()
        if not isinstance(bundle, BundleDefinition):
            raise InvalidConfigError(f'Factory for "{name}" returned {type(bundle).__name__}, not BundleDefinition')
        if bundle.name != name:
            raise InvalidConfigError(f'Factory for "{name}" returned a bundle named "{bundle.name}"')
        return bundle


class FileBundleLoader:
    """Discovers and loads bundle definition files from search paths.

    A bundle named ``vendor/jquery`` is looked up as ``vendor/jquery.yaml``
    (or ``.yml``/``.toml``) under each search path. Later search paths take
    precedence over earlier ones.
    """

    def __init__(self, search_paths: list[Path]):
        """
        Initialize loader.

        Args:
            search_paths: Directories to search, in precedence order (lowest to highest)
        """
        self.search_paths = search_paths

    def find_bundle_file(self, name: str) -> Path | None:
        """Find the definition file for a bundle, highest precedence first."""
        if ".." in Path(name).parts:
            logger.warning(f"Path traversal attempt blocked: {name}")
            return None

        for search_path in reversed(self.search_paths):
            for suffix in DEFINITION_SUFFIXES:
                candidate = search_path / f"{name}{suffix}"
                if candidate.is_file():
                    return candidate
        return None

    def list_bundles(self) -> list[str]:
        """Discover all bundle names available on the search paths."""
        names = set()
        for search_path in self.search_paths:
            if not search_path.is_dir():
                continue
            for candidate in search_path.rglob("*"):
                if candidate.is_file() and candidate.suffix in DEFINITION_SUFFIXES:
                    names.add(candidate.relative_to(search_path).with_suffix("").as_posix())
        return sorted(names)

    def load(self, name: str) -> BundleDefinition:
        """
        Load a bundle definition by name.

        Raises:
            BundleNotFoundError: If no definition file exists for name
            InvalidConfigError: If the file cannot be parsed or validated
        """
        bundle_file = self.find_bundle_file(name)
        if bundle_file is None:
            raise BundleNotFoundError(f"Asset bundle '{name}' not found in search paths")

        data = self._read(bundle_file)
        declared = data.get("name")
        if declared is not None and declared != name:
            raise InvalidConfigError(f"Bundle file {bundle_file} declares name '{declared}', expected '{name}'")

        try:
            bundle = BundleDefinition.model_validate({**data, "name": name})
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid bundle file {bundle_file}: {e}") from e

        logger.debug(f"Loaded bundle '{name}' from {bundle_file}")
        return bundle

    def _read(self, bundle_file: Path) -> dict[str, Any]:
        try:
            if bundle_file.suffix == ".toml":
                with open(bundle_file, "rb") as f:
                    data = tomli.load(f)
            else:
                data = yaml.safe_load(bundle_file.read_text(encoding="utf-8"))
        except (yaml.YAMLError, tomli.TOMLDecodeError) as e:
            raise InvalidConfigError(f"Cannot parse bundle file {bundle_file}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise InvalidConfigError(f"Bundle file {bundle_file} must contain a mapping")
        return data
