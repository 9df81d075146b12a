"""Bundle store: loads each bundle definition at most once."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .exceptions import InvalidConfigError
from .loader import BundleLoader
from .once import OnceCache
from .schema import BundleDefinition

logger = logging.getLogger(__name__)

# Customization values: a replacement definition, a field override mapping,
# or False to disable the bundle.
Customization = BundleDefinition | Mapping[str, Any] | bool


class BundleStore:
    """Memoizes bundle definitions by name over a loader.

    Customizations are applied when a bundle is first loaded:
    - BundleDefinition: used instead of the loader's definition
    - mapping: fields merged over the loader's definition
    - False: the bundle is disabled and replaced by an empty bundle of the same name

    Local (non-remote) bundles without base_path/base_url receive the store
    defaults, if any.
    """

    def __init__(
        self,
        loader: BundleLoader,
        customized: Mapping[str, Customization] | None = None,
        base_path: str | None = None,
        base_url: str | None = None,
    ):
        self._loader = loader
        self._customized = dict(customized or {})
        self._base_path = base_path
        self._base_url = base_url
        self._loaded: OnceCache[str, BundleDefinition] = OnceCache()

    def get(self, name: str) -> BundleDefinition:
        """Return the definition for name, loading it on first request."""
        return self._loaded.get_or_create(name, lambda: self._load(name))

    def is_loaded(self, name: str) -> bool:
        return name in self._loaded

    def _load(self, name: str) -> BundleDefinition:
        bundle = self._apply_defaults(self._load_customized(name))
        logger.debug(f"Loaded bundle '{name}' (deps: {bundle.dependencies})")
        return bundle

    def _load_customized(self, name: str) -> BundleDefinition:
        if name not in self._customized:
            return self._loader.load(name)

        custom = self._customized[name]
        if custom is False:
            logger.debug(f"Bundle '{name}' is disabled; using empty bundle")
            return BundleDefinition.empty(name)

        if isinstance(custom, BundleDefinition):
            return custom if custom.name == name else custom.model_copy(update={"name": name})

        if isinstance(custom, Mapping):
            base = self._loader.load(name)
            merged = {**base.model_dump(), **custom, "name": name}
            try:
                return BundleDefinition.model_validate(merged)
            except ValidationError as e:
                raise InvalidConfigError(f'Invalid customization of the "{name}" asset bundle: {e}') from e

        raise InvalidConfigError(f'Invalid configuration of the "{name}" asset bundle.')

    def _apply_defaults(self, bundle: BundleDefinition) -> BundleDefinition:
        if bundle.remote:
            return bundle

        update: dict[str, str] = {}
        if bundle.base_path is None and self._base_path is not None:
            update["base_path"] = self._base_path
        if bundle.base_url is None and self._base_url is not None:
            update["base_url"] = self._base_url
        return bundle.model_copy(update=update) if update else bundle
