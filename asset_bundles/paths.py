"""Path alias resolution.

Bundle definitions refer to directories and URLs through aliases so the same
definition works across deployments:

- ``@assets/css`` -> ``/var/www/public/assets/css``
- ``@assetsUrl`` -> ``/assets``

Values that do not start with ``@`` are returned unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from .exceptions import InvalidConfigError

logger = logging.getLogger(__name__)


class PathResolver(Protocol):
    """Protocol for alias/path resolvers."""

    def resolve(self, value: str) -> str:
        """Expand aliases in a path or URL."""
        ...


class AliasPathResolver:
    """Expands ``@alias`` prefixes using a fixed alias table."""

    def __init__(self, aliases: Mapping[str, str] | None = None):
        """Initialize resolver.

        Args:
            aliases: Mapping of alias (with or without leading ``@``) to path or URL.
                Targets may themselves start with another alias.
        """
        self._aliases: dict[str, str] = {}
        for alias, target in (aliases or {}).items():
            name = alias if alias.startswith("@") else f"@{alias}"
            self._aliases[name.rstrip("/")] = str(target).rstrip("/") or "/"

    def with_alias(self, alias: str, target: str) -> "AliasPathResolver":
        """Return a new resolver with one alias added or replaced."""
        return AliasPathResolver({**self._aliases, alias: target})

    def resolve(self, value: str) -> str:
        return self._resolve(value, ())

    def _resolve(self, value: str, seen: tuple[str, ...]) -> str:
        if not value.startswith("@"):
            return value

        root, sep, rest = value.partition("/")
        if root not in self._aliases:
            raise InvalidConfigError(f'Invalid path alias: "{root}" in "{value}"')
        if root in seen:
            raise InvalidConfigError(f"Alias cycle detected: {' -> '.join([*seen, root])}")

        target = self._resolve(self._aliases[root], (*seen, root))
        if not sep:
            return target
        resolved = f"{target.rstrip('/')}/{rest}"
        logger.debug(f"Resolved alias {value} -> {resolved}")
        return resolved
