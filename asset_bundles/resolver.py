"""Dependency resolution for asset bundles.

Registering a bundle registers its whole dependency closure, depth first,
appending each bundle only after all of its dependencies. The registry is
therefore topologically ordered: a dependency always precedes its dependents.

Position hints flow from dependents to dependencies as a non-decreasing
minimum. A dependency that already sits at a later position than a
dependent requires is a conflict.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from .exceptions import CircularDependencyError
from .exceptions import PositionConflictError
from .publisher import AssetPublisher
from .schema import BundleDefinition
from .store import BundleStore

logger = logging.getLogger(__name__)


@dataclass
class RegistryEntry:
    """A registered bundle with its resolved positions."""

    bundle: BundleDefinition
    script_position: int | None = None
    style_position: int | None = None

    @classmethod
    def from_bundle(cls, bundle: BundleDefinition) -> RegistryEntry:
        return cls(bundle=bundle, script_position=bundle.script_position, style_position=bundle.style_position)

    @property
    def name(self) -> str:
        return self.bundle.name

    @property
    def dependencies(self) -> list[str]:
        return self.bundle.dependencies

    def require_positions(self, script_position: int | None, style_position: int | None) -> bool:
        """Tighten positions to the requested minimums.

        Returns:
            True if either position changed

        Raises:
            PositionConflictError: If a position is already later than requested
        """
        changed = False
        for axis, requested in (("script", script_position), ("style", style_position)):
            if requested is None:
                continue
            current = getattr(self, f"{axis}_position")
            if current is not None and current > requested:
                raise PositionConflictError(self.name, axis)
            if current is None or current < requested:
                setattr(self, f"{axis}_position", requested)
                changed = True
        return changed


class RegistrationSession:
    """Registry owned by one logical registration session.

    Entries are kept in registration order, which is the topological order
    produced by DependencyResolver. After a failed registration the content
    is undefined; callers needing atomicity should use snapshot()/restore().
    """

    def __init__(self) -> None:
        self._registry: dict[str, RegistryEntry] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._registry

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(list(self._registry.values()))

    def __len__(self) -> int:
        return len(self._registry)

    def get(self, name: str) -> RegistryEntry | None:
        return self._registry.get(name)

    def add(self, entry: RegistryEntry) -> None:
        self._registry[entry.name] = entry

    def names(self) -> list[str]:
        return list(self._registry)

    def snapshot(self) -> dict[str, RegistryEntry]:
        """Return a deep enough copy to restore positions and order later."""
        return {
            name: RegistryEntry(entry.bundle, entry.script_position, entry.style_position)
            for name, entry in self._registry.items()
        }

    def restore(self, snapshot: dict[str, RegistryEntry]) -> None:
        self._registry = dict(snapshot)


class DependencyResolver:
    """Registers bundles and their dependency closures into a session."""

    def __init__(self, store: BundleStore, publisher: AssetPublisher | None = None):
        """
        Args:
            store: Source of bundle definitions
            publisher: Publishes local bundles with a source_path. Without one,
                bundles are registered as loaded.
        """
        self._store = store
        self._publisher = publisher

    def register(
        self,
        session: RegistrationSession,
        name: str,
        script_position: int | None = None,
        style_position: int | None = None,
    ) -> RegistryEntry:
        """Register name and all of its dependencies.

        Args:
            session: Registry to register into
            name: Bundle name
            script_position: Minimum script position required by the caller
            style_position: Minimum style position required by the caller

        Returns:
            The registry entry for name

        Raises:
            CircularDependencyError: If name depends on itself, directly or transitively
            PositionConflictError: If a position requirement cannot be met
        """
        return self._register(session, name, script_position, style_position, {})

    def _register(
        self,
        session: RegistrationSession,
        name: str,
        script_position: int | None,
        style_position: int | None,
        visiting: dict[str, None],
    ) -> RegistryEntry:
        if name in visiting:
            raise CircularDependencyError(name, list(visiting))

        entry = session.get(name)
        if entry is None:
            bundle = self._publish(self._store.get(name))
            entry = RegistryEntry.from_bundle(bundle)

            visiting[name] = None
            try:
                for dep in bundle.dependencies:
                    self._register(session, dep, entry.script_position, entry.style_position, visiting)
            finally:
                visiting.pop(name, None)

            session.add(entry)
            logger.debug(f"Registered bundle '{name}'", extra={"event": "asset.register", "bundle": name})

        if script_position is not None or style_position is not None:
            if entry.require_positions(script_position, style_position):
                logger.debug(
                    f"Bundle '{name}' positions now script={entry.script_position} style={entry.style_position}"
                )
                for dep in entry.dependencies:
                    self._register(session, dep, entry.script_position, entry.style_position, visiting)

        return entry

    def _publish(self, bundle: BundleDefinition) -> BundleDefinition:
        if bundle.remote or not bundle.source_path or self._publisher is None:
            return bundle

        base_path, base_url = self._publisher.publish(bundle)
        return bundle.model_copy(update={"base_path": str(base_path), "base_url": base_url})
