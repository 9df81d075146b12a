"""Pydantic schemas for asset bundle definitions."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .exceptions import InvalidFileEntryError


class PublishOptions(BaseModel):
    """Per-bundle publishing overrides."""

    model_config = ConfigDict(frozen=True)

    force_copy: bool | None = Field(
        None, description="Copy even if the destination exists. None defers to the publisher setting."
    )


class FileSpec(BaseModel):
    """A single script or style entry after normalization."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Asset URL or path relative to the bundle")
    key: str | None = Field(None, description="Explicit deduplication key; defaults to the resolved URL")
    position: int | None = Field(None, description="Per-entry position override")
    options: dict[Any, Any] = Field(default_factory=dict, description="Entry-specific options")


class BundleDefinition(BaseModel):
    """Declarative asset bundle.

    Definitions are immutable. Publishing fills in base_path/base_url by
    producing a copy, and position changes made during registration live on
    the registry entry, never on the definition.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique bundle identifier")
    dependencies: list[str] = Field(default_factory=list, description="Names of bundles this one depends on")
    scripts: list[Any] = Field(default_factory=list, description="Raw script entries")
    styles: list[Any] = Field(default_factory=list, description="Raw style entries")
    script_options: dict[Any, Any] = Field(default_factory=dict, description="Defaults merged into each script")
    style_options: dict[Any, Any] = Field(default_factory=dict, description="Defaults merged into each style")
    source_path: str | None = Field(None, description="Directory (or file) holding the bundle sources")
    base_path: str | None = Field(None, description="Directory the bundle is published under")
    base_url: str | None = Field(None, description="URL the published directory is served from")
    remote: bool = Field(False, description="Assets are served from a CDN; skip publishing and disk checks")
    script_position: int | None = Field(None, description="Minimum position hint for scripts")
    style_position: int | None = Field(None, description="Minimum position hint for styles")
    publish_options: PublishOptions = Field(default_factory=PublishOptions)

    @classmethod
    def empty(cls, name: str) -> "BundleDefinition":
        """Return a bundle with no files, dependencies or source."""
        return cls(name=name)


def _split_options(data: Mapping[Any, Any]) -> tuple[str | None, Any, dict[Any, Any]]:
    options = dict(data)
    key = options.pop("key", None)
    position = options.pop("position", None)
    return key, position, options


def normalize_entry(raw: Any) -> FileSpec:
    """Normalize a raw script/style entry into a FileSpec.

    Accepted shapes:
    - ``"js/app.js"``
    - ``("js/app.js", 3)`` or ``("js/app.js", {"defer": True})`` or ``("js/app.js", 3, {...})``
    - ``{"url": "js/app.js", "key": "app", "position": 3, "defer": True}``

    Raises:
        InvalidFileEntryError: If the URL is empty or not a string, or the shape is unknown
    """
    if isinstance(raw, FileSpec):
        return raw

    key: Any = None
    position: Any = None
    options: dict[Any, Any] = {}

    if isinstance(raw, str):
        url: Any = raw
    elif isinstance(raw, Mapping):
        data = dict(raw)
        url = data.pop("url", None)
        key, position, options = _split_options(data)
    elif isinstance(raw, (list, tuple)):
        if not raw:
            raise InvalidFileEntryError("File entry must not be empty")
        url = raw[0]
        for item in raw[1:]:
            if isinstance(item, Mapping):
                item_key, item_position, item_options = _split_options(item)
                key = item_key if item_key is not None else key
                position = item_position if item_position is not None else position
                options.update(item_options)
            elif isinstance(item, int) and not isinstance(item, bool):
                position = item
            else:
                raise InvalidFileEntryError(f"Unsupported item {item!r} in file entry {raw!r}")
    else:
        raise InvalidFileEntryError(f"Unsupported file entry: {raw!r}")

    if not isinstance(url, str) or not url.strip():
        raise InvalidFileEntryError(f"File entry URL must be a non-empty string, got {url!r}")
    if key is not None and not isinstance(key, str):
        raise InvalidFileEntryError(f"File entry key must be a string, got {key!r}")
    if position is not None and (isinstance(position, bool) or not isinstance(position, int)):
        raise InvalidFileEntryError(f"File entry position must be an integer, got {position!r}")

    return FileSpec(url=url, key=key, position=position, options=options)
