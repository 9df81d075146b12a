"""Layered asset settings loaded from settings.yaml files.

Three scopes, lowest to highest precedence:
- User global (~/.assets/settings.yaml)
- Project (.assets/settings.yaml)
- Local (.assets/settings.local.yaml)

Plus an optional file named by ASSET_BUNDLES_SETTINGS, which wins over all.
All settings live under a top-level ``assets:`` key.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from .exceptions import InvalidConfigError
from .publisher import PublisherConfig

logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "ASSET_BUNDLES_SETTINGS"

# Sections merged key-by-key across scopes instead of replaced
MERGED_SECTIONS = frozenset({"aliases", "asset_map", "customized_bundles"})


class AssetSettings(BaseModel):
    """Asset pipeline settings."""

    base_path: str | None = Field(None, description="Default publish directory for local bundles")
    base_url: str | None = Field(None, description="Default publish URL for local bundles")
    aliases: dict[str, str] = Field(default_factory=dict, description="Path/URL aliases (@name -> target)")
    bundle_paths: list[Path] = Field(default_factory=list, description="Search paths for bundle definition files")
    asset_map: dict[str, str] = Field(default_factory=dict, description="Asset remap table (suffix -> target)")
    allowed_bundles: list[str] = Field(
        default_factory=list, description="If set, only these bundles and their dependencies may be registered"
    )
    customized_bundles: dict[str, dict[str, Any] | bool] = Field(
        default_factory=dict, description="Per-bundle field overrides, or false to disable a bundle"
    )
    force_copy: bool = Field(False, description="Republish even when the destination exists")
    link_assets: bool = Field(False, description="Symlink source directories instead of copying")
    dir_mode: int = Field(0o775, description="Permission bits for created directories")
    log_path: Path | None = Field(
        None, description="JSONL log file; when set, create_asset_manager installs the log sink"
    )
    log_level: str | None = Field(
        None, description="Root level for the JSONL sink (default: ASSET_BUNDLES_LOG_LEVEL or INFO)"
    )

    def publisher_config(self) -> PublisherConfig:
        return PublisherConfig(force_copy=self.force_copy, link_assets=self.link_assets, dir_mode=self.dir_mode)


def default_settings_paths(project_dir: Path | None = None) -> list[Path]:
    """Get settings file paths in precedence order (lowest to highest)."""
    if project_dir is None:
        project_dir = Path(".assets")

    paths = [
        Path.home() / ".assets" / "settings.yaml",
        project_dir / "settings.yaml",
        project_dir / "settings.local.yaml",
    ]
    if env_path := os.environ.get(SETTINGS_ENV_VAR):
        paths.append(Path(env_path))
    return paths


def _read_settings(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise InvalidConfigError(f"Cannot parse settings file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfigError(f"Settings file {path} must contain a mapping")

    section = data.get("assets") or {}
    if not isinstance(section, dict):
        raise InvalidConfigError(f"'assets' in {path} must be a mapping")
    return section


def merge_settings(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge one settings scope over another."""
    merged = {**base, **overlay}
    for section in MERGED_SECTIONS:
        if isinstance(base.get(section), dict) and isinstance(overlay.get(section), dict):
            merged[section] = {**base[section], **overlay[section]}
    return merged


def load_settings(*paths: Path) -> AssetSettings:
    """Load and merge settings files.

    Args:
        paths: Settings files, lowest precedence first. Missing files are skipped.
            Defaults to default_settings_paths().

    Raises:
        InvalidConfigError: If a file is malformed or the merged settings are invalid
    """
    merged: dict[str, Any] = {}
    for path in paths or default_settings_paths():
        if not path.exists():
            continue
        merged = merge_settings(merged, _read_settings(path))
        logger.debug(f"Loaded asset settings from {path}")

    try:
        return AssetSettings.model_validate(merged)
    except ValidationError as e:
        raise InvalidConfigError(f"Invalid asset settings: {e}") from e
