"""
BrandkitConfig: Project-level settings for resolution and snapshots.

This module provides:

- find_config_file: Walk up directories to locate .brandkit.toml
- deep_merge: Recursively merge two dicts (override wins for leaf values)
- BrandkitConfig: Typed settings with load/from_dict constructors
- configure_logging: Apply the configured log level to the root logger

Configuration is loaded from `.brandkit.toml` with optional
`.brandkit.local.toml` overrides merged on top. Every setting has a default,
so a missing file is not an error.

Example `.brandkit.toml`::

    [resolution]
    max_reference_passes = 10

    [snapshot]
    ttl_seconds = 86400

    [logging]
    level = "INFO"
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

from brandkit.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".brandkit.toml"
LOCAL_CONFIG_FILENAME = ".brandkit.local.toml"

# Ceiling on semantic dereferencing passes. Cycles and over-long chains are
# left partially resolved once it is reached.
DEFAULT_MAX_REFERENCE_PASSES = 10

DEFAULT_LOG_LEVEL = "WARNING"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """
    Walk up from *start_dir* to find `.brandkit.toml`.

    Args:
        start_dir: Directory to start searching from. Defaults to ``Path.cwd()``.

    Returns:
        Path to the config file, or ``None`` if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate

        parent = current.parent
        if parent == current:
            return None
        current = parent


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts. *override* wins for leaf values.

    Neither input is mutated; a new dict is returned.
    """
    merged: dict[str, Any] = {}

    for key in base.keys() | override.keys():
        if key in base and key in override:
            base_val = base[key]
            over_val = override[key]
            if isinstance(base_val, dict) and isinstance(over_val, dict):
                merged[key] = deep_merge(base_val, over_val)
            else:
                merged[key] = over_val
        elif key in base:
            merged[key] = base[key]
        else:
            merged[key] = override[key]

    return merged


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BrandkitConfig:
    """
    Resolved brandkit settings.

    Attributes:
        max_reference_passes: Ceiling on semantic dereferencing passes.
        snapshot_ttl: Default snapshot lifetime; ``None`` means snapshots
            never expire.
        log_level: Level name applied by :func:`configure_logging`.
        source: The config file these settings came from, if any.
    """

    max_reference_passes: int = DEFAULT_MAX_REFERENCE_PASSES
    snapshot_ttl: timedelta | None = None
    log_level: str = DEFAULT_LOG_LEVEL
    source: Path | None = None

    def __post_init__(self) -> None:
        passes = self.max_reference_passes
        if isinstance(passes, bool) or not isinstance(passes, int) or passes < 1:
            raise ConfigurationError(
                f"max_reference_passes must be a positive integer, got {passes!r}"
            )
        if self.snapshot_ttl is not None and self.snapshot_ttl <= timedelta(0):
            raise ConfigurationError(
                f"snapshot_ttl must be positive, got {self.snapshot_ttl!r}"
            )
        level = str(self.log_level).upper()
        if level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level {self.log_level!r}. Expected one of {', '.join(_LOG_LEVELS)}"
            )
        object.__setattr__(self, "log_level", level)

    @classmethod
    def default(cls) -> BrandkitConfig:
        """Settings with every default applied."""
        return cls()

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        local_overrides: dict[str, Any] | None = None,
        source: Path | None = None,
    ) -> BrandkitConfig:
        """
        Create settings from parsed TOML data.

        Args:
            data: Parsed TOML data from the base config file.
            local_overrides: Parsed TOML data from the local override file;
                deep-merged on top of *data*.
            source: Where *data* was read from, for diagnostics.

        Raises:
            ConfigurationError: If a value has the wrong type or range.
        """
        merged = deep_merge(data, local_overrides or {})

        resolution = merged.get("resolution", {})
        snapshot = merged.get("snapshot", {})
        logging_section = merged.get("logging", {})

        ttl_seconds = snapshot.get("ttl_seconds")
        snapshot_ttl: timedelta | None = None
        if ttl_seconds is not None:
            if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, (int, float)):
                raise ConfigurationError(
                    f"snapshot.ttl_seconds must be a number, got {ttl_seconds!r}"
                )
            snapshot_ttl = timedelta(seconds=ttl_seconds)

        return cls(
            max_reference_passes=resolution.get(
                "max_reference_passes", DEFAULT_MAX_REFERENCE_PASSES
            ),
            snapshot_ttl=snapshot_ttl,
            log_level=logging_section.get("level", DEFAULT_LOG_LEVEL),
            source=source,
        )

    @classmethod
    def load(cls, start_dir: Path | None = None) -> BrandkitConfig:
        """
        Find and load settings.

        Walks up from *start_dir* (default: cwd) to locate ``.brandkit.toml``,
        parses it, and deep-merges ``.brandkit.local.toml`` from the same
        directory when present. Returns defaults when no file is found.
        """
        config_path = find_config_file(start_dir)
        if config_path is None:
            logger.debug(f"No {CONFIG_FILENAME} found; using default settings")
            return cls.default()

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        local_overrides: dict[str, Any] = {}
        local_path = config_path.parent / LOCAL_CONFIG_FILENAME
        if local_path.is_file():
            with open(local_path, "rb") as f:
                local_overrides = tomllib.load(f)

        logger.debug(f"Loaded settings from {config_path}")
        return cls.from_dict(data, local_overrides=local_overrides, source=config_path)


def configure_logging(config: BrandkitConfig | None = None) -> None:
    """
    Configure root logging for a host process at the configured level.

    The library itself never installs handlers; call this from an entry point.
    """
    settings = config or BrandkitConfig.default()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
