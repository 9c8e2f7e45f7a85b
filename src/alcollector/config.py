"""
Collector Configuration

Loads configuration from a YAML file, then applies environment overrides.

    AL_SOURCE_ROOTS   source roots, os.pathsep separated, highest priority first
    AL_BUNDLE_ROOT    directory holding the asset bundles
    AL_DATA_PATH      script search path (relative values resolve per root)
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from alcollector.resolver.loader import DEFAULT_EXCLUDED_SHIP_IDS, ResolverSettings

logger = logging.getLogger(__name__)


# Default configuration file locations (checked in order)
CONFIG_SEARCH_PATHS = [
    Path.home() / ".alcollector" / "collector_config.yaml",
    Path(__file__).parent / "collector_config.yaml",
]


DEFAULT_CONFIG: Dict[str, Any] = {
    "source_roots": [],
    "bundle_root": None,
    "script_path": None,

    # Asset extraction
    "bundle_subfolder": "shipmodels",
    "image_format": "WEBP",

    # Processing
    "parallel_roots": False,
    "max_workers": 4,

    # Inclusive id range of placeholder ships to skip
    "excluded_ship_ids": list(DEFAULT_EXCLUDED_SHIP_IDS),
}


class CollectorConfig:
    """Configuration for a collection run."""

    def __init__(self, config_path: Optional[Path] = None):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Optional[Path] = None

        self._load_config(config_path)
        self._apply_env_overrides()

    def _load_config(self, explicit_path: Optional[Path] = None) -> None:
        """Load configuration from YAML file."""
        search_paths = [Path(explicit_path)] if explicit_path else CONFIG_SEARCH_PATHS

        for config_path in search_paths:
            if config_path and config_path.exists():
                try:
                    with open(config_path, 'r', encoding='utf-8') as f:
                        user_config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.warning(f"Failed to load config from {config_path}: {e}")
                    continue
                if not isinstance(user_config, dict):
                    logger.warning(f"Ignoring config {config_path}: top level is not a mapping")
                    continue
                self._config.update(user_config)
                self._config_path = config_path
                return

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        if "AL_SOURCE_ROOTS" in os.environ:
            value = os.environ["AL_SOURCE_ROOTS"]
            self._config["source_roots"] = [p for p in value.split(os.pathsep) if p]

        env_mappings = {
            "AL_BUNDLE_ROOT": "bundle_root",
            "AL_DATA_PATH": "script_path",
        }
        for env_var, config_key in env_mappings.items():
            if env_var in os.environ:
                self._config[config_key] = os.environ[env_var]

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if using defaults."""
        return self._config_path

    @property
    def source_roots(self) -> List[Path]:
        """Source roots in priority order."""
        return [Path(p).expanduser() for p in self._config.get("source_roots") or []]

    @property
    def bundle_root(self) -> Optional[Path]:
        value = self._config.get("bundle_root")
        return Path(value).expanduser() if value else None

    @property
    def script_path(self) -> Optional[str]:
        return self._config.get("script_path") or None

    @property
    def bundle_subfolder(self) -> str:
        return self._config.get("bundle_subfolder", "shipmodels")

    @property
    def image_format(self) -> str:
        return str(self._config.get("image_format", "WEBP")).upper()

    @property
    def parallel_roots(self) -> bool:
        return bool(self._config.get("parallel_roots", False))

    @property
    def max_workers(self) -> int:
        return int(self._config.get("max_workers", 4))

    @property
    def excluded_ship_ids(self) -> tuple:
        low, high = self._config.get("excluded_ship_ids", DEFAULT_EXCLUDED_SHIP_IDS)
        return (int(low), int(high))

    def to_settings(self) -> ResolverSettings:
        """Resolver settings for this configuration."""
        return ResolverSettings(
            excluded_ship_ids=self.excluded_ship_ids,
            script_path=self.script_path,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        return {
            "source_roots": [str(p) for p in self.source_roots],
            "bundle_root": str(self.bundle_root) if self.bundle_root else None,
            "script_path": self.script_path,
            "bundle_subfolder": self.bundle_subfolder,
            "image_format": self.image_format,
            "parallel_roots": self.parallel_roots,
            "max_workers": self.max_workers,
            "excluded_ship_ids": list(self.excluded_ship_ids),
            "config_file": str(self._config_path) if self._config_path else None,
        }


# Global config instance (lazy-loaded)
_config: Optional[CollectorConfig] = None


def get_config(config_path: Optional[Path] = None) -> CollectorConfig:
    """Get the global config instance, loading if needed."""
    global _config
    if _config is None or config_path is not None:
        _config = CollectorConfig(config_path)
    return _config
