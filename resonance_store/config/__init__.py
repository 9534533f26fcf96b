"""
Configuration management for the store.

This module loads the song metadata a store is created with (title and
pulses-per-quarter-note resolution) from TOML files. The store keeps these
values for the host and does not interpret them.

File layout:

    [song]
    title = "Untitled"
    ppq = 480
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from resonance_store.core import ConfigError

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent

DEFAULT_TITLE = "Untitled"
DEFAULT_PPQ = 480


@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Song metadata a store is created with."""

    title: str = DEFAULT_TITLE
    ppq: int = DEFAULT_PPQ

    def __post_init__(self) -> None:
        if isinstance(self.ppq, bool) or not isinstance(self.ppq, int) or self.ppq <= 0:
            raise ConfigError(f"ppq must be a positive integer, got {self.ppq!r}")
        if not isinstance(self.title, str):
            raise ConfigError(f"title must be a string, got {self.title!r}")


def _parse_song(data: dict[str, Any]) -> StoreConfig:
    """Parse the [song] section from the TOML data."""
    song = data.get("song", {})
    if not isinstance(song, dict):
        raise ConfigError("[song] must be a table")
    return StoreConfig(
        title=song.get("title", DEFAULT_TITLE),
        ppq=song.get("ppq", DEFAULT_PPQ),
    )


def load_store_config(config_path: Path | None = None) -> StoreConfig:
    """
    Load store configuration from a TOML file.

    Args:
        config_path: Path to the TOML file. If None, uses the packaged store.toml.

    Returns:
        Loaded StoreConfig instance.

    Raises:
        ConfigError: If the file cannot be read or holds invalid values.
    """
    if config_path is None:
        config_path = CONFIG_DIR / "store.toml"

    logger.debug("Loading store config from %s", config_path)

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read store config {config_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid store config {config_path}: {e}") from e

    return _parse_song(data)


# Global singleton instance (lazy loaded)
_store_config: StoreConfig | None = None


def get_store_config() -> StoreConfig:
    """
    Get the global store configuration (lazy loaded singleton).

    Returns:
        The StoreConfig instance.
    """
    global _store_config

    if _store_config is None:
        _store_config = load_store_config()

    return _store_config


def reload_store_config() -> StoreConfig:
    """
    Force reload of the store configuration.

    Returns:
        The newly loaded StoreConfig instance.
    """
    global _store_config
    _store_config = load_store_config()
    return _store_config
