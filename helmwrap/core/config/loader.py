"""
Configuration loader — reads helmwrap.yml into the settings model.

It reads YAML, validates against the Pydantic schema, and returns a
typed ``Settings`` object.  No file means default settings.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from helmwrap.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "helmwrap.yml"


class ConfigError(Exception):
    """Raised when the helmwrap configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for helmwrap.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to helmwrap.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate the helmwrap configuration.

    Args:
        path: Explicit path to helmwrap.yml. If None, searches upward and
            falls back to defaults when nothing is found.

    Returns:
        Validated Settings model.  A relative ``helm.cwd`` is resolved
        against the directory holding the config file.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE)
            return Settings()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    cwd = settings.helm.cwd
    if cwd and not Path(cwd).is_absolute():
        settings.helm.cwd = str(path.parent.resolve() / cwd)

    logger.info("Loaded settings from %s (helm=%s)", path, settings.helm.binary)
    return settings
