"""
Configuration loader — reads config.yml into a Settings model.

The config file is optional.  Resolution order for its location:
explicit path (``--config``)  >  ROSENV_CONFIG  >  XDG config dir.
ROSENV_CANONICAL_DIR and ROSENV_CACHE_DIR override the file values.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from rosenv.core.models.settings import Settings

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yml"

# Environment overrides: env var → Settings field
_ENV_OVERRIDES = {
    "ROSENV_CANONICAL_DIR": "canonical_dir",
    "ROSENV_CACHE_DIR": "cache_dir",
}


class ConfigError(Exception):
    """Raised when the configuration file is invalid or unreadable."""


def default_config_path(environ: Mapping[str, str]) -> Path:
    """Return the per-user config path (``$XDG_CONFIG_HOME/rosenv/config.yml``)."""
    base = environ.get("XDG_CONFIG_HOME")
    config_home = Path(base) if base else Path.home() / ".config"
    return config_home / "rosenv" / CONFIG_FILE


def find_config_file(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path | None:
    """Locate the config file to load.

    An explicit path is returned as-is (the loader reports it if missing).
    Otherwise ROSENV_CONFIG and then the per-user default are tried.

    Returns:
        Path to the config file, or None when no config applies.
    """
    if path is not None:
        return path

    env = environ or {}
    if env.get("ROSENV_CONFIG"):
        return Path(env["ROSENV_CONFIG"]).expanduser()

    candidate = default_config_path(env)
    return candidate if candidate.is_file() else None


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit config path. If None, the default locations are searched.
        environ: Environment mapping used for lookup and overrides.

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If an explicitly named file is missing or any file is invalid.
    """
    env = environ or {}
    config_path = find_config_file(path, env)

    data: dict = {}
    if config_path is not None:
        data = _read_config(config_path)

    for var, field_name in _ENV_OVERRIDES.items():
        if env.get(var):
            logger.debug("Override %s from %s", field_name, var)
            data[field_name] = env[var]

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug(
        "Settings: canonical_dir=%s cache_dir=%s prefix=%s",
        settings.canonical_dir, settings.cache_dir, settings.prefix,
    )
    return settings


def _read_config(path: Path) -> dict:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data
