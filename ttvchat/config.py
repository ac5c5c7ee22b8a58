"""Configuration management."""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ttvchat.models import Config

logger = logging.getLogger(__name__)


def default_config_path() -> Path:
    """Location of the saved state file."""
    return Path.home() / ".ttvchat" / "state.yaml"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file.

    Any failure (missing file, unreadable file, bad YAML, bad fields)
    falls back to an empty configuration.
    """
    if config_path is None:
        config_path = default_config_path()

    if not config_path.exists():
        # Return default config
        return Config()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to read config {config_path}: {e}")
        return Config()

    if not isinstance(data, dict):
        return Config()

    try:
        return Config(**data)
    except ValidationError as e:
        logger.warning(f"Invalid config {config_path}: {e}")
        return Config()


def save_config(config: Config, config_path: Optional[Path] = None) -> bool:
    """Save configuration to YAML file.

    Returns:
        True if the file was written
    """
    if config_path is None:
        config_path = default_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.safe_dump(config.model_dump(exclude_none=True), f)
    except OSError as e:
        logger.error(f"Failed to save config {config_path}: {e}")
        return False

    logger.info(f"Saved config to {config_path}")
    return True
