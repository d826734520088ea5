"""
Loading of the optional project configuration file.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from .models import Config


logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".pr-cleaner-ai.config.json"


def get_config_path(project_root: Optional[Path] = None) -> Path:
    """Path of the config file in the project root (default: cwd)."""
    return (project_root or Path.cwd()) / CONFIG_FILENAME


def load_config(project_root: Optional[Path] = None) -> Config:
    """
    Load .pr-cleaner-ai.config.json from the project root.

    A missing file yields the defaults. An unreadable or malformed file is
    logged as a warning and also yields the defaults.

    Args:
        project_root: Directory holding the config file (default: cwd)

    Returns:
        Loaded configuration
    """
    config_path = get_config_path(project_root)

    if not config_path.exists():
        return Config()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}. Using default configuration.")
        return Config()

    if not isinstance(data, dict):
        logger.warning(f"Config in {config_path} must be a JSON object. Using default configuration.")
        return Config()

    config = Config.from_dict(data)
    logger.debug(f"Loaded config from {config_path}: {config}")
    return config
