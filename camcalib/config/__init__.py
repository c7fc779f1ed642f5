"""
Configuration loading for camcalib.

The packaged ``default.yaml`` holds every setting; a user YAML file only
needs the keys it overrides.
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_default_config() -> Dict[str, Any]:
    """Load the packaged default configuration."""
    with open(DEFAULT_CONFIG_PATH, 'r') as f:
        return yaml.safe_load(f)


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration, overlaying an optional user file on the defaults.

    Args:
        config_path: Path to a YAML file; missing or None means defaults only

    Returns:
        Configuration dictionary
    """
    config = load_default_config()

    if config_path is None:
        return config

    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Config file not found: {path}, using defaults")
        return config

    with open(path, 'r') as f:
        user_config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {path}")
    return _deep_merge(config, user_config)
