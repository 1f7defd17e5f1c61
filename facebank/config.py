"""
Configuration loading.

Configuration is a nested dictionary read from YAML; each component reads
its own section and falls back to its defaults for missing keys.
"""

import copy
import logging
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'recognition': {
        'max_distance': 0.6,
        'min_confidence': 0.5,
        'match_threshold': 0.6
    },
    'training': {
        'max_samples_per_identity': 10,
        'min_training_samples': 3,
        'recommended_samples': 5
    },
    'extraction': {
        'min_overlap': 0.5
    },
    'storage': {
        'backend': 'file',
        'path': 'data',
        'key': 'facial_recognition_database'
    },
    'logging': {
        'level': 'INFO',
        'file': None
    }
}


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """
    Load configuration from a YAML file.

    Sections and keys missing from the file keep their defaults. An unreadable
    file yields the default configuration.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    config = get_default_config()
    if not config_path:
        return config

    try:
        with open(config_path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
        logger.info(f"Configuration loaded from {config_path}")
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load config: {e}")
        return config

    if not isinstance(loaded, dict):
        logger.error(f"Config file {config_path} does not hold a mapping, using defaults")
        return config

    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values

    return config
