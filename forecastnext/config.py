"""
Load user configuration for sessions and the command line.
"""

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "backend": "lightgbm",
    "csv_engine": "pandas",
    "model": {},
    "logging": {"level": "INFO"},
}


def load_config(config_path) -> dict:
    """
    Load configuration from a YAML file and merge it over DEFAULT_CONFIG.

    Parameters
    ----------
    config_path : str or Path
        Path to the YAML configuration file.

    Returns
    ----------
    A dictionary with the keys "backend", "csv_engine", "model" and "logging".

    Raises
    ----------
    FileNotFoundError
        If the file doesn't exist.
    ValueError
        If the file doesn't contain a YAML mapping.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        user_config = yaml.safe_load(f)

    if user_config is None:
        user_config = {}

    if not isinstance(user_config, dict):
        raise ValueError(
            f"Expected a mapping at the top of {config_path}, got {type(user_config).__name__}"
        )

    config = _merge_config(DEFAULT_CONFIG, user_config)

    logger.info(f"Loaded configuration from {config_path}")
    return config


def _merge_config(defaults: dict, overrides: dict) -> dict:
    """Merge overrides into a copy of defaults, one level of nesting deep"""
    merged = {
        key: dict(value) if isinstance(value, dict) else value
        for key, value in defaults.items()
    }

    for key, value in overrides.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key].update(value)
        else:
            merged[key] = value

    return merged
