"""
Configuration file handling for grounded-modkit.

The configuration is a flat YAML mapping stored under the platformdirs config
directory. Missing keys fall back to DEFAULT_CONFIG.
"""

import os
from typing import Any, Dict, Optional, Tuple

import platformdirs
import yaml

from grounded_modkit.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_RELEASE_TAG,
    STORE_STEAM,
    STORE_XBOX,
)
from grounded_modkit.exceptions import ConfigFileError
from grounded_modkit.log_utils import logger

CONFIG_DIR = platformdirs.user_config_dir(APP_NAME)
CONFIG_FILE = os.path.join(CONFIG_DIR, CONFIG_FILE_NAME)

SUPPORTED_STORES = ("", STORE_STEAM, STORE_XBOX)

DEFAULT_CONFIG: Dict[str, Any] = {
    "GITHUB_TOKEN": None,
    "ALLOW_ENV_TOKEN": True,
    "LOG_LEVEL": "INFO",
    "LOG_DIR": None,
    "GAME_PATH": None,
    "GAME_STORE": "",
    "RELEASE_TAG": DEFAULT_RELEASE_TAG,
}


def get_default_config() -> Dict[str, Any]:
    """Return a fresh copy of the default configuration."""
    return dict(DEFAULT_CONFIG)


def config_exists(config_file: Optional[str] = None) -> Tuple[bool, str]:
    """
    Check whether a configuration file is present.

    Parameters:
        config_file (Optional[str]): Explicit file to check; CONFIG_FILE when omitted.

    Returns:
        Tuple[bool, str]: (exists, path) for the checked file.
    """
    path = config_file or CONFIG_FILE
    return os.path.exists(path), path


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the configuration YAML merged over the defaults.

    A missing file yields the defaults. An empty document is treated as an
    empty mapping. Unknown keys are preserved so newer files keep loading.

    Parameters:
        config_file (Optional[str]): File to load; CONFIG_FILE when omitted.

    Returns:
        Dict[str, Any]: The effective configuration.

    Raises:
        ConfigFileError: If the file cannot be read, is not valid YAML, or does not contain a mapping.
    """
    exists, path = config_exists(config_file)
    config = get_default_config()
    if not exists:
        logger.debug(f"No configuration at {path}; using defaults")
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid YAML in {path}", details=str(e)) from e
    except OSError as e:
        raise ConfigFileError(f"Unable to read {path}", details=str(e)) from e

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigFileError(
            f"Configuration in {path} must be a mapping",
            details=f"got {type(loaded).__name__}",
        )

    config.update(loaded)
    store = config.get("GAME_STORE") or ""
    if store not in SUPPORTED_STORES:
        logger.warning(f"Unknown GAME_STORE '{store}' in {path}; ignoring it")
        config["GAME_STORE"] = ""
    return config


def save_config(config: Dict[str, Any], config_file: Optional[str] = None) -> str:
    """
    Write the configuration mapping as YAML, creating the directory if needed.

    Returns:
        str: The path that was written.

    Raises:
        ConfigFileError: If the file cannot be written.
    """
    path = config_file or CONFIG_FILE
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=True)
    except OSError as e:
        raise ConfigFileError(f"Unable to write {path}", details=str(e)) from e
    logger.info(f"Configuration saved to {path}")
    return path
