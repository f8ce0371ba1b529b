# shadowledger/settings.py
"""
Handles loading and saving engine settings from a JSON file.

The settings file location can be overridden with SHADOWLEDGER_SETTINGS.
SHADOWLEDGER_DB_URL and SHADOWLEDGER_DATA_DIR override the matching keys
after the file has been read.
"""
import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger("shadowledger.settings")

PACKAGE_ROOT = Path(__file__).resolve().parent

SETTINGS_FILE = Path(os.environ.get("SHADOWLEDGER_SETTINGS", PACKAGE_ROOT / "settings.json"))

# Define the default settings structure
DEFAULT_SETTINGS = {
    "starting_bp": 400,
    "starting_karma": 750,
    "ignore_rules": False,
    "database_url": "sqlite:///shadowledger.db",
    "data_dir": None,
}

ENV_OVERRIDES = {
    "SHADOWLEDGER_DB_URL": "database_url",
    "SHADOWLEDGER_DATA_DIR": "data_dir",
}


def _apply_env_overrides(settings: Dict[str, Any]) -> Dict[str, Any]:
    for env_key, setting_key in ENV_OVERRIDES.items():
        value = os.environ.get(env_key)
        if value:
            settings[setting_key] = value
    return settings


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Loads settings from the settings JSON file.
    If the file doesn't exist or is corrupt, it returns default settings.
    Missing keys are filled in from DEFAULT_SETTINGS.
    """
    settings_path = Path(path) if path else SETTINGS_FILE
    settings = dict(DEFAULT_SETTINGS)

    if not settings_path.exists():
        logger.info(f"Settings file not found at {settings_path}. Using defaults.")
        return _apply_env_overrides(settings)

    try:
        with open(settings_path, "r") as f:
            loaded = json.load(f)
    except json.JSONDecodeError:
        logger.error(f"Failed to read {settings_path} (corrupt?). Using defaults.")
        return _apply_env_overrides(settings)
    except OSError as e:
        logger.error(f"Unexpected error loading settings: {e}. Using defaults.")
        return _apply_env_overrides(settings)

    if not isinstance(loaded, dict):
        logger.error(f"Settings file {settings_path} does not hold an object. Using defaults.")
        return _apply_env_overrides(settings)

    missing = [key for key in DEFAULT_SETTINGS if key not in loaded]
    if missing:
        logger.info(f"Settings file was missing keys {missing}; defaults applied.")
    settings.update(loaded)

    logger.info(f"Settings loaded successfully from {settings_path}")
    return _apply_env_overrides(settings)


def save_settings(settings_data: Dict[str, Any], path: Optional[Path] = None) -> None:
    """
    Saves the provided settings dictionary to the settings JSON file.
    """
    settings_path = Path(path) if path else SETTINGS_FILE
    try:
        with open(settings_path, "w") as f:
            json.dump(settings_data, f, indent=4)
        logger.info(f"Settings saved successfully to {settings_path}")
    except OSError as e:
        logger.error(f"Failed to save settings: {e}")
        raise


def get_setting(key: str, settings: Optional[Dict[str, Any]] = None) -> Any:
    """Returns one setting value, falling back to DEFAULT_SETTINGS."""
    source = settings if settings is not None else load_settings()
    return source.get(key, DEFAULT_SETTINGS.get(key))
