"""Persistent user preferences for keychain-secrets-manager.

Preferences live in the XDG config directory:
~/.config/keychain-secrets-manager/preferences.json

Only ``config_path`` is used today; it remembers which secrets config file
to load when none is passed on the command line.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PREFERENCES_DIR = Path.home() / ".config" / "keychain-secrets-manager"
PREFERENCES_FILE = PREFERENCES_DIR / "preferences.json"


def _read_preferences() -> Dict[str, Any]:
    """
    Read the preferences file.

    A missing, unreadable or malformed file reads as no preferences at all,
    so a broken preferences file never blocks the tool from starting.
    """
    if not PREFERENCES_FILE.is_file():
        return {}

    try:
        data = json.loads(PREFERENCES_FILE.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error(f"Ignoring unreadable preferences file {PREFERENCES_FILE}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Ignoring preferences file {PREFERENCES_FILE}: expected a JSON object")
        return {}
    return data


def _write_preferences(preferences: Dict[str, Any]) -> None:
    try:
        PREFERENCES_DIR.mkdir(parents=True, exist_ok=True)
        PREFERENCES_FILE.write_text(json.dumps(preferences, indent=2), encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to save preferences to {PREFERENCES_FILE}: {e}")
        raise


def get_preference(key: str) -> Optional[str]:
    """Return the stored value for key, or None."""
    return _read_preferences().get(key)


def set_preference(key: str, value: str) -> None:
    """
    Store a preference, replacing any previous value.

    Args:
        key: Preference key
        value: Preference value
    """
    preferences = _read_preferences()
    preferences[key] = value
    _write_preferences(preferences)
    logger.info(f"Preference '{key}' set to: {value}")


def clear_preference(key: str) -> bool:
    """
    Remove a preference.

    Returns:
        True if the key was present, False if there was nothing to clear
    """
    preferences = _read_preferences()
    if key not in preferences:
        logger.debug(f"Preference '{key}' not found, nothing to clear")
        return False

    del preferences[key]
    _write_preferences(preferences)
    logger.info(f"Preference '{key}' cleared")
    return True


def get_all_preferences() -> Dict[str, Any]:
    """Return every stored preference as a dict (empty if none are set)."""
    return _read_preferences()
