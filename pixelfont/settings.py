"""
pixelfont Settings

Defaults for the command line tools, kept in pixelfont.json in the working
directory. Command line flags always win over these values.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

SETTINGS_FILE = Path("pixelfont.json")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "debug_enabled": False,
    "track_scores": False,
    "font_path": None,
    "threshold": 0.5,
    "spacewidth": 3,
}


def _valid(key: str, value: Any) -> bool:
    """Check one settings value; unknown keys are kept as they are."""
    if key in ("debug_enabled", "track_scores"):
        return isinstance(value, bool)
    if key == "font_path":
        return value is None or isinstance(value, str)
    if key == "threshold":
        return isinstance(value, (int, float)) and not isinstance(value, bool) and 0 <= value <= 1
    if key == "spacewidth":
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0
    return True


def load_settings(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Read settings merged over DEFAULT_SETTINGS.

    A missing or unreadable file gives the defaults; a single bad value
    falls back to its default with a warning.

    Args:
        path: Settings file, SETTINGS_FILE when omitted
    """
    settings_file = Path(path) if path is not None else SETTINGS_FILE
    result = DEFAULT_SETTINGS.copy()
    if not settings_file.exists():
        logger.debug(f"No settings file at {settings_file}, using defaults")
        return result

    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            stored = json.load(f)
        if not isinstance(stored, dict):
            raise ValueError("settings root must be an object")
    except (json.JSONDecodeError, ValueError, OSError) as e:
        logger.warning(f"Failed to load settings from {settings_file}: {e}, using defaults")
        return result

    for key, value in stored.items():
        if _valid(key, value):
            result[key] = value
        else:
            logger.warning(f"Ignoring setting {key}={value!r}, keeping {result.get(key)!r}")

    logger.debug(f"Settings loaded: {result}")
    return result


def save_settings(settings: Dict[str, Any], path: Optional[Union[str, Path]] = None) -> None:
    """Write settings as indented JSON; write failures are only logged."""
    settings_file = Path(path) if path is not None else SETTINGS_FILE
    try:
        with open(settings_file, 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=2)
    except OSError as e:
        logger.error(f"Failed to save settings to {settings_file}: {e}")
        return
    logger.debug(f"Settings saved to {settings_file}")
