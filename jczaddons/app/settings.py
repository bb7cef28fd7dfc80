# jczaddons/app/settings.py
from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import json5
from pydantic import JsonValue

from jczaddons.core.dictpath import getByPath

logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS_ENV_VAR",
    "SETTINGS",
    "userSettingsPath",
    "loadUserSettings",
    "loadSettings",
    "reloadSettings",
    "deepMerge",
    "settings",
    "settingsBool",
    "settingsInt",
]


SETTINGS_ENV_VAR = "JCZADDONS_SETTINGS"
DEFAULT_SETTINGS_FILE = "~/.jczaddons/settings.json5"

# Built-in values. The user file overrides them key by key.
SETTINGS: JsonValue = {
    "__source": "BUILTIN_DEFAULTS",
    "app": {"version": "5.7.0"},
    "addons": {
        "baselineId": "classic",
        "manifestName": "jcz-addon.json",
        "artworkManifestName": "artwork.json",
    },
    "download": {"timeoutMs": 30_000, "chunkSize": 64 * 1024},
    "debug": {"devModeEnabled": False},
    "logging": {"file": None, "maxBytes": 10 * 1024 * 1024, "backupCount": 5},
}



def userSettingsPath() -> Path:
    return Path(os.environ.get(SETTINGS_ENV_VAR) or DEFAULT_SETTINGS_FILE).expanduser()



def loadUserSettings() -> JsonValue:
    """
    Reads the user settings file. A missing, unreadable or non-object file
    counts as empty; problems are logged, never raised.
    """
    filePath = userSettingsPath()
    if not filePath.is_file():
        return {}
    try:
        loaded = json5.loads(filePath.read_text(encoding="utf-8"))
    except (OSError, ValueError) as err:
        logger.error("Failed to parse '%s': %s", filePath, err)
        return {}
    if not isinstance(loaded, dict):
        logger.error("Ignoring '%s': expected an object at top level, got %s", filePath, type(loaded).__name__)
        return {}
    return loaded



@lru_cache(maxsize=1)
def loadSettings() -> JsonValue:
    return deepMerge(SETTINGS, loadUserSettings())



def reloadSettings() -> JsonValue:
    """Drops the cached merge so the file and environment are read again."""
    loadSettings.cache_clear()
    return loadSettings()



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    Overlays `second` on `first`. Objects merge key by key, any other value
    (lists included) is replaced by the right-hand side. Inputs stay untouched.
    """
    if not (isinstance(first, dict) and isinstance(second, dict)):
        return second
    merged = dict(first)
    for key, value in second.items():
        merged[key] = deepMerge(merged[key], value) if key in merged else value
    return merged

# ---------- Accessors ----------

def settings(path: str, default: Any = None) -> Any:
    value = getByPath(loadSettings(), path)
    return default if value is None else value



def settingsBool(path: str, default: bool = False) -> bool:
    value = settings(path)
    if value is None:
        return default
    return value if isinstance(value, bool) else bool(value)



def settingsInt(path: str, default: int) -> int:
    value = settings(path)
    if value is None:
        return default
    if isinstance(value, bool):
        logger.warning("Setting '%s' must be a number, got %r; using %s", path, value, default)
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Setting '%s' must be a number, got %r; using %s", path, value, default)
        return default
