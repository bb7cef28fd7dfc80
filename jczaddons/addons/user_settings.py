# jczaddons/addons/user_settings.py
from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import json5

logger = logging.getLogger(__name__)

__all__ = ["AddonSettings", "FileAddonSettings"]



@runtime_checkable
class AddonSettings(Protocol):
    """
    The slice of persisted user settings the add-on service reads and writes.
    """

    @property
    def userAddons(self) -> Sequence[str]:
        ...

    @property
    def enabledArtworks(self) -> frozenset[str]:
        ...

    def update(self, **changes: Any) -> None:
        """
        Apply changes. Calling it twice with the same values is a no-op.
        """
        ...



class FileAddonSettings:
    """
    AddonSettings stored in a json5 file shared with the rest of the client.

    Keys this class does not own are preserved on save. A missing or broken
    file reads as empty; a file whose top level is not an object is refused
    with TypeError so it never gets overwritten.
    """

    KNOWN_KEYS = ("userAddons", "enabledArtworks")

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._data: dict[str, Any] = self._read()

    def _read(self) -> dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No add-on settings at '%s' yet", self.path)
            return {}

        try:
            parsed = json5.loads(text)
        except ValueError as err:
            logger.warning("Add-on settings '%s' could not be parsed, starting empty: %s", self.path, err)
            return {}

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise TypeError(f"Add-on settings '{self.path}' must hold an object, not {type(parsed).__name__}")
        return parsed

    @property
    def userAddons(self) -> Sequence[str]:
        return tuple(_stringList(self._data.get("userAddons")))

    @property
    def enabledArtworks(self) -> frozenset[str]:
        return frozenset(_stringList(self._data.get("enabledArtworks")))

    def update(self, **changes: Any) -> None:
        unknown = set(changes) - set(self.KNOWN_KEYS)
        if unknown:
            raise KeyError(f"Unknown add-on setting(s): {', '.join(sorted(unknown))}")
        for key, value in changes.items():
            entries = _stringList(value)
            # Sets are stored sorted so repeated updates produce identical files
            self._data[key] = sorted(set(entries)) if key == "enabledArtworks" else entries
        self.save()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmpPath = self.path.with_name(self.path.name + ".tmp")
        try:
            tmpPath.write_text(json5.dumps(self._data, indent=2, quote_keys=True) + "\n", encoding="utf-8")
            os.replace(tmpPath, self.path)
        finally:
            tmpPath.unlink(missing_ok=True)
        logger.debug("Saved add-on settings to '%s'", self.path)



def _stringList(value: Any) -> list[str]:
    """Non-blank strings of a list-like value, stripped. Anything else reads as empty."""
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)):
        return []
    return [entry.strip() for entry in value if isinstance(entry, str) and entry.strip()]
