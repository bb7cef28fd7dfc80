# jczaddons/addons/locator.py
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from jczaddons.addons.manifest import ManifestValidator
from jczaddons.addons.types import Addon, OriginFlags

logger = logging.getLogger(__name__)

__all__ = ["SearchOrigin", "AddonLocator"]



@dataclass(frozen=True)
class SearchOrigin:
    """A directory whose immediate subfolders may be add-ons."""
    label: str
    path: Path
    hidden: bool = False
    removable: bool = True



class AddonLocator:
    """
    Builds the candidate add-on list from every search origin.

    Precedence (earlier wins on id collisions):
      1) paths the user registered explicitly (settings.userAddons)
      2) bundled read-only origin shipped with the client
      3) user-writable addons directory
    """

    def __init__(self, validator: ManifestValidator, *, baselineId: str) -> None:
        self.validator = validator
        self.baselineId = baselineId

    def origins(self, *, addonsDir: Path, bundledDir: Path | None) -> list[SearchOrigin]:
        out: list[SearchOrigin] = []
        if bundledDir is not None:
            out.append(SearchOrigin(label="bundled", path=bundledDir, hidden=True, removable=False))
        out.append(SearchOrigin(label="user", path=addonsDir, hidden=False, removable=True))
        return out

    def locate(
        self,
        *,
        userAddons: Iterable[str | Path],
        addonsDir: Path,
        bundledDir: Path | None = None,
    ) -> list[Addon]:
        found: list[Addon] = []
        claimed: set[str] = set()

        # 1) Explicit user-registered folders
        for rawPath in userAddons:
            fullPath = Path(rawPath).expanduser()
            addonId = fullPath.name
            if addonId in claimed:
                logger.warning("User add-on '%s' at '%s' ignored, id already registered", addonId, fullPath)
                continue
            addon = self.validator.readAddon(
                addonId,
                fullPath,
                OriginFlags(removable=False, hidden=False, userRegistered=True),
            )
            if addon is None:
                logger.warning("Registered add-on path '%s' does not contain an add-on", fullPath)
                continue
            found.append(addon)
            claimed.add(addonId)

        # 2) + 3) Directory origins
        for origin in self.origins(addonsDir=addonsDir, bundledDir=bundledDir):
            try:
                entries = sorted(origin.path.iterdir(), key=lambda entry: entry.name)
            except FileNotFoundError:
                logger.debug("%s origin '%s' does not exist", origin.label, origin.path)
                continue
            except NotADirectoryError:
                logger.warning("%s origin '%s' is not a directory", origin.label, origin.path)
                continue

            for entry in entries:
                addonId = entry.name
                if addonId in claimed:
                    # Same id found on a higher-precedence origin, first one wins
                    logger.debug("Add-on '%s' in %s origin shadowed by an earlier origin", addonId, origin.label)
                    continue
                flags = OriginFlags(
                    removable=origin.removable and addonId != self.baselineId,
                    hidden=origin.hidden,
                    userRegistered=False,
                )
                addon = self.validator.readAddon(addonId, entry, flags)
                if addon is None:
                    continue
                found.append(addon)
                claimed.add(addonId)

        logger.info("Add-ons located: %d (%s)", len(found), ", ".join(addon.id for addon in found) or "none")
        return found
