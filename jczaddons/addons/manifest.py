# jczaddons/addons/manifest.py
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from jczaddons.addons.types import Addon, AddonManifest, Artwork, OriginFlags, RemoteDescriptor
from jczaddons.app.settings import settings, settingsBool
from jczaddons.semver.semver import SemVerVersion, parseSemVerVersion

logger = logging.getLogger(__name__)

__all__ = [
    "ManifestValidator",
    "ERR_NUMERIC_VERSION",
    "ERR_MISSING_MINIMUM",
]



ERR_NUMERIC_VERSION = "expecting numeric version"
ERR_MISSING_MINIMUM = "missing minimum version"



def _loadJsonObject(path: Path) -> Mapping[str, Any] | None:
    """
    Returns the parsed JSON object, or None when the file is absent or is not a JSON object.
    """
    try:
        rawJson = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as err:
        logger.debug("Ignoring unreadable manifest '%s': %s", path, err)
        return None
    if not isinstance(rawJson, dict):
        logger.debug("Ignoring manifest '%s': not a JSON object", path)
        return None
    return rawJson



class ManifestValidator:
    """
    Reads and validates add-on and artwork manifests.

    Never raises for bad input. readAddon() returns exactly one of:
      - None                      folder is not an add-on at all
      - Addon with error set      manifest found but rejected
      - Addon without error       usable add-on (artworks resolved)
    """

    def __init__(
        self,
        *,
        appVersion: str | None = None,
        remotes: Mapping[str, RemoteDescriptor] | None = None,
        manifestName: str | None = None,
        artworkManifestName: str | None = None,
        devMode: bool | None = None,
    ) -> None:
        self.appVersion: SemVerVersion = parseSemVerVersion(appVersion or str(settings("app.version")))
        self.remotes: dict[str, RemoteDescriptor] = dict(remotes or {})
        self.manifestName = manifestName or str(settings("addons.manifestName", "jcz-addon.json"))
        self.artworkManifestName = artworkManifestName or str(settings("addons.artworkManifestName", "artwork.json"))
        self.devMode = settingsBool("debug.devModeEnabled", False) if devMode is None else devMode

    # ----- Add-ons -----

    def readAddon(self, addonId: str, folder: Path | str, origin: OriginFlags | None = None) -> Addon | None:
        folder = Path(folder)
        if not folder.is_dir():
            logger.debug("'%s' is not a directory, skipping", folder)
            return None

        rawJson = _loadJsonObject(folder / self.manifestName)
        if rawJson is None:
            # Not an add-on folder, nothing to report
            return None

        addon = Addon(
            id=addonId,
            folder=folder,
            rawJson=rawJson,
            origin=origin or OriginFlags(),
            remote=self.remotes.get(addonId),
        )
        addon.error = self._validate(addon)
        if addon.error is not None:
            logger.warning("Add-on '%s' at '%s' is invalid: %s", addonId, folder, addon.error)
            return addon

        if addon.remote is not None and addon.manifest is not None:
            current = addon.manifest.version
            required = addon.remote.version
            if current < required:
                logger.info("Add-on '%s' is outdated (current %s, required %s)", addonId, current, required)
                addon.outdated = True

        addon.artworks = self._readAddonArtworks(addon)
        return addon

    def _validate(self, addon: Addon) -> str | None:
        rawJson = addon.rawJson
        version = rawJson.get("version")
        if isinstance(version, bool) or not isinstance(version, int):
            return ERR_NUMERIC_VERSION

        minimum = rawJson.get("minimumJczVersion")
        if minimum is None or (isinstance(minimum, str) and not minimum.strip()):
            return ERR_MISSING_MINIMUM

        try:
            minimumVersion = parseSemVerVersion(minimum)
        except (ValueError, TypeError):
            return f"invalid minimum version {minimum!r}"

        if self.appVersion < minimumVersion:
            return f"requires version {minimum} or higher"

        try:
            addon.manifest = AddonManifest.model_validate(rawJson)
        except ValidationError as err:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in detail['loc'])}: {detail['msg']}" for detail in err.errors()
            )
            return f"invalid manifest ({problems})"
        return None

    def _readAddonArtworks(self, addon: Addon) -> list[Artwork]:
        assert addon.manifest is not None
        out: list[Artwork] = []
        root = addon.folder.resolve()
        for relPath in addon.manifest.artworks:
            fullPath = addon.folder / relPath
            if not fullPath.resolve(strict=False).is_relative_to(root):
                logger.warning("Add-on '%s' lists artwork '%s' outside of its folder, ignoring", addon.id, relPath)
                continue
            artwork = self.readArtwork(f"{addon.id}/{fullPath.name}", fullPath)
            if artwork is None:
                logger.warning("Add-on '%s' lists artwork '%s' but it has no readable %s", addon.id, relPath, self.artworkManifestName)
                continue
            out.append(artwork)
        return out

    # ----- Artworks -----

    def readArtwork(self, artworkId: str, folder: Path | str) -> Artwork | None:
        folder = Path(folder)
        if not folder.is_dir():
            return None
        rawJson = _loadJsonObject(folder / self.artworkManifestName)
        if rawJson is None:
            return None

        icon: str | None = None
        rawIcon = rawJson.get("icon")
        if isinstance(rawIcon, str) and rawIcon.strip():
            iconPath = (folder / rawIcon).resolve(strict=False)
            icon = iconPath.as_uri() if self.devMode else str(iconPath)

        return Artwork(id=artworkId, folder=folder, icon=icon, rawJson=rawJson)
