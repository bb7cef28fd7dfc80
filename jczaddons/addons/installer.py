# jczaddons/addons/installer.py
from __future__ import annotations

import logging
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath

from jczaddons.addons.manifest import ManifestValidator
from jczaddons.addons.types import Addon, OriginFlags
from jczaddons.app.paths import AddonPaths
from jczaddons.core.errors import (
    AddonAlreadyInstalledError,
    AddonNotRemovableError,
    AddonValidationError,
    InvalidPackageError,
)
from jczaddons.core.fsutils import RemoveResult, removePath

logger = logging.getLogger(__name__)

__all__ = ["safeExtract", "PackageInstaller"]



def _memberTarget(root: Path, memberName: str) -> Path:
    """
    Returns where an archive member lands under `root`, rejecting absolute
    names and anything that climbs out of `root`.
    """
    member = PurePosixPath(memberName.replace("\\", "/"))
    if member.is_absolute() or (member.parts and member.parts[0].endswith(":")):
        raise InvalidPackageError(f"Archive member '{memberName}' has an absolute path")
    target = (root / Path(*member.parts)).resolve(strict=False) if member.parts else root
    if not target.is_relative_to(root):
        raise InvalidPackageError(f"Archive member '{memberName}' points outside of the package")
    return target



def safeExtract(archivePath: Path, destination: Path) -> None:
    """
    Extracts a zip archive into `destination`.
    Raises InvalidPackageError for non-zip files and unsafe member paths.
    """
    destination = destination.resolve()
    try:
        with zipfile.ZipFile(archivePath) as archive:
            members = archive.infolist()
            for member in members:
                _memberTarget(destination, member.filename)
            archive.extractall(destination)
    except zipfile.BadZipFile as err:
        raise InvalidPackageError(f"'{archivePath.name}' is not a valid zip archive: {err}") from err
    except (RuntimeError, NotImplementedError) as err:
        # Encrypted members or an unsupported compression method
        raise InvalidPackageError(f"'{archivePath.name}' cannot be extracted: {err}") from err



class PackageInstaller:
    """
    Installs add-ons from local zip archives and removes installed ones.

    Nothing reaches the live addons directory until every check passed:
    extraction and validation happen in a private staging directory and the
    add-on folder is moved into place as the very last step.
    """

    def __init__(self, validator: ManifestValidator, paths: AddonPaths, *, baselineId: str) -> None:
        self.validator = validator
        self.paths = paths
        self.baselineId = baselineId

    def _originFor(self, addonId: str) -> OriginFlags:
        return OriginFlags(removable=addonId != self.baselineId, hidden=False, userRegistered=False)

    def installFromArchive(self, archivePath: Path | str, *, installedIds: set[str] | frozenset[str]) -> Addon:
        """
        Returns the add-on as read from its final location. Raises
        InvalidPackageError, AddonAlreadyInstalledError or AddonValidationError
        and leaves the addons directory untouched in those cases.
        """
        archivePath = Path(archivePath)
        if not archivePath.is_file():
            raise InvalidPackageError(f"Archive '{archivePath}' does not exist")

        addonsDir = self.paths.ensureAddonsDir()
        staging = Path(tempfile.mkdtemp(prefix=".addon-install-", dir=self.paths.stagingParent()))
        try:
            safeExtract(archivePath, staging)

            entries = list(staging.iterdir())
            if len(entries) != 1 or not entries[0].is_dir():
                raise InvalidPackageError(
                    f"Invalid add-on package '{archivePath.name}': archive root must contain exactly one folder"
                )
            stagedFolder = entries[0]
            addonId = stagedFolder.name

            target = addonsDir / addonId
            if addonId in installedIds or target.exists():
                raise AddonAlreadyInstalledError(addonId)

            staged = self.validator.readAddon(addonId, stagedFolder, self._originFor(addonId))
            if staged is None:
                raise InvalidPackageError(
                    f"Invalid add-on package '{archivePath.name}': '{addonId}' has no {self.validator.manifestName}"
                )
            if staged.error is not None:
                raise AddonValidationError(addonId, staged.error)

            # Promotion is the last step
            shutil.move(str(stagedFolder), str(target))
            logger.info("Installed add-on '%s' into '%s'", addonId, target)
        finally:
            removePath(staging)

        installed = self.validator.readAddon(addonId, target, self._originFor(addonId))
        if installed is None:
            # Only possible if the folder vanished right after the move
            raise InvalidPackageError(f"Add-on '{addonId}' disappeared after installation")
        return installed

    def uninstall(self, addon: Addon) -> RemoveResult:
        if not addon.origin.removable:
            raise AddonNotRemovableError(addon.id)
        result = removePath(addon.folder)
        if result is RemoveResult.MISSING:
            logger.warning("Add-on '%s' folder '%s' was already gone", addon.id, addon.folder)
        else:
            logger.info("Removed add-on '%s' from '%s'", addon.id, addon.folder)
        return result
