# jczaddons/addons/updater.py
from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from enum import Enum
from pathlib import Path

import httpx

from jczaddons.addons.installer import safeExtract
from jczaddons.addons.manifest import ManifestValidator
from jczaddons.addons.notifications import AddonNotifier
from jczaddons.addons.types import Addon, DownloadTask, OriginFlags, RemoteDescriptor
from jczaddons.app.paths import AddonPaths
from jczaddons.core.errors import InvalidPackageError
from jczaddons.core.fsutils import RemoveResult, removePath
from jczaddons.core.hashing import checksumsMatch
from jczaddons.http.download import DownloadStatus, downloadToFile

logger = logging.getLogger(__name__)

__all__ = [
    "AUTO_DOWNLOADED",
    "RefreshOutcome",
    "UpdateCoordinator",
]



# Add-ons the client provisions by itself when missing or outdated
AUTO_DOWNLOADED: dict[str, RemoteDescriptor] = {
    "classic": RemoteDescriptor(
        url="https://jcloisterzone.com/artworks/classic/classic-4-5.7.0.zip",
        version=4,
        sha256="0adf770db8b12d33b76c63fd1bc9c130b83474cffc2b770c2f27dd2a160e1ef8",
        size=88733423,
    ),
}



class RefreshOutcome(str, Enum):
    SKIPPED = "skipped"
    UPDATED = "updated"
    DOWNLOAD_FAILED = "downloadFailed"
    CHECKSUM_MISMATCH = "checksumMismatch"
    CANCELLED = "cancelled"
    EXTRACT_FAILED = "extractFailed"



class UpdateCoordinator:
    """
    Keeps the baseline add-on present and current.

    Order of operations on refresh:
        download → verify checksum → extract to staging → swap folders → re-validate

    The old baseline folder is only touched after the new archive has been
    fully downloaded, verified and unpacked. Network problems never remove it,
    and folders outside the user addons directory are never removed at all.
    """

    def __init__(
        self,
        validator: ManifestValidator,
        paths: AddonPaths,
        notifier: AddonNotifier,
        *,
        baselineId: str,
        remote: RemoteDescriptor,
        client: httpx.AsyncClient | None = None,
        timeoutMs: int | None = None,
    ) -> None:
        self.validator = validator
        self.paths = paths
        self.notifier = notifier
        self.baselineId = baselineId
        self.remote = remote
        self.client = client
        self.timeoutMs = timeoutMs

    @property
    def archiveName(self) -> str:
        return f"{self.baselineId}.zip"

    def needsRefresh(self, baseline: Addon | None) -> bool:
        return baseline is None or baseline.error is not None or baseline.outdated

    def _task(self, description: str, *, progress: int | None = None, size: int | None = None) -> DownloadTask:
        return DownloadTask(
            name=self.archiveName,
            description=description,
            link=self.remote.url,
            progress=progress,
            size=size,
        )

    async def refreshBaseline(
        self,
        candidates: list[Addon],
        *,
        cancelEvent: asyncio.Event | None = None,
    ) -> RefreshOutcome:
        """
        Inspects the baseline entry of `candidates` and refreshes it when
        missing, broken or outdated. `candidates` is updated in place: the
        fresh add-on replaces the old entry, or is prepended when there was none.
        """
        index, baseline = self._findBaseline(candidates)
        if not self.needsRefresh(baseline):
            return RefreshOutcome.SKIPPED

        if baseline is not None and not self._isManaged(baseline.folder):
            # A previous refresh may already have put a current copy next to the user add-ons
            local = self._readManaged()
            if local is not None and not self.needsRefresh(local):
                logger.info("Using '%s' instead of '%s'", local.folder, baseline.folder)
                candidates[index] = local
                return RefreshOutcome.SKIPPED

        if baseline is None:
            logger.info("Baseline add-on '%s' is missing, downloading", self.baselineId)
        elif baseline.error is not None:
            logger.info("Baseline add-on '%s' is invalid (%s), downloading", self.baselineId, baseline.error)
        else:
            logger.info("Baseline add-on '%s' is outdated, downloading", self.baselineId)

        self.notifier.download(self._task(f"Downloading {self.baselineId} artwork"))

        addonsDir = self.paths.ensureAddonsDir()
        archivePath = addonsDir / self.archiveName
        if removePath(archivePath) is RemoveResult.REMOVED:
            logger.info("Removed stale '%s'", archivePath)

        result = await downloadToFile(
            self.remote.url,
            archivePath,
            onSize=self.notifier.downloadSize,
            onProgress=self.notifier.downloadProgress,
            cancelEvent=cancelEvent,
            timeoutMs=self.timeoutMs,
            client=self.client,
        )

        if result.status is DownloadStatus.CANCELLED:
            self.notifier.download(None)
            return RefreshOutcome.CANCELLED

        if result.status is DownloadStatus.FAILED:
            self.notifier.download(self._task(f"Error: Download failed ({result.error})", progress=0, size=self.remote.size))
            return RefreshOutcome.DOWNLOAD_FAILED

        if not checksumsMatch(result.checksum, self.remote.sha256):
            logger.error(
                "%s checksum mismatch: got %s, expected %s",
                self.archiveName, result.checksum, self.remote.sha256.lower(),
            )
            self.notifier.download(
                self._task("Error: Downloaded file has invalid checksum", progress=0, size=self.remote.size)
            )
            removePath(archivePath)
            return RefreshOutcome.CHECKSUM_MISMATCH

        logger.info("%s downloaded. sha256: %s", self.archiveName, result.checksum)
        staging = Path(tempfile.mkdtemp(prefix=".baseline-", dir=self.paths.stagingParent()))
        try:
            safeExtract(archivePath, staging)
            stagedFolder = staging / self.baselineId
            if not stagedFolder.is_dir():
                raise InvalidPackageError(f"archive has no '{self.baselineId}' folder")
            # Archive verified and unpacked, the old copy can go now
            self._swapInto(stagedFolder, addonsDir / self.baselineId)
        except (InvalidPackageError, OSError) as err:
            logger.error("Unable to install '%s': %s", archivePath, err)
            self.notifier.download(self._task(f"Error: {err}", progress=0, size=self.remote.size))
            return RefreshOutcome.EXTRACT_FAILED
        finally:
            removePath(staging)
            removePath(archivePath)
        self.notifier.download(None)

        fresh = self._readManaged()
        if fresh is None:
            logger.error("Downloaded archive did not contain a '%s' add-on", self.baselineId)
            if index is not None and baseline is not None and self._isManaged(baseline.folder):
                del candidates[index]
            return RefreshOutcome.EXTRACT_FAILED

        if index is not None:
            candidates[index] = fresh
        else:
            candidates.insert(0, fresh)
        return RefreshOutcome.UPDATED

    def _swapInto(self, stagedFolder: Path, target: Path) -> None:
        """
        Moves `stagedFolder` to `target`. An existing `target` is renamed aside
        first and put back if the move fails, so the old copy survives.
        """
        aside = target.with_name(f"{target.name}.old")
        removePath(aside)
        if target.exists():
            logger.info("Moving old baseline add-on '%s' aside", target)
            target.rename(aside)
        try:
            shutil.move(str(stagedFolder), str(target))
        except OSError:
            removePath(target)
            if aside.exists():
                logger.warning("Restoring old baseline add-on '%s'", target)
                aside.rename(target)
            raise
        removePath(aside)

    def _readManaged(self) -> Addon | None:
        return self.validator.readAddon(
            self.baselineId,
            self.paths.addons / self.baselineId,
            OriginFlags(removable=False, hidden=False, userRegistered=False),
        )

    def _isManaged(self, folder: Path) -> bool:
        """
        Only folders inside the user addons directory are ours to delete.
        """
        try:
            return folder.resolve().parent == self.paths.addons.resolve()
        except OSError:
            return False

    def _findBaseline(self, candidates: list[Addon]) -> tuple[int | None, Addon | None]:
        for index, addon in enumerate(candidates):
            if addon.id == self.baselineId:
                return index, addon
        return None, None
