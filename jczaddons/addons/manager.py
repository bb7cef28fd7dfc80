# jczaddons/addons/manager.py
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path

import httpx

from jczaddons.addons.installer import PackageInstaller
from jczaddons.addons.locator import AddonLocator
from jczaddons.addons.manifest import ManifestValidator
from jczaddons.addons.notifications import AddonListener, AddonNotifier
from jczaddons.addons.registry import AddonRegistry
from jczaddons.addons.types import Addon, RemoteDescriptor
from jczaddons.addons.updater import AUTO_DOWNLOADED, RefreshOutcome, UpdateCoordinator
from jczaddons.addons.user_settings import AddonSettings
from jczaddons.app.paths import AddonPaths
from jczaddons.app.settings import settings as appSettings
from jczaddons.core.logging import logContext

logger = logging.getLogger(__name__)

__all__ = ["AddonManager"]



class AddonManager:
    """
    The add-on service. Constructed once by the application root and passed
    to whoever needs it.

    Every operation that changes the registry (loadAddons, installFromArchive,
    uninstall) runs under one asyncio.Lock, so they never interleave.
    Listeners are notified only after the change is committed.
    """

    def __init__(
        self,
        *,
        paths: AddonPaths,
        settings: AddonSettings,
        notifier: AddonNotifier | None = None,
        appVersion: str | None = None,
        baselineId: str | None = None,
        remotes: Mapping[str, RemoteDescriptor] | None = None,
        client: httpx.AsyncClient | None = None,
        downloadTimeoutMs: int | None = None,
    ) -> None:
        self.paths = paths
        self.settings = settings
        self.notifier = notifier or AddonNotifier()
        self.baselineId = baselineId or str(appSettings("addons.baselineId", "classic"))
        self.remotes = dict(AUTO_DOWNLOADED if remotes is None else remotes)

        self.validator = ManifestValidator(appVersion=appVersion, remotes=self.remotes)
        self.locator = AddonLocator(self.validator, baselineId=self.baselineId)
        self.installer = PackageInstaller(self.validator, paths, baselineId=self.baselineId)
        self.updater: UpdateCoordinator | None = None
        remote = self.remotes.get(self.baselineId)
        if remote is not None:
            self.updater = UpdateCoordinator(
                self.validator,
                paths,
                self.notifier,
                baselineId=self.baselineId,
                remote=remote,
                client=client,
                timeoutMs=downloadTimeoutMs,
            )
        else:
            logger.warning("No remote descriptor for baseline add-on '%s', auto-download disabled", self.baselineId)

        self._registry = AddonRegistry(baselineId=self.baselineId)
        self._lock = asyncio.Lock()
        self.lastRefresh: RefreshOutcome | None = None
        self._baselinePresent: bool | None = None

    # ----- Observers -----

    def subscribe(self, listener: AddonListener) -> None:
        self.notifier.subscribe(listener)

    def unsubscribe(self, listener: AddonListener) -> None:
        self.notifier.unsubscribe(listener)

    # ----- Queries -----

    @property
    def registry(self) -> AddonRegistry:
        return self._registry

    def findMissingAddons(self, required: Mapping[str, int]) -> list[str]:
        return self._registry.findMissingAddons(required)

    # ----- Operations -----

    async def loadAddons(self, *, cancelEvent: asyncio.Event | None = None) -> AddonRegistry:
        """
        Full discovery pass. Replaces the registry snapshot wholesale.
        """
        async with self._lock:
            with logContext(op="loadAddons"):
                logger.info("Looking for installed add-ons")
                candidates = self.locator.locate(
                    userAddons=self.settings.userAddons,
                    addonsDir=self.paths.addons,
                    bundledDir=self.paths.bundled,
                )
                if self.updater is not None:
                    self.lastRefresh = await self.updater.refreshBaseline(candidates, cancelEvent=cancelEvent)
                    if self.lastRefresh is not RefreshOutcome.SKIPPED:
                        logger.info("Baseline refresh finished: %s", self.lastRefresh.value)

                registry = AddonRegistry(candidates, baselineId=self.baselineId)
                self._registry = registry
                logger.info(
                    "Installed add-ons: %s",
                    ", ".join(f"{addon.id}{'' if addon.usable else ' (invalid)'}" for addon in registry) or "none",
                )

        self.notifier.addonsLoaded()
        self._baselinePresent = registry.hasBaseline()
        self.notifier.hasBaseline(self._baselinePresent)
        return registry

    async def installFromArchive(self, archivePath: Path | str) -> Addon:
        """
        Installs a zip archive holding exactly one add-on folder. Its artworks
        are enabled in the user settings.
        """
        async with self._lock:
            with logContext(op="install", archive=str(archivePath)):
                addon = self.installer.installFromArchive(archivePath, installedIds=self._registry.ids())
                self._registry.add(addon)
                artworkIds = addon.artworkIds()
                if artworkIds:
                    self.settings.update(enabledArtworks=self.settings.enabledArtworks | set(artworkIds))
                    logger.info("Enabled artworks: %s", ", ".join(artworkIds))

        self._notifyChanged()
        return addon

    async def uninstall(self, addon: Addon | str) -> None:
        addonId = addon if isinstance(addon, str) else addon.id
        async with self._lock:
            with logContext(op="uninstall", addonId=addonId):
                current = self._registry.get(addonId)
                if current is None:
                    raise LookupError(f"Add-on '{addonId}' is not installed")
                self.installer.uninstall(current)
                self._registry.remove(addonId)
                artworkIds = current.artworkIds()
                if artworkIds:
                    self.settings.update(enabledArtworks=self.settings.enabledArtworks - set(artworkIds))
                    logger.info("Disabled artworks: %s", ", ".join(artworkIds))

        self._notifyChanged()

    def _notifyChanged(self) -> None:
        # hasBaseline only when install or uninstall flipped it
        present = self._registry.hasBaseline()
        if present != self._baselinePresent:
            self._baselinePresent = present
            self.notifier.hasBaseline(present)
        self.notifier.changed()
