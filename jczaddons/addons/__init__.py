# jczaddons/addons/__init__.py
from .types import AddonManifest, OriginFlags, RemoteDescriptor, Artwork, Addon, DownloadTask
from .notifications import AddonListener, AddonNotifier
from .registry import AddonRegistry
from .user_settings import AddonSettings, FileAddonSettings
from .updater import AUTO_DOWNLOADED, RefreshOutcome
from .manager import AddonManager

__all__ = [
    "AddonManifest",
    "OriginFlags",
    "RemoteDescriptor",
    "Artwork",
    "Addon",
    "DownloadTask",
    "AddonListener",
    "AddonNotifier",
    "AddonRegistry",
    "AddonSettings",
    "FileAddonSettings",
    "AUTO_DOWNLOADED",
    "RefreshOutcome",
    "AddonManager",
]
