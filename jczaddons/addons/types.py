# jczaddons/addons/types.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictInt

__all__ = [
    "AddonManifest",
    "OriginFlags",
    "RemoteDescriptor",
    "Artwork",
    "Addon",
    "DownloadTask",
]



class AddonManifest(BaseModel):
    """Validated content of jcz-addon.json. Unknown keys are kept."""
    model_config = ConfigDict(extra="allow")

    version: StrictInt
    minimumJczVersion: str
    title: str | None = None
    artworks: list[str] = Field(default_factory=list)
    expansions: list[str] = Field(default_factory=list)

    @property
    def minimumRequiredAppVersion(self) -> str:
        return self.minimumJczVersion



@dataclass(frozen=True, slots=True)
class OriginFlags:
    removable: bool = False
    hidden: bool = False
    userRegistered: bool = False



@dataclass(frozen=True, slots=True)
class RemoteDescriptor:
    """Where an auto-provisioned add-on is fetched from and what it must hash to."""
    url: str
    version: int
    sha256: str
    size: int | None = None     # Expected archive size in bytes, for diagnostics



@dataclass(slots=True)
class Artwork:
    id: str                     # "<addonId>/<artwork folder name>"
    folder: Path
    icon: str | None            # Absolute path (file:// URI in dev mode)
    rawJson: Mapping[str, Any]



@dataclass(slots=True)
class Addon:
    """
    One discovered add-on. Rebuilt on every discovery pass.

    An add-on with `error` set stays listed so the UI can show why, but it is
    never used for artworks or expansions.
    """
    id: str
    folder: Path
    rawJson: Mapping[str, Any]
    origin: OriginFlags = field(default_factory=OriginFlags)
    manifest: AddonManifest | None = None
    error: str | None = None
    outdated: bool = False
    remote: RemoteDescriptor | None = None
    artworks: list[Artwork] = field(default_factory=list)

    @property
    def usable(self) -> bool:
        return self.error is None and self.manifest is not None

    @property
    def version(self) -> int | None:
        if self.manifest is not None:
            return self.manifest.version
        raw = self.rawJson.get("version")
        return raw if isinstance(raw, int) and not isinstance(raw, bool) else None

    @property
    def title(self) -> str:
        if self.manifest is not None and self.manifest.title:
            return self.manifest.title
        return self.id

    def artworkIds(self) -> list[str]:
        return [artwork.id for artwork in self.artworks]



@dataclass(frozen=True, slots=True)
class DownloadTask:
    """UI-facing description of the running download."""
    name: str
    description: str
    link: str
    progress: int | None = None # Bytes transferred, None = indeterminate
    size: int | None = None     # Total bytes, None = unknown
