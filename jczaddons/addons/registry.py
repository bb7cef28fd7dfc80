# jczaddons/addons/registry.py
from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

from jczaddons.addons.types import Addon, Artwork

__all__ = ["AddonRegistry"]



class AddonRegistry:
    """
    In-memory view of every discovered add-on, their artworks and expansions.

    loadAddons() builds a new instance each pass. install/uninstall mutate the
    current instance through add() and remove().
    """

    def __init__(self, addons: Iterable[Addon] = (), *, baselineId: str | None = None) -> None:
        self.baselineId = baselineId
        self._addons: dict[str, Addon] = {}
        for addon in addons:
            # First one wins, callers already deduplicated by precedence
            self._addons.setdefault(addon.id, addon)
        self._sort()

    def _sort(self) -> None:
        ordered = sorted(
            self._addons.values(),
            key=lambda addon: (addon.id != self.baselineId, addon.id.lower(), addon.id),
        )
        self._addons = {addon.id: addon for addon in ordered}

    # ----- Basic access -----

    def __contains__(self, addonId: object) -> bool:
        return addonId in self._addons

    def __iter__(self) -> Iterator[Addon]:
        return iter(list(self._addons.values()))

    def __len__(self) -> int:
        return len(self._addons)

    def get(self, addonId: str) -> Addon | None:
        return self._addons.get(addonId)

    def ids(self) -> frozenset[str]:
        return frozenset(self._addons)

    @property
    def addons(self) -> list[Addon]:
        return list(self._addons.values())

    def usable(self) -> list[Addon]:
        return [addon for addon in self._addons.values() if addon.usable]

    # ----- Derived views -----

    @property
    def artworks(self) -> list[Artwork]:
        return [artwork for addon in self.usable() for artwork in addon.artworks]

    def artwork(self, artworkId: str) -> Artwork | None:
        for artwork in self.artworks:
            if artwork.id == artworkId:
                return artwork
        return None

    @property
    def expansions(self) -> list[Path]:
        out: list[Path] = []
        for addon in self.usable():
            assert addon.manifest is not None
            out.extend(addon.folder / relPath for relPath in addon.manifest.expansions)
        return out

    def hasBaseline(self) -> bool:
        if self.baselineId is None:
            return False
        baseline = self._addons.get(self.baselineId)
        return baseline is not None and baseline.usable

    # ----- Mutation (install/uninstall only) -----

    def add(self, addon: Addon) -> None:
        if addon.id in self._addons:
            raise KeyError(f"Add-on '{addon.id}' is already registered")
        self._addons[addon.id] = addon
        self._sort()

    def remove(self, addonId: str) -> Addon | None:
        return self._addons.pop(addonId, None)

    # ----- Queries -----

    def findMissingAddons(self, required: Mapping[str, int]) -> list[str]:
        """
        Reports required add-ons that are absent ("id") or older than the
        required minimum ("id (requires vN)"), in the order of `required`.
        """
        missing: list[str] = []
        for addonId, minimumVersion in required.items():
            addon = self._addons.get(addonId)
            if addon is None:
                missing.append(addonId)
                continue
            version = addon.version
            if version is None or version < minimumVersion:
                missing.append(f"{addonId} (requires v{minimumVersion})")
        return missing
