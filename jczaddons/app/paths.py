# jczaddons/app/paths.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

from jczaddons.core.fsutils import mkDir

__all__ = ["AddonPaths"]



def _resolve(path: Path | str) -> Path:
    return Path(path).expanduser().resolve()



@dataclass(frozen=True)
class AddonPaths:
    """
    Directory layout used by the add-on service.
    
    - userData:  per-user writable base (the client's --user-data directory)
    - addons:    user-writable add-ons origin, userData/addons
    - bundled:   optional read-only origin shipped with the client resources
    
    Existence is *not* guaranteed. Only ensureAddonsDir() creates anything.
    """
    userData: Path
    addons: Path
    bundled: Path | None = None
    
    @classmethod
    def build(cls, userData: Path | str, *, bundled: Path | str | None = None) -> "AddonPaths":
        base = _resolve(userData)
        return cls(
            userData=base,
            addons=base / "addons",
            bundled=_resolve(bundled) if bundled is not None else None,
        )
    
    def ensureAddonsDir(self) -> Path:
        mkDir(self.addons)
        return self.addons
    
    def stagingParent(self) -> Path:
        """
        Parent for install staging dirs. Lives next to addons/ so promotion is a rename.
        """
        mkDir(self.userData)
        return self.userData
