# jczaddons/core/errors.py
from __future__ import annotations

__all__ = [
    "AddonError",
    "InvalidPackageError",
    "AddonAlreadyInstalledError",
    "AddonValidationError",
    "AddonNotRemovableError",
]



class AddonError(Exception):
    """Base class for every add-on lifecycle failure that reaches a caller."""
    pass



class InvalidPackageError(AddonError):
    """Archive is not a zip, escapes its staging dir, or lacks exactly one root folder."""
    pass



class AddonAlreadyInstalledError(AddonError):
    def __init__(self, addonId: str):
        super().__init__(f"Add-on '{addonId}' is already installed")
        self.addonId = addonId



class AddonValidationError(AddonError):
    """Staged add-on was read but its manifest was rejected."""
    def __init__(self, addonId: str, reason: str):
        super().__init__(f"Add-on '{addonId}' is not valid: {reason}")
        self.addonId = addonId
        self.reason = reason



class AddonNotRemovableError(AddonError):
    def __init__(self, addonId: str):
        super().__init__(f"Add-on '{addonId}' cannot be removed")
        self.addonId = addonId
