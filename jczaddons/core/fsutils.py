# jczaddons/core/fsutils.py
from __future__ import annotations

import logging
import shutil
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

__all__ = ["RemoveResult", "removePath", "mkDir"]



class RemoveResult(str, Enum):
    REMOVED = "removed"
    MISSING = "missing"  # Nothing was there, which is fine for cleanup callers



def mkDir(path: Path) -> None:
    """
    Create a directory (parents included). Errors bubble up to callers.
    """
    path.mkdir(parents=True, exist_ok=True)



def removePath(path: str | Path) -> RemoveResult:
    """
    Removes a file or a directory tree.
    
    Returns MISSING when there was nothing to remove. Every other OS error is
    logged and re-raised so cleanup failures stay visible.
    """
    path = Path(path)
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except FileNotFoundError:
        return RemoveResult.MISSING
    except OSError as err:
        logger.error("Unable to remove '%s': %s", path, err)
        raise
    logger.debug("Removed '%s'", path)
    return RemoveResult.REMOVED
