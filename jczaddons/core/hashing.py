# jczaddons/core/hashing.py
from __future__ import annotations

import hashlib
from pathlib import Path



def sha256File(path: str | Path, *, chunkSize: int = 8192) -> str:
    """Returns the lower-case SHA-256 hex digest of the file content."""
    path = Path(path)
    sha = hashlib.sha256()

    with path.open("rb") as file:
        for chunk in iter(lambda: file.read(chunkSize), b""):
            sha.update(chunk)
    
    return sha.hexdigest()



def checksumsMatch(actual: str | None, expected: str | None) -> bool:
    if not actual or not expected:
        return False
    return actual.strip().lower() == expected.strip().lower()
