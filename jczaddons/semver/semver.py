# jczaddons/semver/semver.py
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

__all__ = [
    "SemVerVersion",
    "parseSemVerVersion",
    "compareVersions",
    "isAtLeast",
]



_NUMERIC_RE = re.compile(r"0|[1-9]\d*")
_IDENT_RE = re.compile(r"[0-9A-Za-z-]+")



@total_ordering
@dataclass(frozen=True)
class SemVerVersion:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            out += "-" + ".".join(self.prerelease)
        if self.build:
            out += "+" + ".".join(self.build)
        return out

    def _cmpKey(self) -> tuple:
        # Build metadata never takes part in ordering.
        # A release sorts above any of its prereleases. Numeric prerelease
        # identifiers sort below alphanumeric ones.
        prerelease = tuple(
            (0, int(ident), "") if ident.isdigit() else (1, 0, ident)
            for ident in self.prerelease
        )
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVerVersion):
            return NotImplemented
        return self._cmpKey() == other._cmpKey()

    def __hash__(self) -> int:
        return hash(self._cmpKey())

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVerVersion):
            return NotImplemented
        return self._cmpKey() < other._cmpKey()



def _splitIdentifiers(raw: str, what: str, source: str) -> tuple[str, ...]:
    parts = tuple(raw.split("."))
    for part in parts:
        if not _IDENT_RE.fullmatch(part):
            raise ValueError(f"Invalid {what} identifier {part!r} in version {source!r}")
    if what == "prerelease":
        for part in parts:
            if part.isdigit() and not _NUMERIC_RE.fullmatch(part):
                raise ValueError(f"Leading zero in prerelease identifier {part!r} in version {source!r}")
    return parts



def parseSemVerVersion(raw: str) -> SemVerVersion:
    """
    Parse a version string into SemVerVersion.

    Accepted forms (examples):
        "5"             -> 5.0.0
        "5.7"           -> 5.7.0
        "5.7.0"         -> 5.7.0
        "v5.7.0"
        "5.7.0-beta.2"
        "5.7.0+build.11"

    Rejected:
        ".1", "1.", "1..3", "1.2.3.4", "01.2.3" (leading zeroes), "1.2.3-", etc.
    """
    if raw is None:
        raise ValueError("No version given")

    if not isinstance(raw, str):
        raise TypeError(f"Expected a version string, got {type(raw).__name__}")

    source = raw
    raw = raw.strip()
    if not raw:
        raise ValueError("Version string is blank")

    if raw.startswith("v") and len(raw) > 1 and raw[1].isdigit():
        raw = raw[1:]

    raw, plus, buildRaw = raw.partition("+")
    if plus and not buildRaw:
        raise ValueError(f"Empty build metadata in version {source!r}")
    core, dash, prereleaseRaw = raw.partition("-")
    if dash and not prereleaseRaw:
        raise ValueError(f"Empty prerelease in version {source!r}")

    coreParts = core.split(".")
    if not 1 <= len(coreParts) <= 3:
        raise ValueError(f"Invalid version core {core!r} in {source!r}")

    numbers: list[int] = []
    for part in coreParts:
        if not _NUMERIC_RE.fullmatch(part):
            raise ValueError(f"Invalid numeric component {part!r} in version {source!r}")
        numbers.append(int(part))
    while len(numbers) < 3:
        numbers.append(0)

    prerelease = _splitIdentifiers(prereleaseRaw, "prerelease", source) if dash else ()
    build = _splitIdentifiers(buildRaw, "build", source) if plus else ()

    major, minor, patch = numbers
    return SemVerVersion(major=major, minor=minor, patch=patch, prerelease=prerelease, build=build)



def compareVersions(first: str | SemVerVersion, second: str | SemVerVersion) -> int:
    """
    Returns -1, 0 or 1 like a classic comparator. Strings are parsed first and
    raise ValueError when they are not versions.
    """
    left = first if isinstance(first, SemVerVersion) else parseSemVerVersion(first)
    right = second if isinstance(second, SemVerVersion) else parseSemVerVersion(second)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0



def isAtLeast(current: str | SemVerVersion, minimum: str | SemVerVersion) -> bool:
    return compareVersions(current, minimum) >= 0
