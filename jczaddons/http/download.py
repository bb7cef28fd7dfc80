# jczaddons/http/download.py
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

import httpx

from jczaddons.app.settings import settingsInt
from jczaddons.core.fsutils import mkDir, removePath
from jczaddons.core.hashing import sha256File

logger = logging.getLogger(__name__)

__all__ = ["DownloadStatus", "DownloadResult", "downloadToFile", "parseContentLength"]



class DownloadStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    CANCELLED = "cancelled"



@dataclass(frozen=True, slots=True)
class DownloadResult:
    status: DownloadStatus
    path: Path
    checksum: str | None = None     # Lower-case SHA-256 hex of the written file
    size: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is DownloadStatus.OK



def parseContentLength(value: str | None) -> int | None:
    """Returns the declared body size, or None when missing or garbage."""
    if not value:
        return None
    try:
        size = int(value.strip())
    except ValueError:
        return None
    return size if size >= 0 else None



def _discardPartial(destination: Path) -> None:
    try:
        removePath(destination)
    except OSError:
        # Already logged by removePath; the download outcome is reported anyway
        logger.warning("Partial download '%s' could not be removed", destination)



async def downloadToFile(
    url: str,
    destination: Path | str,
    *,
    onSize: Callable[[int | None], None] | None = None,
    onProgress: Callable[[int], None] | None = None,
    cancelEvent: asyncio.Event | None = None,
    timeoutMs: int | None = None,
    chunkSize: int | None = None,
    client: httpx.AsyncClient | None = None,
) -> DownloadResult:
    """
    Streams `url` into `destination`.

    - onSize(total) fires once headers arrive (None if the server sent no length).
    - onProgress(bytesSoFar) fires for every received chunk.
    - Setting cancelEvent stops the transfer at the next chunk boundary.

    Never retries. Non-2xx, transport errors, timeouts and cancellation all
    delete the partial file and come back as a non-ok DownloadResult. On
    success the result carries the SHA-256 of the written file.
    """
    destination = Path(destination)
    if timeoutMs is None:
        timeoutMs = settingsInt("download.timeoutMs", 30_000)
    if timeoutMs <= 0:
        timeoutMs = 1
    if chunkSize is None:
        chunkSize = settingsInt("download.chunkSize", 64 * 1024)
    timeout = httpx.Timeout(timeoutMs / 1_000)

    mkDir(destination.parent)
    ownsClient = client is None
    cli = client if client is not None else httpx.AsyncClient(timeout=timeout)
    received = 0

    logger.info("Downloading '%s' → '%s'", url, destination)
    try:
        async with cli.stream("GET", url, timeout=timeout, follow_redirects=True) as resp:
            if not resp.is_success:
                _discardPartial(destination)
                logger.error("Download of '%s' failed with HTTP %s", url, resp.status_code)
                return DownloadResult(
                    status=DownloadStatus.FAILED,
                    path=destination,
                    error=f"HTTP {resp.status_code}",
                )

            total = parseContentLength(resp.headers.get("Content-Length"))
            if onSize is not None:
                onSize(total)

            with destination.open("wb") as file:
                async for chunk in resp.aiter_bytes(chunkSize):
                    if cancelEvent is not None and cancelEvent.is_set():
                        break
                    file.write(chunk)
                    received += len(chunk)
                    if onProgress is not None:
                        onProgress(received)

        if cancelEvent is not None and cancelEvent.is_set():
            _discardPartial(destination)
            logger.warning("Download of '%s' cancelled after %d bytes", url, received)
            return DownloadResult(status=DownloadStatus.CANCELLED, path=destination, size=received, error="cancelled")

    except asyncio.CancelledError:
        _discardPartial(destination)
        raise
    except (httpx.HTTPError, OSError) as err:
        _discardPartial(destination)
        logger.error("Download of '%s' failed: %s: %s", url, type(err).__name__, err)
        return DownloadResult(
            status=DownloadStatus.FAILED,
            path=destination,
            size=received,
            error=f"{type(err).__name__}: {err}",
        )
    finally:
        if ownsClient:
            await cli.aclose()

    checksum = sha256File(destination)
    logger.info("Downloaded '%s' (%d bytes, sha256 %s)", url, received, checksum)
    return DownloadResult(status=DownloadStatus.OK, path=destination, checksum=checksum, size=received)
