# jczaddons/core/logging/setup.py
from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from jczaddons.app.settings import settings, settingsBool, settingsInt
from .formatters import DevFormatter, JsonFormatter

__all__ = [
    "NO_PROPAGATE",
    "configureLogging",
]



# Chatty library loggers kept out of the root handlers
NO_PROPAGATE = (
    "asyncio",
    "httpcore.connection",
    "httpcore.http11",
    "httpx",
)



def _consoleHandler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(DevFormatter())
    return handler



def _fileHandler(path: Path, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=settingsInt("logging.maxBytes", 10 * 1024 * 1024),
        backupCount=settingsInt("logging.backupCount", 5),
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler



def configureLogging(*, devMode: bool | None = None, logFile: str | Path | None = None) -> logging.Logger:
    """
    Installs the root handlers for the host process.

    - Console: DevFormatter, INFO (DEBUG in dev mode)
    - File: JsonFormatter with size rotation, only when `logging.file` (or
      `logFile`) is set

    Arguments left as None are read from settings. Returns the root logger.
    """
    if devMode is None:
        devMode = settingsBool("debug.devModeEnabled", False)
    if logFile is None:
        logFile = settings("logging.file")
    level = logging.DEBUG if devMode else logging.INFO

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(_consoleHandler(level))
    if logFile:
        root.addHandler(_fileHandler(Path(logFile).expanduser(), level))

    for name in NO_PROPAGATE:
        logging.getLogger(name).propagate = False
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return root
