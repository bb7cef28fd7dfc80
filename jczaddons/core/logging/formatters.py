# jczaddons/core/logging/formatters.py
from __future__ import annotations

import json
import logging
from typing import Any

from .context import getLogContext

# Context fields shown on console lines, in this order
CONSOLE_CONTEXT_KEYS = ("op", "addonId")



def _exceptionPayload(formatter: logging.Formatter, record: logging.LogRecord) -> dict[str, Any] | None:
    if not record.exc_info:
        return None
    excType, excValue, _tb = record.exc_info
    return {
        "type": excType.__name__ if excType is not None else "Error",
        "message": str(excValue),
        "stack": formatter.formatException(record.exc_info),
    }



class JsonFormatter(logging.Formatter):
    """One JSON object per line, for the rotating log file."""
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": int(record.created * 1000),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            "ctx": dict(getLogContext() or {}),
            "pid": record.process,
        }
        exc = _exceptionPayload(self, record)
        if exc is not None:
            payload["exc"] = exc
        return json.dumps(payload, ensure_ascii=False, default=str, separators=(",", ":"))



class DevFormatter(logging.Formatter):
    """Console lines shaped `LEVEL: [logger] message [op/addonId]`."""
    def format(self, record: logging.LogRecord) -> str:
        out = f"{record.levelname}: [{record.name}] {record.getMessage()}"
        ctx = getLogContext() or {}
        tags = [str(ctx[key]) for key in CONSOLE_CONTEXT_KEYS if ctx.get(key)]
        if tags:
            out += f" [{'/'.join(tags)}]"
        if record.exc_info:
            out += "\n" + self.formatException(record.exc_info)
        if record.stack_info:
            out += "\n" + self.formatStack(record.stack_info)
        return out
