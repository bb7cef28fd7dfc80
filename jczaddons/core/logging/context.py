# jczaddons/core/logging/context.py
from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager

# Fields attached to every record logged while an add-on operation runs
_logContextVar: contextvars.ContextVar[dict[str, object] | None] = contextvars.ContextVar("jczaddons.logctx", default=None)



def getLogContext() -> dict[str, object] | None:
    return _logContextVar.get()



def setLogContext(**fields: object) -> None:
    """Merges `fields` into the current context. None values are skipped."""
    merged = dict(_logContextVar.get() or {})
    merged.update((key, value) for key, value in fields.items() if value is not None)
    _logContextVar.set(merged)



def clearLogContext() -> None:
    _logContextVar.set(None)



@contextmanager
def logContext(**fields: object) -> Iterator[None]:
    """
    Scoped setLogContext(). Whatever context was active before is restored
    on exit, also when the block raises.
    """
    previous = _logContextVar.get()
    setLogContext(**fields)
    try:
        yield
    finally:
        _logContextVar.set(previous)
