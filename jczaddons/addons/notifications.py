# jczaddons/addons/notifications.py
from __future__ import annotations

import logging
from typing import Any

from jczaddons.addons.types import DownloadTask

logger = logging.getLogger(__name__)

__all__ = [
    "AddonListener",
    "AddonNotifier",
]



class AddonListener:
    """
    Hook interface for collaborators (UI state container, settings, tests)
    that want to observe the add-on service.

    Implementations may override any subset of methods. All methods have
    safe no-op defaults.
    """

    def download(self, task: DownloadTask | None) -> None:
        """
        A download started or changed state. None means no download is running.
        """
        return

    def downloadSize(self, total: int | None) -> None:
        """
        Response headers arrived. None when the server did not send a length.
        """
        return

    def downloadProgress(self, bytesSoFar: int) -> None:
        return

    def addonsLoaded(self) -> None:
        """
        Called after loadAddons() committed a new registry snapshot.
        """
        return

    def hasBaseline(self, present: bool) -> None:
        return

    def changed(self) -> None:
        """
        Called after install/uninstall mutated the registry.
        """
        return



class AddonNotifier:
    """
    Fans events out to registered listeners in registration order.

    A failing listener is logged and skipped. It never aborts the operation
    that raised the event.
    """

    def __init__(self) -> None:
        self._listeners: list[AddonListener] = []

    def subscribe(self, listener: AddonListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: AddonListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            logger.debug("Listener %r was not subscribed", listener)

    def _emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners):
            handler = getattr(listener, event, None)
            if handler is None:
                continue
            try:
                handler(*args)
            except Exception:
                logger.exception("Listener %r raised while handling '%s'", listener, event)

    def download(self, task: DownloadTask | None) -> None:
        self._emit("download", task)

    def downloadSize(self, total: int | None) -> None:
        self._emit("downloadSize", total)

    def downloadProgress(self, bytesSoFar: int) -> None:
        self._emit("downloadProgress", bytesSoFar)

    def addonsLoaded(self) -> None:
        self._emit("addonsLoaded")

    def hasBaseline(self, present: bool) -> None:
        self._emit("hasBaseline", present)

    def changed(self) -> None:
        self._emit("changed")
