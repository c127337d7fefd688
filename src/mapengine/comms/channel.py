"""ViewportChannel - typed message passing between the engine and the map widget.

The engine publishes ViewportCommand messages (zoom to a shapefile, fall
back to an extent during navigation); the map widget subscribes a callback.
One channel per map view, injected into both ends at construction.
"""

from __future__ import annotations

import threading
from typing import Callable

from loguru import logger

from mapengine.geo.extent import ViewportCommand

ViewportListener = Callable[[ViewportCommand], None]


class ViewportChannel:
    """Point-to-point pub/sub for viewport commands."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: list[ViewportListener] = []
        self._last: ViewportCommand | None = None

    @property
    def last(self) -> ViewportCommand | None:
        """Most recently published command, if any."""
        return self._last

    def subscribe(self, listener: ViewportListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: ViewportListener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def publish(self, command: ViewportCommand) -> None:
        with self._lock:
            self._last = command
            listeners = list(self._listeners)
        if not listeners:
            logger.debug("Viewport command published with no map listener")
        for listener in listeners:
            listener(command)

    def close(self) -> None:
        with self._lock:
            self._listeners.clear()
