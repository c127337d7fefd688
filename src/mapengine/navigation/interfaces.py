"""Collaborator interfaces consumed by the navigation controller.

Everything the controller talks to is injected at construction: the map
widget, the notification sink, the browser history, and the scheduler that
owns the navigation deadline. An asyncio event loop satisfies Scheduler
as-is (``loop.call_later`` returns a cancellable TimerHandle).
"""

from __future__ import annotations

from typing import Callable, Protocol


class MapControl(Protocol):
    def pan_to(self, lat: float, lng: float, zoom: int) -> None: ...

    def zoom_to_feature(self, feature_id: str) -> bool: ...

    def zoom_to_boundary(self, boundary_id: str) -> bool: ...

    def on_map_ready(self, callback: Callable[[], None]) -> None: ...


class NotificationSink(Protocol):
    def notify(self, title: str, description: str, variant: str = "default") -> None: ...


class UrlHistory(Protocol):
    def replace_url(self, url: str) -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...
