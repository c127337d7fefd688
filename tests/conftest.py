"""Shared fakes for the map engine tests.

The navigation controller and map view session only talk to injected
collaborators, so the tests drive them with these in-memory stand-ins
instead of a real map widget or event loop.
"""
from __future__ import annotations

import pytest


class FakeTimer:
    def __init__(self, when: float, callback) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when the test calls advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for timer in list(self.timers):
            if not timer.cancelled and not timer.fired and timer.when <= self.now:
                timer.fired = True
                timer.callback()

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]


class FakeMapControl:
    """Map widget stand-in; knows a fixed set of feature/boundary ids."""

    def __init__(self, features=(), boundaries=()) -> None:
        self.known_features = set(features)
        self.known_boundaries = set(boundaries)
        self.feature_calls: list[str] = []
        self.boundary_calls: list[str] = []
        self.pans: list[tuple[float, float, int]] = []
        self._ready_callbacks = []

    def pan_to(self, lat: float, lng: float, zoom: int) -> None:
        self.pans.append((lat, lng, zoom))

    def zoom_to_feature(self, feature_id: str) -> bool:
        self.feature_calls.append(feature_id)
        return feature_id in self.known_features

    def zoom_to_boundary(self, boundary_id: str) -> bool:
        self.boundary_calls.append(boundary_id)
        return boundary_id in self.known_boundaries

    def on_map_ready(self, callback) -> None:
        self._ready_callbacks.append(callback)

    def ready(self) -> None:
        for callback in self._ready_callbacks:
            callback()


class RecordingNotifier:
    def __init__(self) -> None:
        self.notifications: list[tuple[str, str, str]] = []

    def notify(self, title: str, description: str, variant: str = "default") -> None:
        self.notifications.append((title, description, variant))

    @property
    def titles(self) -> list[str]:
        return [n[0] for n in self.notifications]


class FakeHistory:
    def __init__(self) -> None:
        self.urls: list[str] = []

    def replace_url(self, url: str) -> None:
        self.urls.append(url)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def map_control():
    return FakeMapControl()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def history():
    return FakeHistory()

