"""Deep-link navigation controller.

Resolves ``?feature=<id>`` / ``?boundary=<id>`` URLs into map viewport
actions once the map widget is ready and the datasets have loaded.

FSM:
  idle -> awaiting_prereqs -> attempting -> succeeded | failed
  attempting -> awaiting_prereqs       (feature missed, boundaries not loaded yet)
  awaiting_prereqs -> timed_out           (deadline expired first)
  any URL with ?tab=...  -> skipped_dashboard (no attempt for that URL)
  dispose()              -> disposed

Each URL gets exactly one attempt and exactly one resolution. Success,
failure and timeout all go through ``_resolve``, which runs once per URL
and cancels the deadline, so the user sees at most one notification.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any

from loguru import logger

from mapengine.comms.channel import ViewportChannel
from mapengine.geo.cache import TransformCache
from mapengine.geo.errors import (
    GeoEngineError,
    NavigationError,
    NavigationTargetNotFound,
    NavigationTimeout,
)
from mapengine.geo.extent import DEFAULT_PADDING_RATIO, viewport_for
from mapengine.geo.geometry import parse_geometry
from mapengine.navigation.interfaces import (
    MapControl,
    NotificationSink,
    Scheduler,
    TimerHandle,
    UrlHistory,
)
from mapengine.navigation.request import (
    NavigationParams,
    NavigationRequest,
    parse_request,
    strip_params,
)

DEFAULT_TIMEOUT_S = 5.0

NAVIGATION_FAILED = "Navigation Failed"
NAVIGATION_TIMEOUT = "Navigation Timeout"


class NavState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_PREREQS = "awaiting_prereqs"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    SKIPPED_DASHBOARD = "skipped_dashboard"
    DISPOSED = "disposed"


_PENDING = (NavState.AWAITING_PREREQS, NavState.ATTEMPTING)
_PROCESSED = (
    NavState.SUCCEEDED,
    NavState.FAILED,
    NavState.TIMED_OUT,
    NavState.SKIPPED_DASHBOARD,
)


@dataclass
class NavigationState:
    """Per-view navigation state. Replaced wholesale on every new URL.

    ``source_url`` is the URL as received; ``last_url`` becomes the stripped
    URL once the attempt resolves. Either one arriving again is a no-op.
    """

    last_url: str = ""
    source_url: str = ""
    feature_tried: bool = False
    status: NavState = NavState.IDLE
    timeout_handle: TimerHandle | None = None
    enabled: bool = True
    error: NavigationError | None = None

    @property
    def has_processed(self) -> bool:
        return self.status in _PROCESSED


def record_id(record: dict) -> str:
    """ID of a feature/boundary record (store ``_id``, else ``id``)."""
    return str(record.get("_id") or record.get("id") or "")


def find_record(records: list[dict], target_id: str) -> dict | None:
    for record in records:
        if record_id(record) == target_id:
            return record
    return None


class NavigationController:
    """Turns one deep-link URL into at most one viewport action.

    Usage:
        nav = NavigationController(map_control, notifier, history, loop)
        nav.init()
        nav.on_url_change("/map?feature=abc123")
        nav.set_features(features)          # whenever the dataset arrives
        ...
        nav.dispose()
    """

    def __init__(
        self,
        map_control: MapControl,
        notifier: NotificationSink,
        history: UrlHistory,
        scheduler: Scheduler,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        params: NavigationParams = NavigationParams(),
        cache: TransformCache | None = None,
        channel: ViewportChannel | None = None,
        padding_ratio: float = DEFAULT_PADDING_RATIO,
        enabled: bool = True,
    ) -> None:
        self._map = map_control
        self._notifier = notifier
        self._history = history
        self._scheduler = scheduler
        self._timeout_s = timeout_s
        self._params = params
        self._cache = cache if cache is not None else TransformCache()
        self._channel = channel
        self._padding_ratio = padding_ratio

        self._map_ready = False
        self._features: list[dict] = []
        self._boundaries: list[dict] = []
        self._request = NavigationRequest()
        self.state = NavigationState(enabled=enabled)

    # -- lifecycle ---------------------------------------------------------

    def init(self) -> None:
        """Subscribe to the map's readiness signal."""
        self._map.on_map_ready(self._on_map_ready)

    def dispose(self) -> None:
        """Cancel the deadline and ignore every later callback."""
        self._cancel_timer()
        self.state.status = NavState.DISPOSED
        self._features = []
        self._boundaries = []

    # -- inputs ------------------------------------------------------------

    @property
    def status(self) -> NavState:
        return self.state.status

    @property
    def has_processed(self) -> bool:
        return self.state.has_processed

    @property
    def request(self) -> NavigationRequest:
        return self._request

    def on_url_change(self, url: str) -> None:
        """React to a (possibly unchanged) browser URL."""
        if self.state.status is NavState.DISPOSED or not self.state.enabled:
            return
        if url in (self.state.last_url, self.state.source_url):
            return

        request = parse_request(url, self._params)
        self._cancel_timer()
        self._request = request
        self.state = NavigationState(last_url=url, source_url=url, enabled=self.state.enabled)

        if request.is_dashboard:
            logger.debug(f"Dashboard navigation ({self._params.dashboard}={request.dashboard_tab}), deep link ignored")
            self.state.status = NavState.SKIPPED_DASHBOARD
            return
        if not request.has_target:
            return

        logger.info(f"Deep link: feature={request.feature_id} boundary={request.boundary_id}")
        self.state.status = NavState.AWAITING_PREREQS
        self.state.timeout_handle = self._scheduler.call_later(self._timeout_s, self._on_deadline)
        self._maybe_attempt()

    def set_features(self, features: list[dict]) -> None:
        if self.state.status is NavState.DISPOSED:
            return
        self._features = list(features or [])
        self._maybe_attempt()

    def set_boundaries(self, boundaries: list[dict]) -> None:
        if self.state.status is NavState.DISPOSED:
            return
        self._boundaries = list(boundaries or [])
        self._maybe_attempt()

    def _on_map_ready(self) -> None:
        if self.state.status is NavState.DISPOSED:
            return
        self._map_ready = True
        self._maybe_attempt()

    # -- attempt -----------------------------------------------------------

    def _maybe_attempt(self) -> None:
        """Run whichever lookup is next once its dataset has loaded.

        The feature lookup runs as soon as features arrive; boundaries are
        only waited for when the feature lookup missed (or there is none).
        """
        if self.state.status is not NavState.AWAITING_PREREQS or not self._map_ready:
            return

        req = self._request
        if req.feature_id and not self.state.feature_tried:
            if not self._features:
                return
            self.state.status = NavState.ATTEMPTING
            self.state.feature_tried = True
            if self._try_lookup("feature", req.feature_id, self._features, self._map.zoom_to_feature):
                self._resolve(NavState.SUCCEEDED)
                return
            if req.boundary_id and not self._boundaries:
                self.state.status = NavState.AWAITING_PREREQS
                return

        if req.boundary_id:
            if not self._boundaries:
                return
            self.state.status = NavState.ATTEMPTING
            if self._try_lookup("boundary", req.boundary_id, self._boundaries, self._map.zoom_to_boundary):
                self._resolve(NavState.SUCCEEDED)
                return

        target = req.feature_id or req.boundary_id
        self._resolve(NavState.FAILED, NavigationTargetNotFound(f"Could not find {target} on the map"))

    def _try_lookup(self, kind: str, target_id: str | None, records: list[dict], zoom_to) -> bool:
        if not target_id:
            return False
        try:
            if zoom_to(target_id):
                logger.info(f"Navigated to {kind} {target_id}")
                return True
        except Exception as e:
            # Widget errors count as a failed lookup.
            logger.opt(exception=e).warning(f"zoom_to_{kind}({target_id}) raised")
        record = find_record(records, target_id)
        if record is None:
            return False
        return self._fall_back_to_extent(kind, record)

    def _fall_back_to_extent(self, kind: str, record: dict) -> bool:
        geometry: Any = record.get("geometry")
        if not geometry:
            return False
        try:
            if isinstance(geometry, str):
                geometry = json.loads(geometry)
            viewport = viewport_for([parse_geometry(geometry)], self._cache, self._padding_ratio)
        except (GeoEngineError, json.JSONDecodeError) as e:
            logger.warning(f"Extent fallback for {kind} {record_id(record)} failed: {e}")
            return False
        self._map.pan_to(viewport.lat, viewport.lng, viewport.zoom)
        if self._channel is not None:
            self._channel.publish(viewport)
        logger.info(f"Navigated to {kind} {record_id(record)} by extent (zoom {viewport.zoom})")
        return True

    # -- resolution ----------------------------------------------------------

    def _on_deadline(self) -> None:
        self.state.timeout_handle = None
        self._resolve(
            NavState.TIMED_OUT,
            NavigationTimeout(f"Navigation did not complete within {self._timeout_s:g}s"),
        )

    def _resolve(self, outcome: NavState, error: NavigationError | None = None) -> None:
        """Single resolution point for a URL: success XOR failure XOR timeout."""
        if self.state.status not in _PENDING:
            return
        self._cancel_timer()
        self.state.status = outcome
        self.state.error = error

        if outcome in (NavState.SUCCEEDED, NavState.FAILED):
            self._strip_url()

        if outcome is NavState.FAILED:
            logger.warning(f"Navigation failed: {error}")
            self._notifier.notify(NAVIGATION_FAILED, str(error), "destructive")
        elif outcome is NavState.TIMED_OUT:
            logger.warning(f"Navigation timed out: {error}")
            self._notifier.notify(NAVIGATION_TIMEOUT, str(error), "destructive")

    def _strip_url(self) -> None:
        stripped = strip_params(self.state.last_url, (self._params.feature, self._params.boundary))
        # The host echoes the replaced URL back; that echo is a no-op.
        self.state.last_url = stripped
        self._history.replace_url(stripped)

    def _cancel_timer(self) -> None:
        handle = self.state.timeout_handle
        if handle is not None:
            handle.cancel()
            self.state.timeout_handle = None
