"""Integration tests for MapViewSession wiring."""
from __future__ import annotations

import math

import pytest

from mapapp.config import Settings
from mapengine.geo.cache import TransformCache
from mapengine.layers.shapefile import Shapefile
from mapengine.mapview.session import MapViewSession
from mapengine.navigation.controller import NavState

SQUARE = [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]
BOUNDARY = {"_id": "b1", "geometry": {"type": "Polygon", "coordinates": [SQUARE]}}

MERCATOR_FC = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [1113194.9079327357, 1118889.9748579594]},
            "properties": {},
        },
        {"type": "Feature", "geometry": {"type": "Point", "coordinates": [12, 12]}, "properties": {}},
    ],
}


def _fc(coords):
    return {
        "type": "FeatureCollection",
        "features": [{"type": "Feature", "geometry": {"type": "Point", "coordinates": coords}, "properties": {}}],
    }


@pytest.fixture
def session(map_control, notifier, history, scheduler):
    s = MapViewSession(map_control, notifier, history, scheduler, config=Settings())
    s.init()
    yield s
    s.dispose()


@pytest.mark.integration
class TestZoomToShapefile:
    """Shapefile framing publishes a viewport command or notifies."""

    def test_publishes_viewport(self, session, notifier):
        received = []
        session.channel.subscribe(received.append)
        command = session.zoom_to_shapefile(Shapefile("s1", "Mixed", MERCATOR_FC))

        assert received == [command]
        assert command.lat == pytest.approx(11.0, abs=1e-6)
        assert command.lng == pytest.approx(11.0, abs=1e-6)
        assert command.zoom == 10
        assert notifier.titles == ["Navigating to Shapefile"]

    def test_empty_shapefile(self, session, notifier):
        assert session.zoom_to_shapefile(Shapefile("s1", "Nothing", None)) is None
        assert notifier.titles == ["Empty Shapefile"]
        assert session.channel.last is None

    def test_invalid_data(self, session, notifier):
        assert session.zoom_to_shapefile(Shapefile("s1", "Broken", "{oops")) is None
        assert notifier.titles == ["Invalid Shapefile Data"]

    def test_coordinate_range_error(self, session, notifier):
        assert session.zoom_to_shapefile(Shapefile("s1", "Far", _fc([5e7, 5e7]))) is None
        assert notifier.titles == ["Coordinate Range Error"]
        assert notifier.notifications[0][2] == "destructive"

    def test_no_usable_coordinates(self, session, notifier):
        assert session.zoom_to_shapefile(Shapefile("s1", "Blank", _fc([math.nan, math.nan]))) is None
        assert notifier.titles == ["Navigation Error"]

    def test_unconvertible_projected_coordinates(self, session, notifier):
        session.cache = TransformCache(candidates=())
        assert session.zoom_to_shapefile(Shapefile("s1", "Grid", _fc([500000, 4649776]))) is None
        assert notifier.titles == ["Coordinate System Issue"]
        assert '"Grid"' in notifier.notifications[0][1]

    def test_zoom_to_recent_without_shapefiles(self, session, notifier):
        assert session.zoom_to_recent_shapefile() is None
        assert notifier.titles == ["No Shapefiles"]

    def test_add_local_zooms(self, session, notifier):
        session.add_local_shapefile(Shapefile("s1", "Upload", _fc([10, 20]), feature_count=1))
        assert notifier.titles == ["Shapefile Added", "Navigating to Shapefile"]
        assert session.channel.last.zoom == 17

    def test_add_local_without_zoom(self, session, notifier):
        session.add_local_shapefile(Shapefile("s1", "Upload", _fc([10, 20])), zoom=False)
        assert notifier.titles == ["Shapefile Added"]
        assert session.zoom_to_recent_shapefile() is not None


@pytest.mark.integration
class TestSessionState:
    def test_cache_resets_when_shapefile_set_changes(self, session):
        session.set_saved_shapefiles([{"_id": "a", "name": "A", "features": _fc([1, 2])}])
        session.zoom_to_shapefile(session.shapefiles.get("a"))
        assert len(session.cache) == 1
        session.set_saved_shapefiles([
            {"_id": "a", "name": "A", "features": _fc([1, 2])},
            {"_id": "b", "name": "B", "features": _fc([3, 4])},
        ])
        assert len(session.cache) == 0

    def test_render_shapefiles_skips_hidden(self, session):
        session.set_saved_shapefiles([
            {"_id": "a", "name": "A", "features": _fc([1, 2])},
            {"_id": "b", "name": "B", "features": _fc([3, 4]), "isVisible": False},
        ])
        rendered = session.render_shapefiles()
        assert len(rendered) == 1
        assert rendered[0]["features"][0]["properties"]["shapefileName"] == "A"

    def test_navigation_through_session(self, session, map_control, history):
        map_control.known_features.add("f1")
        session.on_url_change("/map?feature=f1")
        map_control.ready()
        session.set_features([{"_id": "f1"}])
        assert session.navigation.status is NavState.SUCCEEDED
        assert history.urls == ["/map"]

    def test_dispose_cancels_navigation(self, map_control, notifier, history, scheduler):
        s = MapViewSession(map_control, notifier, history, scheduler, config=Settings())
        s.init()
        s.on_url_change("/map?feature=f1")
        s.dispose()
        scheduler.advance(30)
        assert notifier.notifications == []

    def test_timeout_from_settings(self, map_control, notifier, history, scheduler):
        s = MapViewSession(map_control, notifier, history, scheduler, config=Settings(navigation_timeout_s=2.0))
        s.init()
        s.on_url_change("/map?feature=f1")
        scheduler.advance(2.0)
        assert notifier.titles == ["Navigation Timeout"]


@pytest.mark.integration
class TestPlacementPolicy:
    def test_field_user_restricted(self, map_control, notifier, history, scheduler):
        s = MapViewSession(map_control, notifier, history, scheduler, config=Settings(), user_role="Field User")
        s.set_boundaries([BOUNDARY])
        assert s.can_place_point(5, 5)
        assert not s.can_place_point(50, 50)
        assert s.can_place_polygon([[[1, 1], [2, 1], [2, 2], [1, 1]]])

    def test_supervisor_unrestricted(self, map_control, notifier, history, scheduler):
        s = MapViewSession(map_control, notifier, history, scheduler, config=Settings(), user_role="Supervisor")
        assert s.can_place_point(50, 50)
