"""Unit tests for ShapefileManager and the Shapefile record."""
from __future__ import annotations

import pytest

from mapengine.layers.manager import ShapefileManager
from mapengine.layers.shapefile import Shapefile

FC = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "geometry": {"type": "Point", "coordinates": [1, 2]}, "properties": {"name": "a"}},
    ],
}


def _shp(shapefile_id, raw=FC, visible=True):
    return Shapefile(shapefile_id=shapefile_id, name=f"layer-{shapefile_id}", raw=raw, is_visible=visible)


@pytest.mark.unit
class TestShapefileRecord:
    def test_from_record(self):
        shp = Shapefile.from_record({
            "_id": "abc",
            "name": "Parcels",
            "features": FC,
            "isVisible": False,
            "featureCount": 1,
            "projection": "EPSG:4326",
            "uploadedAt": "2024-01-01T00:00:00Z",
        })
        assert shp.shapefile_id == "abc"
        assert shp.raw is FC
        assert not shp.is_visible
        assert shp.feature_count == 1
        assert shp.projection == "EPSG:4326"

    def test_from_record_defaults(self):
        shp = Shapefile.from_record({"id": 7})
        assert shp.shapefile_id == "7"
        assert shp.is_visible
        assert shp.raw is None
        assert shp.feature_count == 0


@pytest.mark.unit
class TestShapefileManager:
    """Local uploads plus saved, visibility-filtered shapefiles."""

    def test_add_local_stamps_upload_time(self):
        mgr = ShapefileManager()
        shp = _shp("l1")
        assert mgr.add_local(shp) == "l1"
        assert shp.uploaded_at
        assert mgr.get("l1") is shp

    def test_visible_includes_local_and_visible_saved(self):
        mgr = ShapefileManager()
        mgr.add_local(_shp("l1"))
        mgr.set_saved([_shp("s1"), _shp("s2", visible=False)])
        assert [s.shapefile_id for s in mgr.visible()] == ["l1", "s1"]

    def test_fingerprint_changes_with_visible_set(self):
        mgr = ShapefileManager()
        mgr.set_saved([_shp("s1"), _shp("s2")])
        assert mgr.fingerprint() == "s1s2#2"
        mgr.set_visibility("s2", False)
        assert mgr.fingerprint() == "s1#1"

    def test_empty_fingerprint(self):
        assert ShapefileManager().fingerprint() == "#0"

    def test_set_visibility_unknown(self):
        with pytest.raises(KeyError):
            ShapefileManager().set_visibility("missing", True)

    def test_remove(self):
        mgr = ShapefileManager()
        mgr.add_local(_shp("l1"))
        mgr.set_saved([_shp("s1")])
        assert mgr.remove("l1")
        assert mgr.remove("s1")
        assert not mgr.remove("s1")
        assert mgr.visible() == []

    def test_most_recent_prefers_local(self):
        mgr = ShapefileManager()
        mgr.set_saved([_shp("s1")])
        assert mgr.most_recent().shapefile_id == "s1"
        mgr.add_local(_shp("l1"))
        mgr.add_local(_shp("l2"))
        assert mgr.most_recent().shapefile_id == "l2"

    def test_most_recent_none(self):
        assert ShapefileManager().most_recent() is None

    def test_render_collections_tags_and_skips_bad(self):
        mgr = ShapefileManager()
        mgr.set_saved([_shp("good"), _shp("bad", raw="{not json")])
        collections, batch = mgr.render_collections()
        assert len(collections) == 1
        props = collections[0]["features"][0]["properties"]
        assert props["shapefileId"] == "good"
        assert props["shapefileName"] == "layer-good"
        assert "bad" in batch.errors
