"""Unit tests for ray-casting containment and the boundary access policy."""
from __future__ import annotations

import json

import pytest

from mapengine.geo.containment import (
    BoundaryAccessPolicy,
    boundary_outer_ring,
    point_in_polygon,
    polygon_in_boundary,
    segments_intersect,
)

SQUARE = [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]

# U-shaped boundary with a notch between x=1 and x=2 above y=1.
U_SHAPE = [[0, 0], [3, 0], [3, 3], [2, 3], [2, 1], [1, 1], [1, 3], [0, 3]]

# Every vertex sits inside the U, but the top edge crosses the notch.
BRIDGE = [[0.5, 2], [2.5, 2], [2.5, 0.5], [0.5, 0.5]]


def _boundary(ring, boundary_id="b1"):
    return {"_id": boundary_id, "geometry": {"type": "Polygon", "coordinates": [ring]}}


@pytest.mark.unit
class TestPointInPolygon:
    """Horizontal-ray crossing count."""

    def test_inside(self):
        assert point_in_polygon((5, 5), SQUARE)

    def test_outside(self):
        assert not point_in_polygon((15, 5), SQUARE)
        assert not point_in_polygon((5, -1), SQUARE)

    def test_ring_without_closing_vertex(self):
        assert point_in_polygon((5, 5), SQUARE[:-1])

    def test_concave_notch_is_outside(self):
        assert not point_in_polygon((1.5, 2), U_SHAPE)
        assert point_in_polygon((0.5, 2), U_SHAPE)

    def test_degenerate_ring(self):
        assert not point_in_polygon((0, 0), [[0, 0], [1, 1]])
        assert not point_in_polygon((0, 0), [])


@pytest.mark.unit
class TestSegmentsIntersect:
    def test_crossing(self):
        assert segments_intersect((0, 0), (2, 2), (0, 2), (2, 0))

    def test_disjoint(self):
        assert not segments_intersect((0, 0), (1, 0), (0, 1), (1, 1))

    def test_touching_endpoint_is_not_a_crossing(self):
        assert not segments_intersect((0, 0), (1, 1), (1, 1), (2, 0))


@pytest.mark.unit
class TestPolygonInBoundary:
    def test_all_vertices_inside(self):
        assert polygon_in_boundary([[1, 1], [2, 1], [2, 2], [1, 1]], SQUARE)

    def test_one_vertex_outside(self):
        assert not polygon_in_boundary([[1, 1], [12, 1], [2, 2]], SQUARE)

    def test_empty_drawn_ring(self):
        assert not polygon_in_boundary([], SQUARE)

    def test_vertex_only_accepts_edge_leaving_boundary(self):
        assert polygon_in_boundary(BRIDGE, U_SHAPE)

    def test_strict_edges_rejects_crossing(self):
        assert not polygon_in_boundary(BRIDGE, U_SHAPE, strict_edges=True)

    def test_strict_edges_accepts_clean_polygon(self):
        assert polygon_in_boundary([[1, 1], [2, 1], [2, 2]], SQUARE, strict_edges=True)


@pytest.mark.unit
class TestBoundaryOuterRing:
    def test_dict_geometry(self):
        assert boundary_outer_ring(_boundary(SQUARE)) == SQUARE

    def test_json_string_geometry(self):
        record = {"_id": "b", "geometry": json.dumps({"type": "Polygon", "coordinates": [SQUARE]})}
        assert boundary_outer_ring(record) == SQUARE

    def test_invalid_json(self):
        assert boundary_outer_ring({"_id": "b", "geometry": "{not json"}) is None

    def test_non_polygon(self):
        assert boundary_outer_ring({"geometry": {"type": "Point", "coordinates": [1, 2]}}) is None

    def test_missing_geometry(self):
        assert boundary_outer_ring({"_id": "b"}) is None


@pytest.mark.unit
class TestBoundaryAccessPolicy:
    """Supervisors anywhere; field users inside assigned boundaries."""

    def test_supervisor_can_place_anywhere(self):
        policy = BoundaryAccessPolicy([_boundary(SQUARE)])
        assert policy.can_place_point(50, 50, "Supervisor")
        assert policy.can_place_polygon([[[50, 50], [60, 50], [60, 60]]], "Supervisor")

    def test_field_user_point_inside(self):
        policy = BoundaryAccessPolicy([_boundary(SQUARE)])
        assert policy.can_place_point(5, 5, "Field User")

    def test_field_user_point_outside(self):
        policy = BoundaryAccessPolicy([_boundary(SQUARE)])
        assert not policy.can_place_point(50, 50, "Field User")

    def test_point_in_any_boundary(self):
        other = [[20, 20], [30, 20], [30, 30], [20, 30], [20, 20]]
        policy = BoundaryAccessPolicy([_boundary(SQUARE), _boundary(other, "b2")])
        assert policy.can_place_point(25, 25, None)

    def test_point_without_boundaries_denied(self):
        assert not BoundaryAccessPolicy([]).can_place_point(5, 5, None)

    def test_polygon_without_boundaries_allowed(self):
        assert BoundaryAccessPolicy([]).can_place_polygon([[[1, 1], [2, 1], [2, 2]]], None)

    def test_polygon_checked_against_first_boundary(self):
        policy = BoundaryAccessPolicy([_boundary(SQUARE)])
        assert policy.can_place_polygon([[[1, 1], [2, 1], [2, 2], [1, 1]]], None)
        assert not policy.can_place_polygon([[[1, 1], [20, 1], [2, 2], [1, 1]]], None)

    def test_strict_policy(self):
        policy = BoundaryAccessPolicy([_boundary(U_SHAPE)], strict_edges=True)
        assert not policy.can_place_polygon([BRIDGE], None)
        assert BoundaryAccessPolicy([_boundary(U_SHAPE)]).can_place_polygon([BRIDGE], None)
