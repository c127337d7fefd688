"""Boundary containment - ray-casting point-in-polygon and polygon checks.

Used for access control (field users may only create features inside the
boundaries assigned to them) and for validating drawn polygons. Rings are
lists of (lng, lat) vertices; a closing vertex equal to the first is fine.
"""

from __future__ import annotations

import json
from typing import Iterable, Sequence

from loguru import logger

Vertex = Sequence[float]

SUPERVISOR_ROLE = "Supervisor"


def point_in_polygon(point: Vertex, ring: Sequence[Vertex]) -> bool:
    """Ray-casting point-in-polygon test.

    Casts a horizontal ray from the point to +infinity and counts how many
    ring edges it crosses. Odd count = inside. Points exactly on an edge get
    whatever the crossing count says.
    """
    px, py = point[0], point[1]
    n = len(ring)
    if n < 3:
        return False
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if ((yi > py) != (yj > py)) and (
            px < (xj - xi) * (py - yi) / (yj - yi) + xi
        ):
            inside = not inside
        j = i
    return inside


def segments_intersect(a: Vertex, b: Vertex, c: Vertex, d: Vertex) -> bool:
    """Check if segment AB properly crosses segment CD.

    Uses the cross-product orientation test. Collinear and touching cases
    are not counted as crossings.
    """
    def cross(o: Vertex, p: Vertex, q: Vertex) -> float:
        return (p[0] - o[0]) * (q[1] - o[1]) - (p[1] - o[1]) * (q[0] - o[0])

    d1 = cross(c, d, a)
    d2 = cross(c, d, b)
    d3 = cross(a, b, c)
    d4 = cross(a, b, d)
    return ((d1 > 0 > d2) or (d1 < 0 < d2)) and ((d3 > 0 > d4) or (d3 < 0 < d4))


def _edges(ring: Sequence[Vertex]) -> Iterable[tuple[Vertex, Vertex]]:
    n = len(ring)
    for i in range(n):
        yield ring[i], ring[(i + 1) % n]


def polygon_in_boundary(
    drawn_ring: Sequence[Vertex],
    boundary_ring: Sequence[Vertex],
    strict_edges: bool = False,
) -> bool:
    """True iff every vertex of ``drawn_ring`` lies inside ``boundary_ring``.

    Vertex-only by default: an edge may still leave the boundary between two
    contained vertices. With ``strict_edges`` any drawn edge that crosses a
    boundary edge also fails the check.
    """
    if not drawn_ring:
        return False
    if not all(point_in_polygon(v, boundary_ring) for v in drawn_ring):
        return False
    if strict_edges:
        for a, b in _edges(drawn_ring):
            for c, d in _edges(boundary_ring):
                if segments_intersect(a, b, c, d):
                    return False
    return True


def boundary_outer_ring(boundary: dict) -> list | None:
    """Outer ring of a boundary record's Polygon geometry, or None.

    Boundary geometry may be stored as a dict or as a JSON string.
    """
    geometry = boundary.get("geometry")
    if not geometry:
        return None
    if isinstance(geometry, str):
        try:
            geometry = json.loads(geometry)
        except json.JSONDecodeError as e:
            logger.warning(f"Boundary {boundary.get('_id', '?')} has unparseable geometry: {e}")
            return None
    if not isinstance(geometry, dict) or geometry.get("type") != "Polygon":
        return None
    coords = geometry.get("coordinates") or []
    return coords[0] if coords else None


class BoundaryAccessPolicy:
    """Decides where a user may place points and polygons.

    Supervisors may create anywhere. Field users are restricted to the
    boundaries assigned to them.
    """

    def __init__(self, boundaries: list[dict], strict_edges: bool = False) -> None:
        self._boundaries = boundaries
        self._strict_edges = strict_edges

    def can_place_point(self, lng: float, lat: float, role: str | None) -> bool:
        if role == SUPERVISOR_ROLE:
            return True
        for boundary in self._boundaries:
            ring = boundary_outer_ring(boundary)
            if ring and point_in_polygon((lng, lat), ring):
                return True
        return False

    def can_place_polygon(self, polygon_coords: list, role: str | None) -> bool:
        """Check a drawn Polygon (list of rings) against the first assigned boundary."""
        if role == SUPERVISOR_ROLE:
            return True
        if not self._boundaries:
            # Nothing assigned yet; the backend makes the final call.
            return True
        ring = boundary_outer_ring(self._boundaries[0])
        if ring is None or not polygon_coords:
            return False
        return polygon_in_boundary(polygon_coords[0], ring, strict_edges=self._strict_edges)
