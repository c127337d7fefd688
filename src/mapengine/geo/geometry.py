"""GeoJSON geometry model - an exhaustive union of the six RFC 7946 types.

All coordinates follow GeoJSON convention: [lng, lat] or [x, y] for data of
unknown origin. Nesting depth per type:

    Point:            [x, y]
    LineString:       [[x, y], ...]
    MultiPoint:       [[x, y], ...]
    Polygon:          [[[x, y], ...], ...]          (list of rings)
    MultiLineString:  [[[x, y], ...], ...]
    MultiPolygon:     [[[[x, y], ...], ...], ...]

Anything else is rejected with UnsupportedGeometryError instead of being
handled best-effort.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, ClassVar, Iterator, Union

from mapengine.geo.errors import UnsupportedGeometryError

Position = tuple[float, float]


@dataclass(frozen=True)
class Point:
    coordinates: list
    geometry_type: ClassVar[str] = "Point"
    depth: ClassVar[int] = 1


@dataclass(frozen=True)
class LineString:
    coordinates: list
    geometry_type: ClassVar[str] = "LineString"
    depth: ClassVar[int] = 2


@dataclass(frozen=True)
class Polygon:
    coordinates: list
    geometry_type: ClassVar[str] = "Polygon"
    depth: ClassVar[int] = 3

    @property
    def outer_ring(self) -> list:
        return self.coordinates[0] if self.coordinates else []


@dataclass(frozen=True)
class MultiPoint:
    coordinates: list
    geometry_type: ClassVar[str] = "MultiPoint"
    depth: ClassVar[int] = 2


@dataclass(frozen=True)
class MultiLineString:
    coordinates: list
    geometry_type: ClassVar[str] = "MultiLineString"
    depth: ClassVar[int] = 3


@dataclass(frozen=True)
class MultiPolygon:
    coordinates: list
    geometry_type: ClassVar[str] = "MultiPolygon"
    depth: ClassVar[int] = 4


Geometry = Union[Point, LineString, Polygon, MultiPoint, MultiLineString, MultiPolygon]

GEOMETRY_TYPES: dict[str, type] = {
    cls.geometry_type: cls
    for cls in (Point, LineString, Polygon, MultiPoint, MultiLineString, MultiPolygon)
}


def _is_position(value) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) >= 2
        and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)
    )


def _check_nesting(coords, depth: int) -> bool:
    """True if ``coords`` is a well-formed array nested ``depth`` levels."""
    if depth == 1:
        return _is_position(coords)
    if not isinstance(coords, (list, tuple)):
        return False
    return all(_check_nesting(c, depth - 1) for c in coords)


def _as_lists(coords):
    if isinstance(coords, (list, tuple)):
        return [_as_lists(c) for c in coords]
    return coords


def parse_geometry(raw: dict | str) -> Geometry:
    """Parse a GeoJSON geometry object (or its JSON string) into a Geometry.

    Raises:
        UnsupportedGeometryError: unknown type, missing coordinates, or
            coordinates not nested the way the type requires.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise UnsupportedGeometryError(f"Geometry is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise UnsupportedGeometryError(f"Geometry must be an object, got {type(raw).__name__}")

    geom_type = raw.get("type", "")
    cls = GEOMETRY_TYPES.get(geom_type)
    if cls is None:
        raise UnsupportedGeometryError(f"Unsupported geometry type: {geom_type!r}")

    coordinates = raw.get("coordinates")
    if coordinates is None or not _check_nesting(coordinates, cls.depth):
        raise UnsupportedGeometryError(f"Malformed {geom_type} coordinates")

    return cls(coordinates=_as_lists(coordinates))


def to_geojson(geometry: Geometry) -> dict:
    """Serialize a Geometry back to a GeoJSON geometry dict."""
    return {"type": geometry.geometry_type, "coordinates": geometry.coordinates}


def _walk(coords, depth: int) -> Iterator[Position]:
    if depth == 1:
        yield (coords[0], coords[1])
        return
    for sub in coords:
        yield from _walk(sub, depth - 1)


def iter_positions(geometry: Geometry) -> Iterator[Position]:
    """Yield every (x, y) vertex of a geometry, ignoring any altitude."""
    yield from _walk(geometry.coordinates, geometry.depth)


def _remap(coords, depth: int, fn: Callable[[float, float], Position]):
    if depth == 1:
        x, y = fn(coords[0], coords[1])
        return [x, y, *coords[2:]]
    return [_remap(sub, depth - 1, fn) for sub in coords]


def map_positions(geometry: Geometry, fn: Callable[[float, float], Position]) -> Geometry:
    """Return a new geometry of the same type with ``fn`` applied to each vertex."""
    return type(geometry)(coordinates=_remap(geometry.coordinates, geometry.depth, fn))
