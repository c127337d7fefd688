"""Coordinate normalization - classify, reproject, fold extents, test containment.

Projection math is delegated to pyproj; everything else is plain Python over
GeoJSON-style coordinate arrays.
"""

from mapengine.geo.cache import TransformCache
from mapengine.geo.classifier import Classification, classify
from mapengine.geo.containment import BoundaryAccessPolicy, point_in_polygon, polygon_in_boundary
from mapengine.geo.extent import (
    ViewportCommand,
    compute_extent,
    fold_extent,
    pad_extent,
    viewport_for,
    zoom_for_extent,
)
from mapengine.geo.geometry import parse_geometry
from mapengine.geo.projections import TransformResult, transform

__all__ = [
    "BoundaryAccessPolicy",
    "Classification",
    "TransformCache",
    "TransformResult",
    "ViewportCommand",
    "classify",
    "compute_extent",
    "fold_extent",
    "pad_extent",
    "parse_geometry",
    "point_in_polygon",
    "polygon_in_boundary",
    "transform",
    "viewport_for",
    "zoom_for_extent",
]
