"""Extent and zoom calculation for geometries of unknown coordinate origin.

Every vertex goes through the transform cache: geographic pairs are used
directly, projected pairs are converted to WGS84, unresolved projected pairs
are skipped, and unknown pairs are used as-is. If nothing usable remains, or
the folded box leaves geographic range, the extent is invalid.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

from loguru import logger

from mapengine.geo.cache import TransformCache
from mapengine.geo.classifier import Classification, classify, in_geographic_range
from mapengine.geo.errors import InvalidExtent
from mapengine.geo.geometry import Geometry, Point, iter_positions

Extent = tuple[float, float, float, float]  # (min_lon, min_lat, max_lon, max_lat)

DEFAULT_PADDING_RATIO = 0.1

# (span threshold in degrees, zoom) - first threshold exceeded wins.
ZOOM_LADDER: tuple[tuple[float, int], ...] = (
    (5.0, 8),     # country / region
    (1.0, 10),    # large city
    (0.1, 13),    # city
    (0.01, 15),   # neighborhood
)
MAX_ZOOM = 17     # street


@dataclass
class ExtentResult:
    """Raw extent plus bookkeeping about how it was folded."""

    extent: Extent
    folded: int = 0
    skipped: int = 0
    projections: dict[str, int] = field(default_factory=dict)

    @property
    def coordinate_system(self) -> str:
        """Dominant source system ("geographic", a projection name, or "unknown")."""
        if not self.projections:
            return "unknown"
        name = max(self.projections, key=self.projections.get)
        return "geographic" if name == "WGS84" else name


@dataclass(frozen=True)
class ViewportCommand:
    """Where the map widget should move: center, zoom and padded extent."""

    lat: float
    lng: float
    zoom: int
    extent: Extent
    padding: bool = True


class _Fold:
    def __init__(self) -> None:
        self.min_x = math.inf
        self.min_y = math.inf
        self.max_x = -math.inf
        self.max_y = -math.inf
        self.folded = 0
        self.skipped = 0
        self.unresolved = 0
        self.projections: dict[str, int] = {}

    def add(self, x: float, y: float, source: str) -> None:
        self.min_x = min(self.min_x, x)
        self.min_y = min(self.min_y, y)
        self.max_x = max(self.max_x, x)
        self.max_y = max(self.max_y, y)
        self.folded += 1
        self.projections[source] = self.projections.get(source, 0) + 1


def _fold_position(fold: _Fold, x: float, y: float, cache: TransformCache) -> None:
    if not (math.isfinite(x) and math.isfinite(y)):
        fold.skipped += 1
        return
    result = cache.resolve(x, y)
    if result.success:
        fold.add(result.coords[0], result.coords[1], result.projection_name)
        return
    if classify(x, y) is Classification.UNKNOWN:
        # Degrade gracefully: fold as-is and let the range check decide.
        logger.warning(f"Unknown coordinate system for ({x}, {y}), using as-is")
        fold.add(x, y, "unknown")
        return
    fold.unresolved += 1
    fold.skipped += 1


def _finish(fold: _Fold) -> ExtentResult:
    if fold.folded == 0:
        if fold.unresolved:
            raise InvalidExtent(
                f"Only projected coordinates, none resolved ({fold.unresolved} pairs)",
                InvalidExtent.PROJECTED_ONLY,
            )
        raise InvalidExtent(f"No usable coordinates ({fold.skipped} skipped)")
    extent = (fold.min_x, fold.min_y, fold.max_x, fold.max_y)
    if not (in_geographic_range(extent[0], extent[1]) and in_geographic_range(extent[2], extent[3])):
        raise InvalidExtent(f"Extent outside geographic range: {list(extent)}", InvalidExtent.OUT_OF_RANGE)
    return ExtentResult(extent, fold.folded, fold.skipped, fold.projections)


def fold_extent(geometries: Iterable[Geometry], cache: TransformCache | None = None) -> ExtentResult:
    """Fold every vertex of every geometry into a raw WGS84 extent.

    Raises:
        InvalidExtent: zero usable coordinates, or result outside lon/lat range.
    """
    cache = cache if cache is not None else TransformCache()
    fold = _Fold()
    for geometry in geometries:
        for x, y in iter_positions(geometry):
            _fold_position(fold, x, y, cache)
    return _finish(fold)


def compute_extent(coords: Iterable[Iterable[float]], cache: TransformCache | None = None) -> Extent:
    """Raw extent of a flat sequence of [x, y] pairs."""
    points = [Point(coordinates=list(c)[:2]) for c in coords]
    return fold_extent(points, cache).extent


def pad_extent(extent: Extent, ratio: float = DEFAULT_PADDING_RATIO) -> Extent:
    """Grow each axis by ``ratio`` of its span on both sides.

    A degenerate axis (single point) still grows, by ``ratio`` of a
    street-level span, so the padded box always strictly contains the raw one.
    """
    min_x, min_y, max_x, max_y = extent
    pad_x = (max_x - min_x) * ratio or 0.01 * ratio
    pad_y = (max_y - min_y) * ratio or 0.01 * ratio
    return (min_x - pad_x, min_y - pad_y, max_x + pad_x, max_y + pad_y)


def extent_span(extent: Extent) -> float:
    min_x, min_y, max_x, max_y = extent
    return max(max_x - min_x, max_y - min_y)


def zoom_for_extent(extent: Extent) -> int:
    """Discrete zoom level for an extent; no interpolation between steps."""
    span = extent_span(extent)
    for threshold, zoom in ZOOM_LADDER:
        if span > threshold:
            return zoom
    return MAX_ZOOM


def extent_center(extent: Extent) -> tuple[float, float]:
    """Center of an extent as (lat, lng)."""
    min_x, min_y, max_x, max_y = extent
    return ((min_y + max_y) / 2, (min_x + max_x) / 2)


def viewport_for(
    geometries: Iterable[Geometry],
    cache: TransformCache | None = None,
    padding_ratio: float = DEFAULT_PADDING_RATIO,
) -> ViewportCommand:
    """Viewport framing a set of geometries (center of raw, zoom of padded extent)."""
    result = fold_extent(geometries, cache)
    padded = pad_extent(result.extent, padding_ratio)
    lat, lng = extent_center(result.extent)
    return ViewportCommand(lat=lat, lng=lng, zoom=zoom_for_extent(padded), extent=padded)
