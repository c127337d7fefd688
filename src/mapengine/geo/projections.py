"""Projection transformer - convert projected pairs to WGS84 lon/lat.

There is no CRS metadata to go on, so a fixed, ordered table of candidate
projections is tried and the first one that lands inside
[-180, 180] x [-90, 90] wins. No scoring, no best fit: the table order alone
makes the result deterministic.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Sequence

from loguru import logger
from pyproj import Transformer
from pyproj.exceptions import ProjError

from mapengine.geo.classifier import in_geographic_range

WGS84 = "EPSG:4326"


@dataclass(frozen=True)
class ProjectionCandidate:
    """A named source CRS tried by the transformer."""

    name: str
    crs: str


@dataclass(frozen=True)
class TransformResult:
    """Outcome of normalizing one coordinate pair. Immutable once produced."""

    success: bool
    coords: tuple[float, float] | None = None
    projection_name: str | None = None


UNRESOLVED = TransformResult(success=False)

DEFAULT_CANDIDATES: tuple[ProjectionCandidate, ...] = (
    ProjectionCandidate("Web Mercator", "EPSG:3857"),
    ProjectionCandidate("UTM Zone 10N", "EPSG:32610"),
    ProjectionCandidate("UTM Zone 11N", "EPSG:32611"),
    ProjectionCandidate("UTM Zone 12N", "EPSG:32612"),
)


@lru_cache(maxsize=None)
def get_transformer(source_crs: str, target_crs: str = WGS84) -> Transformer:
    """Build (once) a pyproj Transformer with lon/lat axis order."""
    return Transformer.from_crs(source_crs, target_crs, always_xy=True)


def transform(
    x: float,
    y: float,
    candidates: Sequence[ProjectionCandidate] = DEFAULT_CANDIDATES,
) -> TransformResult:
    """Project (x, y) to WGS84 using the first candidate that yields a valid pair."""
    for candidate in candidates:
        try:
            lng, lat = get_transformer(candidate.crs).transform(x, y)
        except ProjError as e:
            logger.debug(f"{candidate.name} rejected ({x}, {y}): {e}")
            continue
        if math.isfinite(lng) and math.isfinite(lat) and in_geographic_range(lng, lat):
            return TransformResult(
                success=True,
                coords=(float(lng), float(lat)),
                projection_name=candidate.name,
            )
    return UNRESOLVED
