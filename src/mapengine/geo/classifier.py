"""Coordinate classifier - decide whether a raw pair is lon/lat or projected.

Shapefiles and imported features arrive without reliable CRS metadata, so
the engine inspects the magnitudes instead:

    |x| <= 180 and |y| <= 90          -> geographic (bounds inclusive)
    outside that, |x| < 1e7, |y| < 2e7 -> projected (UTM, Web Mercator, ...)
    anything else                     -> unknown
"""

from __future__ import annotations

import enum
import math

MAX_LNG = 180.0
MAX_LAT = 90.0
MAX_PROJECTED_X = 1e7
MAX_PROJECTED_Y = 2e7

# Integer pairs above this magnitude are treated as grid references.
_LARGE_INTEGER = 1000


class Classification(str, enum.Enum):
    GEOGRAPHIC = "geographic"
    PROJECTED = "projected"
    UNKNOWN = "unknown"


def _is_integral(v: float) -> bool:
    return float(v).is_integer()


def in_geographic_range(x: float, y: float) -> bool:
    return abs(x) <= MAX_LNG and abs(y) <= MAX_LAT


def classify(x: float, y: float) -> Classification:
    """Classify a coordinate pair.

    Non-finite inputs are never geographic or projected; they come back
    UNKNOWN and callers are expected to skip them.
    """
    if not (math.isfinite(x) and math.isfinite(y)):
        return Classification.UNKNOWN

    ax, ay = abs(x), abs(y)
    large_integers = (
        ax > _LARGE_INTEGER and ay > _LARGE_INTEGER
        and _is_integral(x) and _is_integral(y)
    )
    if in_geographic_range(x, y) and not large_integers:
        return Classification.GEOGRAPHIC

    if (ax > MAX_LNG or ay > MAX_LAT) and ax < MAX_PROJECTED_X and ay < MAX_PROJECTED_Y:
        return Classification.PROJECTED

    return Classification.UNKNOWN
