"""Error taxonomy for the geo engine.

Coordinate-level failures (classification, transform) are usually recovered
by the caller; extent, shapefile and navigation failures are surfaced to the
user by the map view session.
"""

from __future__ import annotations


class GeoEngineError(Exception):
    """Base class for every error raised by the engine."""


class ClassificationUnknown(GeoEngineError):
    """A coordinate pair is neither geographic nor plausibly projected."""

    def __init__(self, x: float, y: float) -> None:
        super().__init__(f"Unknown coordinate system for ({x}, {y})")
        self.x = x
        self.y = y


class TransformUnresolved(GeoEngineError):
    """No candidate projection mapped a projected pair into WGS84 range."""

    def __init__(self, x: float, y: float) -> None:
        super().__init__(f"No candidate projection resolved ({x}, {y})")
        self.x = x
        self.y = y


class InvalidExtent(GeoEngineError):
    """No usable coordinates, or the folded extent left geographic range.

    Attributes:
        reason: NO_COORDINATES, PROJECTED_ONLY (every usable pair was
            projected and none resolved) or OUT_OF_RANGE.
    """

    NO_COORDINATES = "no_coordinates"
    PROJECTED_ONLY = "projected_only"
    OUT_OF_RANGE = "out_of_range"

    def __init__(self, message: str, reason: str = NO_COORDINATES) -> None:
        super().__init__(message)
        self.reason = reason


class ShapefileError(GeoEngineError):
    """A single shapefile could not be normalized.

    Attributes:
        shapefile_id: ID of the offending shapefile (empty if unknown).
    """

    def __init__(self, message: str, shapefile_id: str = "") -> None:
        super().__init__(message)
        self.shapefile_id = shapefile_id


class ShapefileDecodeError(ShapefileError):
    """Binary or JSON payload could not be decoded."""


class ShapefileEmpty(ShapefileError):
    """Payload decoded but yielded zero features."""


class UnsupportedGeometryError(ShapefileError):
    """Geometry is not one of the six supported GeoJSON types."""


class NavigationError(GeoEngineError):
    """Base class for deep-link navigation failures."""


class NavigationTargetNotFound(NavigationError):
    """Neither the feature nor the boundary lookup succeeded."""


class NavigationTimeout(NavigationError):
    """The navigation deadline expired before any attempt resolved."""
