"""Per-view session that owns the engine state."""

from mapengine.mapview.session import MapViewSession

__all__ = ["MapViewSession"]
