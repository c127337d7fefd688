"""Shapefile record as handed to the engine by the surrounding application.

The engine only reads these; the caller's dataset cache owns them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class Shapefile:
    """A named geometry payload of unknown coordinate origin.

    Attributes:
        shapefile_id: Unique identifier (the store's ``_id``).
        name: Human-readable display name.
        raw: Either the original binary upload (bytes) or GeoJSON:
            a FeatureCollection dict, a list of Feature dicts, a single
            Feature, or a JSON string of any of these.
        is_visible: Whether a saved shapefile is currently shown.
        feature_count: Count reported at upload time (informational).
        projection: Optional projection label recorded at upload.
        uploaded_at: Optional ISO8601 upload timestamp.
    """

    shapefile_id: str
    name: str
    raw: Any
    is_visible: bool = True
    feature_count: int = 0
    projection: str | None = None
    uploaded_at: str = ""

    @classmethod
    def from_record(cls, record: dict) -> "Shapefile":
        """Build from a stored record (``_id``, ``name``, ``features``, ``isVisible``)."""
        return cls(
            shapefile_id=str(record.get("_id") or record.get("id") or ""),
            name=record.get("name", ""),
            raw=record.get("features"),
            is_visible=bool(record.get("isVisible", True)),
            feature_count=int(record.get("featureCount") or 0),
            projection=record.get("projection"),
            uploaded_at=str(record.get("uploadedAt") or ""),
        )
