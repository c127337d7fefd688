"""Normalize heterogeneous shapefile payloads into one GeoJSON shape.

Input may already be GeoJSON (FeatureCollection, bare feature list, single
Feature, or a JSON string of any of these) or raw binary, which is handed to
a ShapefileDecoder. Output is always a FeatureCollection dict whose features
carry validated geometries. Normalizing an already-normalized collection
returns an equal collection.

Errors are scoped to the one shapefile being normalized; normalize_batch
keeps going past them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from loguru import logger
from shapely.geometry import mapping, shape

from mapengine.geo.errors import (
    ShapefileDecodeError,
    ShapefileEmpty,
    ShapefileError,
    UnsupportedGeometryError,
)
from mapengine.geo.geometry import parse_geometry, to_geojson
from mapengine.layers.decoder import PyshpDecoder, ShapefileDecoder
from mapengine.layers.shapefile import Shapefile

FeatureCollection = dict

# Property keys tried, in order, for a feature's display label.
LABEL_KEYS = ("name", "NAME", "Name", "title", "TITLE", "id", "ID", "label", "LABEL")

DEFAULT_SIMPLIFY_THRESHOLD = 1000
DEFAULT_SIMPLIFY_TOLERANCE = 0.01


@dataclass
class BatchResult:
    """Per-shapefile outcome of a batch normalization."""

    collections: dict[str, FeatureCollection] = field(default_factory=dict)
    errors: dict[str, ShapefileError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _features_of(data, shapefile_id: str) -> list:
    if isinstance(data, dict):
        if data.get("type") == "FeatureCollection" and isinstance(data.get("features"), list):
            return data["features"]
        if data.get("type") == "Feature":
            return [data]
    elif isinstance(data, list):
        return data
    raise ShapefileDecodeError("Invalid GeoJSON data format", shapefile_id)


def _validate_feature(raw, shapefile_id: str) -> dict | None:
    """Check a feature's geometry; return None for null-geometry features."""
    if not isinstance(raw, dict):
        raise UnsupportedGeometryError(f"Feature must be an object, got {type(raw).__name__}", shapefile_id)
    geometry = raw.get("geometry")
    if geometry is None:
        return None
    try:
        parse_geometry(geometry)
    except UnsupportedGeometryError as e:
        raise UnsupportedGeometryError(str(e), shapefile_id) from e
    return raw


def normalize(shapefile: Shapefile, decoder: ShapefileDecoder | None = None) -> FeatureCollection:
    """Normalize one shapefile's payload into a FeatureCollection.

    Top-level members of an incoming FeatureCollection (``bbox``, ``crs``,
    foreign members) are kept. Features whose geometry is null are dropped,
    so only the feature list can differ from the input.

    Raises:
        ShapefileDecodeError: binary decode failed, JSON invalid, or the
            payload is not any recognized GeoJSON container.
        UnsupportedGeometryError: a feature's geometry is not one of the
            six supported types.
        ShapefileEmpty: no features remain.
    """
    sid = shapefile.shapefile_id
    data = shapefile.raw

    if isinstance(data, (bytes, bytearray)):
        decoder = decoder or PyshpDecoder()
        try:
            data = decoder.decode(bytes(data))
        except ShapefileError as e:
            raise ShapefileDecodeError(str(e), sid) from e
        except Exception as e:
            # Third-party decoders raise arbitrary types.
            raise ShapefileDecodeError(f"Decoder failed: {e}", sid) from e
    elif isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ShapefileDecodeError(f"Could not parse shapefile data: {e}", sid) from e

    if data is None:
        raise ShapefileEmpty(f'Shapefile "{shapefile.name}" has no features', sid)

    features = []
    for raw in _features_of(data, sid):
        feature = _validate_feature(raw, sid)
        if feature is not None:
            features.append(feature)

    if not features:
        raise ShapefileEmpty(f'Shapefile "{shapefile.name}" contains no displayable features', sid)

    members = data if isinstance(data, dict) and data.get("type") == "FeatureCollection" else {}
    return {**members, "type": "FeatureCollection", "features": features}


def normalize_batch(
    shapefiles: list[Shapefile],
    decoder: ShapefileDecoder | None = None,
) -> BatchResult:
    """Normalize each shapefile independently, collecting per-shapefile errors."""
    result = BatchResult()
    for shp in shapefiles:
        try:
            result.collections[shp.shapefile_id] = normalize(shp, decoder)
        except ShapefileError as e:
            logger.warning(f'Skipping shapefile "{shp.name}" ({shp.shapefile_id}): {e}')
            result.errors[shp.shapefile_id] = e
    return result


def tag_features(fc: FeatureCollection, shapefile: Shapefile) -> FeatureCollection:
    """Copy of ``fc`` with the parent shapefile's id and name in each feature's properties."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                **feature,
                "properties": {
                    **(feature.get("properties") or {}),
                    "shapefileId": shapefile.shapefile_id,
                    "shapefileName": shapefile.name,
                },
            }
            for feature in fc["features"]
        ],
    }


def feature_label(properties: dict | None) -> str:
    """Display label for a feature: first non-empty value among LABEL_KEYS."""
    if not properties:
        return ""
    for key in LABEL_KEYS:
        value = properties.get(key)
        if value:
            return str(value)
    return ""


def simplify_collection(
    fc: FeatureCollection,
    threshold: int = DEFAULT_SIMPLIFY_THRESHOLD,
    tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE,
) -> FeatureCollection:
    """Simplify geometries of collections larger than ``threshold`` features.

    Smaller collections are returned unchanged. Simplification preserves
    topology so polygons stay valid.
    """
    features = fc["features"]
    if len(features) <= threshold:
        return fc

    logger.info(f"Simplifying {len(features)} features with tolerance {tolerance}")
    simplified = []
    for feature in features:
        geometry = feature.get("geometry")
        if geometry:
            simple = mapping(shape(to_geojson(parse_geometry(geometry))).simplify(tolerance, preserve_topology=True))
            feature = {**feature, "geometry": to_geojson(parse_geometry(dict(simple)))}
        simplified.append(feature)
    return {"type": "FeatureCollection", "features": simplified}
