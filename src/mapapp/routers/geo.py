"""Geo tooling endpoints - coordinate classification, reprojection, extents,
containment checks and shapefile normalization.

Stateless: every request gets its own transform cache, so nothing leaks
between callers.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from loguru import logger
from pydantic import BaseModel, Field

from mapapp.config import settings
from mapengine.geo.cache import TransformCache
from mapengine.geo.classifier import classify
from mapengine.geo.containment import point_in_polygon, polygon_in_boundary
from mapengine.geo.errors import InvalidExtent, ShapefileError, UnsupportedGeometryError
from mapengine.geo.extent import extent_center, fold_extent, pad_extent, zoom_for_extent
from mapengine.geo.geometry import parse_geometry
from mapengine.layers.normalizer import normalize
from mapengine.layers.shapefile import Shapefile

router = APIRouter(prefix="/api/geo", tags=["geo"])


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class CoordinateRequest(BaseModel):
    """A raw coordinate pair of unknown origin."""
    x: float
    y: float


class ClassifyResponse(BaseModel):
    classification: str


class TransformResponse(BaseModel):
    success: bool
    coords: Optional[list[float]] = None
    projection_name: Optional[str] = None


class ExtentRequest(BaseModel):
    """GeoJSON geometries to frame."""
    geometries: list[dict[str, Any]]
    padding_ratio: Optional[float] = None


class ExtentResponse(BaseModel):
    extent: list[float]          # raw [min_lon, min_lat, max_lon, max_lat]
    padded_extent: list[float]
    center: list[float]          # [lat, lng]
    zoom: int
    coordinate_system: str
    skipped: int


class ContainsRequest(BaseModel):
    """Point or drawn ring tested against a boundary ring ([lng, lat] vertices)."""
    boundary: list[list[float]]
    point: Optional[list[float]] = None
    polygon: Optional[list[list[float]]] = None
    strict_edges: Optional[bool] = None


class ContainsResponse(BaseModel):
    inside: bool


class NormalizeRequest(BaseModel):
    """Shapefile payload: base64 binary or GeoJSON."""
    shapefile_id: str = ""
    name: str = ""
    data_base64: Optional[str] = None
    geojson: Optional[Any] = None


class NormalizeResponse(BaseModel):
    type: str = "FeatureCollection"
    features: list[dict[str, Any]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/classify", response_model=ClassifyResponse)
async def classify_coordinate(body: CoordinateRequest):
    """Label a pair as geographic, projected or unknown."""
    return ClassifyResponse(classification=classify(body.x, body.y).value)


@router.post("/transform", response_model=TransformResponse)
async def transform_coordinate(body: CoordinateRequest):
    """Resolve a pair to WGS84 using the candidate projection table."""
    result = TransformCache().resolve(body.x, body.y)
    return TransformResponse(
        success=result.success,
        coords=list(result.coords) if result.coords else None,
        projection_name=result.projection_name,
    )


@router.post("/extent", response_model=ExtentResponse)
async def compute_extent(body: ExtentRequest):
    """Fold geometries into a padded extent, center and zoom level."""
    try:
        geometries = [parse_geometry(g) for g in body.geometries]
        result = fold_extent(geometries, TransformCache())
    except UnsupportedGeometryError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except InvalidExtent as e:
        logger.warning(f"Extent request rejected: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    ratio = body.padding_ratio if body.padding_ratio is not None else settings.extent_padding_ratio
    padded = pad_extent(result.extent, ratio)
    return ExtentResponse(
        extent=list(result.extent),
        padded_extent=list(padded),
        center=list(extent_center(result.extent)),
        zoom=zoom_for_extent(padded),
        coordinate_system=result.coordinate_system,
        skipped=result.skipped,
    )


@router.post("/contains", response_model=ContainsResponse)
async def contains(body: ContainsRequest):
    """Ray-casting containment of a point or every vertex of a drawn ring."""
    if body.point is not None:
        if len(body.point) < 2:
            raise HTTPException(status_code=422, detail="point needs [lng, lat]")
        return ContainsResponse(inside=point_in_polygon(body.point, body.boundary))
    if body.polygon is not None:
        strict = body.strict_edges if body.strict_edges is not None else settings.containment_strict_edges
        return ContainsResponse(inside=polygon_in_boundary(body.polygon, body.boundary, strict_edges=strict))
    raise HTTPException(status_code=422, detail="Provide either point or polygon")


@router.post("/shapefiles/normalize", response_model=NormalizeResponse)
async def normalize_shapefile(body: NormalizeRequest):
    """Normalize a binary (base64) or GeoJSON shapefile payload."""
    if body.data_base64 is not None:
        try:
            raw: Any = base64.b64decode(body.data_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise HTTPException(status_code=422, detail=f"Invalid base64 payload: {e}")
    else:
        raw = body.geojson

    shapefile = Shapefile(shapefile_id=body.shapefile_id, name=body.name, raw=raw)
    try:
        fc = normalize(shapefile)
    except ShapefileError as e:
        logger.warning(f'Shapefile "{body.name}" rejected: {e}')
        raise HTTPException(status_code=422, detail=f"{type(e).__name__}: {e}")
    return NormalizeResponse(features=fc["features"])
