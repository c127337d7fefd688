"""Shapefile layers - decode, normalize and register geometry payloads.

Binary shapefiles are decoded with pyshp; GeoJSON payloads pass through.
"""

from mapengine.layers.decoder import PyshpDecoder, ShapefileDecoder
from mapengine.layers.manager import ShapefileManager
from mapengine.layers.normalizer import BatchResult, normalize, normalize_batch
from mapengine.layers.shapefile import Shapefile

__all__ = [
    "BatchResult",
    "PyshpDecoder",
    "Shapefile",
    "ShapefileDecoder",
    "ShapefileManager",
    "normalize",
    "normalize_batch",
]
