"""Binary shapefile decoding via pyshp.

Accepts what a browser upload would carry: a zip archive with the .shp
(and usually .dbf / .prj) members, or a bare .shp stream. When a .prj is
present its WKT is used to reproject every vertex to WGS84 with pyproj;
otherwise coordinates are left as found and the classifier deals with them
downstream.
"""

from __future__ import annotations

import io
import struct
import zipfile
from typing import Protocol

import shapefile  # pyshp
from loguru import logger
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError

from mapengine.geo.errors import ShapefileDecodeError, UnsupportedGeometryError
from mapengine.geo.geometry import map_positions, parse_geometry, to_geojson

_ZIP_MAGIC = b"PK\x03\x04"
_SHP_MAGIC = b"\x00\x00\x27\x0a"  # file code 9994, big-endian


class ShapefileDecoder(Protocol):
    """Collaborator that turns binary shapefile bytes into a FeatureCollection."""

    def decode(self, data: bytes) -> dict: ...


def _zip_members(data: bytes) -> dict[str, bytes]:
    """Map lower-case extension (".shp", ".dbf", ...) to member bytes."""
    members: dict[str, bytes] = {}
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            for name in zf.namelist():
                if name.startswith("__MACOSX/") or name.endswith("/"):
                    continue
                ext = name[name.rfind("."):].lower() if "." in name else ""
                if ext in (".shp", ".dbf", ".shx", ".prj") and ext not in members:
                    members[ext] = zf.read(name)
    except zipfile.BadZipFile as e:
        raise ShapefileDecodeError(f"Corrupt zip archive: {e}") from e
    return members


def _transformer_from_prj(prj: bytes | None) -> Transformer | None:
    if not prj:
        return None
    try:
        src = CRS.from_wkt(prj.decode("utf-8", errors="replace"))
    except CRSError as e:
        logger.warning(f"Ignoring unreadable .prj: {e}")
        return None
    if src.is_geographic and src.equals(CRS.from_epsg(4326), ignore_axis_order=True):
        return None
    return Transformer.from_crs(src, CRS.from_epsg(4326), always_xy=True)


class PyshpDecoder:
    """Default ShapefileDecoder backed by pyshp."""

    def decode(self, data: bytes) -> dict:
        if not isinstance(data, (bytes, bytearray)) or not data:
            raise ShapefileDecodeError("Empty or non-binary shapefile payload")

        if data[:4] == _ZIP_MAGIC:
            members = _zip_members(data)
        elif data[:4] == _SHP_MAGIC:
            members = {".shp": bytes(data)}
        else:
            raise ShapefileDecodeError("Payload is neither a zip archive nor a .shp stream")

        if ".shp" not in members:
            raise ShapefileDecodeError("Archive contains no .shp member")

        transformer = _transformer_from_prj(members.get(".prj"))
        try:
            return self._read(members, transformer)
        except shapefile.ShapefileException as e:
            raise ShapefileDecodeError(f"Unreadable shapefile: {e}") from e
        except (struct.error, ValueError, IndexError) as e:
            raise ShapefileDecodeError(f"Truncated or malformed shapefile: {e}") from e

    def _read(self, members: dict[str, bytes], transformer: Transformer | None) -> dict:
        kwargs = {"shp": io.BytesIO(members[".shp"])}
        if ".dbf" in members:
            kwargs["dbf"] = io.BytesIO(members[".dbf"])
        if ".shx" in members:
            kwargs["shx"] = io.BytesIO(members[".shx"])

        reader = shapefile.Reader(**kwargs)
        try:
            field_names = [f[0] for f in reader.fields[1:]] if ".dbf" in members else []
            records = reader.records() if field_names else None
            features = []
            for idx, shape in enumerate(reader.shapes()):
                if shape.shapeType == shapefile.NULL:
                    continue
                geometry = self._geometry(shape, transformer)
                if geometry is None:
                    continue
                properties = dict(zip(field_names, list(records[idx]))) if records else {}
                features.append({
                    "type": "Feature",
                    "geometry": geometry,
                    "properties": properties,
                })
        finally:
            reader.close()

        logger.debug(f"Decoded {len(features)} features from shapefile")
        return {"type": "FeatureCollection", "features": features}

    @staticmethod
    def _geometry(shape, transformer: Transformer | None) -> dict | None:
        try:
            geometry = parse_geometry(shape.__geo_interface__)
        except UnsupportedGeometryError as e:
            logger.warning(f"Skipping shape: {e}")
            return None
        if transformer is not None:
            geometry = map_positions(geometry, lambda x, y: transformer.transform(x, y))
        return to_geojson(geometry)