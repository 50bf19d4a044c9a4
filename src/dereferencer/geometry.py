"""
Spatial literal handling: WKT / EWKT / OGC CRS-URI literals to GeoJSON-shaped
geometries, plus the helpers the map needs (feature wrapping, bounds, popup).
"""
from __future__ import annotations

import re
from typing import Any, Optional

from shapely import wkt as shapely_wkt
from shapely.errors import ShapelyError
from shapely.geometry import mapping, shape

from .errors import GeometryParseError

# SRID of the map's native reference system (WGS84 lon/lat)
DISPLAY_SRID = 4326

SUPPORTED_TYPES = {
    "Point",
    "LineString",
    "Polygon",
    "MultiPoint",
    "MultiLineString",
    "MultiPolygon",
    "GeometryCollection",
}

# SRID=31370;POINT(150000 150000)
EWKT_RE = re.compile(r"^SRID=(\d+);(.+)$", re.IGNORECASE | re.DOTALL)
# <http://www.opengis.net/def/crs/EPSG/0/31370> POINT(150000 150000)
OGC_EPSG_RE = re.compile(r"^<http://www\.opengis\.net/def/crs/EPSG/0/(\d+)>\s+(.+)$", re.IGNORECASE | re.DOTALL)
# GeoSPARQL default CRS, already lon/lat
OGC_CRS84_RE = re.compile(r"^<http://www\.opengis\.net/def/crs/OGC/1\.3/CRS84>\s+(.+)$", re.IGNORECASE | re.DOTALL)


def _listify(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _listify(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_listify(x) for x in obj]
    return obj


def split_srid(text: str) -> tuple[str, Optional[int]]:
    """Strip a recognised SRID prefix: (wkt text, srid or None)."""
    s = text.strip()

    m = EWKT_RE.match(s)
    if m:
        return m.group(2).strip(), int(m.group(1))

    m = OGC_EPSG_RE.match(s)
    if m:
        return m.group(2).strip(), int(m.group(1))

    m = OGC_CRS84_RE.match(s)
    if m:
        return m.group(1).strip(), None

    return s, None


def parse_wkt(text: str) -> dict[str, Any]:
    try:
        geom = shapely_wkt.loads(text)
    except (ShapelyError, ValueError, TypeError) as e:
        raise GeometryParseError(f"not a WKT geometry: {text[:80]!r} ({e})") from e

    if geom.is_empty:
        raise GeometryParseError(f"empty geometry: {text[:80]!r}")

    gj = _listify(mapping(geom))
    if gj.get("type") not in SUPPORTED_TYPES:
        raise GeometryParseError(f"unsupported geometry type {gj.get('type')!r}")
    return gj


def parse_spatial_literal(text: str) -> tuple[dict[str, Any], Optional[int]]:
    """
    Parse a geo:asWKT value.

    Returns the geometry as a GeoJSON-shaped dict and the source SRID, or None
    when the literal carries no SRID (assumed to be in the display system).
    """
    if not isinstance(text, str) or not text.strip():
        raise GeometryParseError("empty spatial literal")

    body, srid = split_srid(text)
    return parse_wkt(body), srid


def needs_reprojection(srid: Optional[int]) -> bool:
    return srid is not None and srid != DISPLAY_SRID


def to_feature(geometry: dict[str, Any], properties: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    if geometry.get("type") in ("Feature", "FeatureCollection"):
        return geometry
    return {"type": "Feature", "properties": dict(properties or {}), "geometry": geometry}


def bounds(geometry: dict[str, Any]) -> list[list[float]]:
    """Leaflet-style [[south, west], [north, east]]."""
    minx, miny, maxx, maxy = shape(geometry).bounds
    return [[miny, minx], [maxy, maxx]]


def popup_text(geometry: dict[str, Any]) -> Optional[str]:
    gtype = geometry.get("type")
    coords = geometry.get("coordinates")
    if gtype == "Point":
        return f"<strong>Point</strong><br>Lon: {coords[0]:.6f}<br>Lat: {coords[1]:.6f}"
    if gtype == "LineString":
        return f"<strong>LineString</strong><br>{len(coords)} points"
    if gtype == "Polygon":
        return f"<strong>Polygon</strong><br>{len(coords[0])} vertices"
    return None
