from __future__ import annotations

import logging
import math
from typing import Any, Optional

import requests
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from .config import EPSG_SERVICE_URL, REQUEST_TIMEOUT_S, USER_AGENT
from .errors import GeometryTransformError
from .geometry import DISPLAY_SRID

logger = logging.getLogger(__name__)

# proj4 definitions shipped with the viewer; anything else is looked up
COMMON_PROJECTIONS: dict[int, str] = {
    # WGS84
    4326: "+proj=longlat +datum=WGS84 +no_defs",
    # Web Mercator
    3857: "+proj=merc +a=6378137 +b=6378137 +lat_ts=0.0 +lon_0=0.0 +x_0=0.0 +y_0=0 +k=1.0 +units=m +nadgrids=@null +wktext +no_defs",
    # Belgian Lambert 72
    31370: "+proj=lcc +lat_1=51.16666723333333 +lat_2=49.8333339 +lat_0=90 +lon_0=4.367486666666666 +x_0=150000.013 +y_0=5400088.438 +ellps=intl +towgs84=-106.869,52.2978,-103.724,0.3366,-0.457,1.8422,-1.2747 +units=m +no_defs",
    # ETRS89
    4258: "+proj=longlat +ellps=GRS80 +no_defs",
    # ETRS89-LAEA
    3035: "+proj=laea +lat_0=52 +lon_0=10 +x_0=4321000 +y_0=3210000 +ellps=GRS80 +units=m +no_defs",
    # ETRS89 / UTM zone 32N
    25832: "+proj=utm +zone=32 +ellps=GRS80 +units=m +no_defs",
    # ETRS89 / UTM zone 33N
    25833: "+proj=utm +zone=33 +ellps=GRS80 +units=m +no_defs",
}


class ProjectionRegistry:
    """
    SRID -> proj4 definition, with an on-demand lookup against an EPSG
    definition service ({service_url}/{code}.proj4). Fetched definitions and
    built transformers are cached for the registry's lifetime.
    """

    def __init__(
        self,
        service_url: str = EPSG_SERVICE_URL,
        session: Optional[requests.Session] = None,
        timeout: int = REQUEST_TIMEOUT_S,
        target_srid: int = DISPLAY_SRID,
    ) -> None:
        self.service_url = service_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.timeout = timeout
        self.target_srid = target_srid
        self._defs: dict[int, str] = dict(COMMON_PROJECTIONS)
        self._transformers: dict[int, Transformer] = {}

    def is_known(self, srid: int) -> bool:
        return srid in self._defs

    def _fetch_definition(self, srid: int) -> str:
        url = f"{self.service_url}/{srid}.proj4"
        logger.info("Fetching EPSG:%s definition from %s", srid, url)
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise GeometryTransformError(f"could not fetch EPSG:{srid}: {e}") from e

        proj4def = (r.text or "").strip()
        if not proj4def.startswith("+"):
            raise GeometryTransformError(f"no proj4 definition for EPSG:{srid}")
        return proj4def

    def definition(self, srid: int) -> str:
        if srid not in self._defs:
            self._defs[srid] = self._fetch_definition(srid)
        return self._defs[srid]

    def transformer(self, srid: int) -> Transformer:
        cached = self._transformers.get(srid)
        if cached is not None:
            return cached

        try:
            src = CRS.from_proj4(self.definition(srid))
            dst = CRS.from_proj4(self.definition(self.target_srid))
            t = Transformer.from_crs(src, dst, always_xy=True)
        except (CRSError, ProjError) as e:
            raise GeometryTransformError(f"unusable definition for EPSG:{srid}: {e}") from e

        self._transformers[srid] = t
        return t


def transform_coordinates(coords: Any, transformer: Transformer) -> Any:
    """
    Transform a coordinate tree. A pair is transformed directly, nested arrays
    element-wise; nesting depth is unchanged. Extra ordinates (z, m) are kept.
    """
    if not isinstance(coords, (list, tuple)):
        raise GeometryTransformError(f"malformed coordinates: {coords!r}")
    if not coords:
        return []

    if isinstance(coords[0], (int, float)):
        x, y = transformer.transform(coords[0], coords[1])
        if not (math.isfinite(x) and math.isfinite(y)):
            raise GeometryTransformError(f"coordinate {list(coords)} is outside the projection")
        return [x, y, *coords[2:]]

    return [transform_coordinates(c, transformer) for c in coords]


def transform_geometry(geometry: dict[str, Any], transformer: Transformer) -> dict[str, Any]:
    out = {k: v for k, v in geometry.items() if k not in ("coordinates", "geometries")}
    if "geometries" in geometry:
        out["geometries"] = [transform_geometry(g, transformer) for g in geometry["geometries"]]
    if "coordinates" in geometry:
        out["coordinates"] = transform_coordinates(geometry["coordinates"], transformer)
    return out


def reproject(geometry: dict[str, Any], srid: Optional[int], registry: ProjectionRegistry) -> dict[str, Any]:
    """Return the geometry in the display reference system (a new dict)."""
    if srid is None or srid == registry.target_srid:
        return geometry
    return transform_geometry(geometry, registry.transformer(srid))
