"""Rendering capabilities the orchestrator is wired with at startup."""
from __future__ import annotations

import html
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Sequence

from .config import GRAPH_PLUGIN_URL
from .geometry import bounds, popup_text, to_feature
from .prefixes import PrefixMap
from .triples import Triple, to_bindings


def script_json(obj: Any) -> str:
    # safe inside <script>: no "</script>" breakout
    return json.dumps(obj, ensure_ascii=False).replace("</", "<\\/")


class GeometryRenderer(ABC):
    @abstractmethod
    def render(self, geometry: dict[str, Any]) -> str:
        """Return an HTML fragment showing a geometry in WGS84 lon/lat."""
        ...


class GraphRenderer(ABC):
    @abstractmethod
    def render(self, triples: Sequence[Triple], prefixes: PrefixMap) -> str:
        """Return an HTML fragment with an interactive view of the triples."""
        ...


# -----------------------------
# Leaflet map
# -----------------------------
MAP_STYLE = {
    "color": "#0d6efd",
    "weight": 3,
    "opacity": 0.7,
    "fillColor": "#0d6efd",
    "fillOpacity": 0.2,
}

POINT_STYLE = {
    "radius": 8,
    "fillColor": "#0d6efd",
    "color": "#fff",
    "weight": 2,
    "opacity": 1,
    "fillOpacity": 0.8,
}

TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILE_ATTRIBUTION = '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'


@dataclass
class MapView:
    feature: dict[str, Any]
    bounds: list[list[float]]
    padding: tuple[int, int] = (50, 50)
    max_zoom: int = 16
    style: dict[str, Any] = field(default_factory=lambda: dict(MAP_STYLE))
    point_style: dict[str, Any] = field(default_factory=lambda: dict(POINT_STYLE))

    def as_dict(self) -> dict[str, Any]:
        return {
            "feature": self.feature,
            "bounds": self.bounds,
            "fit": {"padding": list(self.padding), "maxZoom": self.max_zoom},
            "style": self.style,
            "pointStyle": self.point_style,
            "tiles": {"url": TILE_URL, "attribution": TILE_ATTRIBUTION, "maxZoom": 19},
        }


def build_map_view(geometry: dict[str, Any]) -> MapView:
    props = {}
    popup = popup_text(geometry)
    if popup:
        props["popup"] = popup
    return MapView(feature=to_feature(geometry, props), bounds=bounds(geometry))


class LeafletGeometryRenderer(GeometryRenderer):
    container_id = "map-container"

    def render(self, geometry: dict[str, Any]) -> str:
        view = build_map_view(geometry)
        return f"""
<div id="{self.container_id}" class="map-container" style="height:380px;"></div>
<script type="application/json" id="map-data">{script_json(view.as_dict())}</script>
<script>
(function () {{
  var cfg = JSON.parse(document.getElementById("map-data").textContent);
  var map = L.map("{self.container_id}");
  L.tileLayer(cfg.tiles.url, {{attribution: cfg.tiles.attribution, maxZoom: cfg.tiles.maxZoom}}).addTo(map);
  var layer = L.geoJSON(cfg.feature, {{
    style: cfg.style,
    pointToLayer: function (feature, latlng) {{ return L.circleMarker(latlng, cfg.pointStyle); }},
    onEachFeature: function (feature, lyr) {{
      if (feature.properties && feature.properties.popup) {{ lyr.bindPopup(feature.properties.popup); }}
    }}
  }}).addTo(map);
  map.fitBounds(cfg.bounds, cfg.fit);
}})();
</script>
"""


# -----------------------------
# Graph widget
# -----------------------------
class BindingsGraphRenderer(GraphRenderer):
    """
    Feeds the external graph widget a results-shaped adapter: the triples as
    SPARQL bindings, prefixes as { prefix: namespace }, and the proxy path it
    uses to expand nodes.
    """

    container_id = "graph-container"

    def __init__(self, plugin_url: str = GRAPH_PLUGIN_URL, expand_endpoint: str = "/sparql") -> None:
        self.plugin_url = plugin_url
        self.expand_endpoint = expand_endpoint

    def payload(self, triples: Sequence[Triple], prefixes: PrefixMap) -> dict[str, Any]:
        return {
            "bindings": to_bindings(triples),
            "prefixes": prefixes.inverted(),
            "endpoint": self.expand_endpoint,
        }

    def render(self, triples: Sequence[Triple], prefixes: PrefixMap) -> str:
        if not triples:
            return ""
        return f"""
<div id="{self.container_id}" class="graph-container" style="min-height:420px;"></div>
<script type="application/json" id="graph-data">{script_json(self.payload(triples, prefixes))}</script>
<script type="module">
import GraphPlugin from "{html.escape(self.plugin_url)}";
const cfg = JSON.parse(document.getElementById("graph-data").textContent);
const yasr = {{
  results: {{ getBindings: () => cfg.bindings }},
  resultsEl: document.getElementById("{self.container_id}"),
  getPrefixes: () => cfg.prefixes,
  executeQuery: async (query, {{ acceptHeader, signal }} = {{}}) => {{
    const response = await fetch(cfg.endpoint + "?" + new URLSearchParams({{ query }}), {{
      headers: {{ Accept: acceptHeader ?? "text/turtle" }},
      signal,
    }});
    if (!response.ok) throw new Error("SPARQL expansion failed: " + response.statusText);
    return response;
  }},
}};
const plugin = new GraphPlugin(yasr);
await plugin.draw();
</script>
"""
