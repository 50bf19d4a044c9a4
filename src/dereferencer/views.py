from __future__ import annotations

import html
from typing import Any, Optional

from rdflib import BNode, Literal, URIRef

from .iri import local_link
from .orchestrator import PageSession
from .triples import best_label, is_plain_string

CSS = """
body { font-family: -apple-system, BlinkMacSystemFont, Segoe UI, Roboto, Helvetica, Arial, sans-serif; margin:0; background:#f7f7f7; color:#111; }
header { background:#0d3b66; color:white; padding:14px 18px; }
header a { color:#dbe9ff; text-decoration:none; }
.wrap { max-width: 1180px; margin: 18px auto; padding: 0 14px; }
.grid { display:flex; gap:18px; align-items:flex-start; }
.main { flex: 1 1 720px; background:white; border:1px solid #ddd; border-radius:10px; padding:16px; }
.side { flex: 0 0 380px; background:white; border:1px solid #ddd; border-radius:10px; padding:16px; }
h1 { font-size: 24px; margin: 0 0 8px 0; overflow-wrap:anywhere; }
.iri { color:#444; font-size: 13px; overflow-wrap:anywhere; }
.btns a, .btns button { display:inline-block; margin:10px 10px 0 0; padding:6px 10px; border:1px solid #0d3b66; border-radius:8px; text-decoration:none; color:#0d3b66; background:white; font-size: 13px; cursor:pointer; }
.btns a:hover, .btns button:hover { background:#eaf2ff; }
table { width:100%; border-collapse: collapse; margin-top:10px; }
th, td { text-align:left; border-top:1px solid #eee; padding:8px 8px; vertical-align: top; overflow-wrap:anywhere; }
th { width: 32%; color:#333; font-weight:600; }
.pill { display:inline-block; padding:2px 8px; border-radius:999px; background:#eef4ff; border:1px solid #d7e6ff; margin: 2px 6px 2px 0; font-size: 12px; }
.property-prefix { color:#666; }
.value-lang, .value-datatype { color:#666; font-size:12px; margin-left: 6px; }
.sec-title { font-size: 14px; font-weight:700; margin-top: 12px; margin-bottom: 6px; color:#333; }
.mono, pre { font-family: ui-monospace, SFMono-Regular, Menlo, Monaco, Consolas, "Liberation Mono", "Courier New", monospace; }
pre { white-space: pre-wrap; overflow-wrap:anywhere; font-size: 12px; background:#f4f4f4; padding:8px; border-radius:6px; }
.see-also li { margin-bottom: 6px; }
.resource-type { color:#666; font-size: 12px; }
.error { background:#fff3f3; border:1px solid #f2c4c4; color:#8a1c1c; border-radius:10px; padding:16px; }
footer { color:#666; font-size: 12px; padding: 10px 0 25px 0; }
"""

LEAFLET_HEAD = """
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" crossorigin=""/>
  <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js" crossorigin=""></script>
"""

# ?format= value -> button label
DOWNLOADS = (
    ("ttl", "Turtle"),
    ("rdfxml", "RDF/XML"),
    ("jsonld", "JSON-LD"),
    ("nt", "N-Triples"),
)


def escape(s: Any) -> str:
    return html.escape(str(s), quote=True)


# -----------------------------
# URIs and values
# -----------------------------
def _href_attrs(uri: str, session: PageSession) -> str:
    link = local_link(uri, session.entity_ns, session.origin)
    if link is not None:
        return f'href="{escape(link)}"'
    # foreign: new top-level navigation
    return f'href="{escape(uri)}" target="_blank" rel="noopener noreferrer"'


def format_uri(uri: str, session: PageSession, cls: str = "property-uri") -> str:
    shortened = session.prefixes.shorten(uri)
    attrs = _href_attrs(uri, session)
    if shortened != uri:
        pfx, _, local = shortened.partition(":")
        label = (
            f'<span class="property-prefix">{escape(pfx)}:</span>'
            f'<span class="property-label">{escape(local)}</span>'
        )
    else:
        label = escape(uri)
    return f'<a {attrs} class="{cls}" title="{escape(uri)}">{label}</a>'


def format_value(node: Any, session: PageSession) -> str:
    if isinstance(node, URIRef):
        return format_uri(str(node), session, cls="value-uri")

    if isinstance(node, Literal):
        out = f'<span class="value-literal">{escape(str(node))}</span>'
        if node.language:
            out += f'<span class="value-lang">@{escape(node.language)}</span>'
        if not is_plain_string(node):
            out += f'<span class="value-datatype">^^{escape(session.prefixes.shorten(str(node.datatype)))}</span>'
        return out

    if isinstance(node, BNode):
        return f'<span class="value-bnode">_:{escape(str(node))}</span>'

    raise TypeError(f"not an RDF term: {node!r}")


def property_rows(session: PageSession) -> str:
    rows = []
    for predicate, values in session.properties.items():
        cells = "<br/>".join(format_value(v, session) for v in values)
        rows.append(f"<tr><th>{format_uri(predicate, session)}</th><td>{cells}</td></tr>")
    return "\n".join(rows)


# -----------------------------
# Sections
# -----------------------------
def _types_html(session: PageSession) -> str:
    pills = [
        f'<span class="pill">{format_value(t, session)}</span>'
        for t in session.types
    ]
    return " ".join(pills) or "<em>(none)</em>"


def _map_html(session: PageSession) -> str:
    if not session.map_html:
        return ""
    return f"""
      <section id="map">
        <div class="sec-title">Geometry</div>
        {session.map_html}
        <pre id="wkt-code">{escape(session.wkt_literal or "")}</pre>
      </section>"""


def _see_also_html(session: PageSession) -> str:
    if not session.related:
        return ""
    type_label = escape(session.prefixes.shorten(session.related_type or ""))
    items = "".join(
        f'<li>{format_uri(u, session, cls="resource-link")}'
        f'<div class="resource-type">Type: {type_label}</div></li>'
        for u in session.related
    )
    return f"""
      <section id="see-also">
        <div class="sec-title">See also</div>
        <ul class="see-also">{items}</ul>
      </section>"""


def _graph_html(session: PageSession) -> str:
    if not session.graph_html:
        return ""
    return f"""
  <div class="wrap">
    <div class="main" id="graph-section">
      <div class="sec-title">Graph</div>
      {session.graph_html}
    </div>
  </div>"""


def _shell(title: str, body: str, endpoint: str, head_extra: str = "") -> str:
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>{escape(title)}</title>
  <style>{CSS}</style>{head_extra}
</head>
<body>
<header>
  <div class="wrap">
    <div style="display:flex; justify-content:space-between; gap:14px; align-items:center;">
      <div><strong>URI Dereferencer</strong> <span style="opacity:.85">/ Linked Data interface</span></div>
      <div><a href="{escape(endpoint)}" target="_blank" rel="noopener">SPARQL</a></div>
    </div>
  </div>
</header>
{body}
</body>
</html>
"""


# -----------------------------
# Pages
# -----------------------------
def html_page(session: PageSession, endpoint: str, self_path: str, lang: str = "en") -> str:
    iri = session.resource_uri or ""
    label = best_label(session.triples, iri, lang)

    downloads = "".join(
        f'<a id="link-{fmt}" href="{escape(self_path)}?format={fmt}">{escape(name)}</a>'
        for fmt, name in DOWNLOADS
    )

    props_html = property_rows(session) or "<tr><td><em>No properties for this subject.</em></td></tr>"

    body = f"""
<div class="wrap">
  <div class="grid">
    <div class="main">
      <h1>{escape(label or iri)}</h1>
      <div class="iri mono" id="uri-display">{escape(iri)}</div>

      <div class="btns">
        <button type="button" id="copy-uri" data-uri="{escape(iri)}">Copy URI</button>
        {downloads}
      </div>

      <div class="sec-title">Types</div>
      <div id="types">{_types_html(session)}</div>

      <section id="properties">
        <div class="sec-title">Properties</div>
        <table>
          <tbody id="properties-tbody">
            {props_html}
          </tbody>
        </table>
      </section>

      <footer>
        Data source: <span class="mono">DESCRIBE &lt;{escape(iri)}&gt;</span> on {escape(endpoint)}
      </footer>
    </div>

    <div class="side">{_map_html(session)}{_see_also_html(session)}
    </div>
  </div>
</div>
{_graph_html(session)}
<script>
document.getElementById("copy-uri").addEventListener("click", function () {{
  navigator.clipboard.writeText(this.dataset.uri);
}});
</script>
"""
    head_extra = LEAFLET_HEAD if session.map_html else ""
    return _shell(f"Resource: {iri}", body, endpoint, head_extra)


def error_page(message: str, endpoint: str, uri: Optional[str] = None) -> str:
    uri_html = f'<div class="iri mono" id="uri-display">{escape(uri)}</div>' if uri else ""
    body = f"""
<div class="wrap">
  {uri_html}
  <div class="error" id="error"><span id="error-message">{escape(message)}</span></div>
</div>
"""
    return _shell("URI Dereferencer", body, endpoint)
