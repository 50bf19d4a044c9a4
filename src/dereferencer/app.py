from __future__ import annotations

import logging
import os
from typing import Optional

from flask import Flask, Response, jsonify, redirect, request, send_from_directory

from . import config
from .errors import NoURISupplied, QueryTransportError
from .iri import resolve_resource_uri
from .orchestrator import Orchestrator
from .prefixes import PrefixMap, load_prefixes
from .projections import ProjectionRegistry
from .renderers import BindingsGraphRenderer, GeometryRenderer, GraphRenderer, LeafletGeometryRenderer
from .sparql import SparqlClient
from .views import error_page, html_page

logger = logging.getLogger(__name__)


# -----------------------------
# Helpers: request
# -----------------------------
def raw_request_path() -> str:
    """
    Path as sent by the client, still percent-encoded, without query string.
    Falls back to the decoded path when the server does not expose it.
    """
    raw = request.environ.get("RAW_URI") or request.environ.get("REQUEST_URI")
    if raw:
        return raw.split("?", 1)[0]
    return request.path


def request_origin(override: str = "") -> str:
    return override or request.host_url.rstrip("/")


def preferred_lang() -> str:
    # first token of Accept-Language, e.g. "fr", "pt-BR"
    al = request.headers.get("Accept-Language", "")
    if not al:
        return "en"
    first = al.split(",")[0].split(";")[0].strip()
    return first or "en"


# -----------------------------
# Helpers: content negotiation
# -----------------------------
FORMAT_MIMETYPES = {
    "ttl": "text/turtle",
    "turtle": "text/turtle",
    "rdfxml": "application/rdf+xml",
    "xml": "application/rdf+xml",
    "rdf": "application/rdf+xml",
    "jsonld": "application/ld+json",
    "json-ld": "application/ld+json",
    "nt": "application/n-triples",
    "ntriples": "application/n-triples",
}


def wants_html() -> bool:
    fmt = (request.args.get("format") or "").lower().strip()
    if fmt in ("html", "page"):
        return True
    if fmt in FORMAT_MIMETYPES:
        return False

    accept = (request.headers.get("Accept") or "").lower()
    # browsers ask for HTML explicitly
    return "text/html" in accept or "application/xhtml+xml" in accept


def negotiated_rdf_mimetype() -> str:
    fmt = (request.args.get("format") or "").lower().strip()
    if fmt in FORMAT_MIMETYPES:
        return FORMAT_MIMETYPES[fmt]

    accept = (request.headers.get("Accept") or "").lower()
    for mime in ("application/ld+json", "application/rdf+xml", "application/n-triples"):
        if mime in accept:
            return mime
    return "text/turtle"


# -----------------------------
# App
# -----------------------------
def create_app(
    sparql_endpoint: Optional[str] = None,
    entity_ns: Optional[str] = None,
    base_origin: Optional[str] = None,
    prefixes: Optional[PrefixMap] = None,
    client: Optional[SparqlClient] = None,
    projections: Optional[ProjectionRegistry] = None,
    geometry_renderer: Optional[GeometryRenderer] = None,
    graph_renderer: Optional[GraphRenderer] = None,
    vendor_dir: Optional[str] = None,
) -> Flask:
    endpoint = sparql_endpoint or config.SPARQL_ENDPOINT
    entity_ns = entity_ns if entity_ns is not None else config.ENTITY_NS
    origin_override = config.BASE_ORIGIN if base_origin is None else base_origin.rstrip("/")
    vendor_root = os.path.abspath(vendor_dir or config.VENDOR_DIR)

    if prefixes is None:
        prefixes = load_prefixes(config.PREFIXES_PATH)
    client = client or SparqlClient(endpoint=endpoint)

    orchestrator = Orchestrator(
        client=client,
        geometry_renderer=geometry_renderer or LeafletGeometryRenderer(),
        graph_renderer=graph_renderer or BindingsGraphRenderer(),
        projections=projections or ProjectionRegistry(),
        entity_ns=entity_ns,
    )

    # no /static route: every path is a potential resource
    app = Flask(__name__, static_folder=None)
    # keep "http://" intact in testing-mode paths
    app.url_map.merge_slashes = False

    @app.get("/health")
    def health() -> Response:
        return Response("OK", content_type="text/plain; charset=utf-8")

    @app.get("/assets/data/prefixes.json")
    def prefixes_json() -> Response:
        return jsonify(prefixes.as_dict())

    # a more specific rule than the catch-all, so widget bundles never become DESCRIBEs
    @app.get("/vendor/<path:filename>")
    def vendor(filename: str) -> Response:
        return send_from_directory(vendor_root, filename)

    @app.get("/sparql")
    def sparql_proxy() -> Response:
        q = (request.args.get("query") or "").strip()
        if not q:
            return redirect(endpoint, code=302)

        accept = request.headers.get("Accept") or "text/turtle"
        try:
            data, ctype = client.query(q, accept=accept)
        except QueryTransportError as e:
            return Response(str(e), status=502, content_type="text/plain; charset=utf-8")
        return Response(data, content_type=ctype)

    @app.get("/")
    @app.get("/<path:subpath>")
    def dereference(subpath: str = "") -> Response:
        path = raw_request_path()
        origin = request_origin(origin_override)

        if not wants_html():
            return _raw_rdf(path, origin)

        session = orchestrator.load(path, origin, prefixes)
        if session.failed:
            err = session.error
            page = error_page(err.user_message, endpoint, session.resource_uri)
            return Response(page, status=err.status_code, content_type="text/html; charset=utf-8")

        page = html_page(session, endpoint, self_path=path, lang=preferred_lang())
        return Response(page, content_type="text/html; charset=utf-8")

    def _raw_rdf(path: str, origin: str) -> Response:
        try:
            iri = resolve_resource_uri(path, origin)
        except NoURISupplied as e:
            return Response(e.user_message, status=e.status_code, content_type="text/plain; charset=utf-8")

        mime = negotiated_rdf_mimetype()
        try:
            data, _ = client.describe_raw(iri, accept=mime)
        except QueryTransportError as e:
            logger.error("Raw DESCRIBE of %s failed: %s", iri, e)
            return Response(str(e), status=e.status_code, content_type="text/plain; charset=utf-8")
        return Response(data, content_type=f"{mime}; charset=utf-8")

    return app


def main() -> None:
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    create_app().run(host=config.HOST, port=config.PORT, debug=False)


if __name__ == "__main__":
    main()
