from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

from rdflib import URIRef

from .errors import (
    DereferencerError,
    EmptyDescribeResult,
    GeometryParseError,
    GeometryTransformError,
    QueryTransportError,
    RelatedLookupError,
)
from .geometry import needs_reprojection, parse_spatial_literal
from .iri import resolve_resource_uri
from .prefixes import PrefixMap
from .projections import ProjectionRegistry, reproject
from .renderers import GeometryRenderer, GraphRenderer
from .sparql import SparqlClient
from .triples import Term, Triple, geometry_node_of, group_by_subject, parse_ntriples, types_of

logger = logging.getLogger(__name__)


class PageState(enum.Enum):
    INIT = "init"
    RESOLVING_URI = "resolving_uri"
    QUERYING = "querying"
    PARSING = "parsing"
    RENDERING = "rendering"
    GEOMETRY_CHECK = "geometry_check"
    RELATED_LOOKUP = "related_lookup"
    DONE = "done"
    ERROR = "error"


@dataclass
class PageSession:
    """Everything one page load knows. Created per request, then discarded."""

    origin: str
    entity_ns: str
    prefixes: PrefixMap
    resource_uri: Optional[str] = None
    triples: list[Triple] = field(default_factory=list)
    state: PageState = PageState.INIT
    error: Optional[DereferencerError] = None
    wkt_literal: Optional[str] = None
    map_html: Optional[str] = None
    graph_html: Optional[str] = None
    related: list[str] = field(default_factory=list)
    related_type: Optional[str] = None

    # derived views, recomputed from the triple list on every access
    @property
    def types(self) -> list[Term]:
        return types_of(self.triples)

    @property
    def geometry_node(self) -> Optional[Term]:
        return geometry_node_of(self.triples)

    @property
    def properties(self) -> dict[str, list[Term]]:
        if self.resource_uri is None:
            return {}
        return group_by_subject(self.triples, self.resource_uri)

    @property
    def failed(self) -> bool:
        return self.state is PageState.ERROR


class Orchestrator:
    """
    Runs the page pipeline:

        resolve URI -> DESCRIBE -> parse -> render graph
                    -> geometry check -> related lookup -> done

    The first primary failure ends the load in ERROR. Graph, geometry and
    related lookup are best effort and never change the outcome.
    """

    def __init__(
        self,
        client: SparqlClient,
        geometry_renderer: GeometryRenderer,
        graph_renderer: GraphRenderer,
        projections: ProjectionRegistry,
        entity_ns: str,
    ) -> None:
        self.client = client
        self.geometry_renderer = geometry_renderer
        self.graph_renderer = graph_renderer
        self.projections = projections
        self.entity_ns = entity_ns

    def load(self, path: str, origin: str, prefixes: PrefixMap) -> PageSession:
        session = PageSession(origin=origin, entity_ns=self.entity_ns, prefixes=prefixes)
        try:
            self._primary(session, path)
        except DereferencerError as e:
            logger.error("Page load failed in %s: %s", session.state.value, e)
            session.error = e
            session.state = PageState.ERROR
            return session

        self._render_graph(session)
        self._geometry_check(session)
        self._related_lookup(session)

        session.state = PageState.DONE
        return session

    # -----------------------------
    # Primary path
    # -----------------------------
    def _primary(self, session: PageSession, path: str) -> None:
        session.state = PageState.RESOLVING_URI
        session.resource_uri = resolve_resource_uri(path, session.origin)

        session.state = PageState.QUERYING
        raw = self.client.describe(session.resource_uri)

        session.state = PageState.PARSING
        triples = parse_ntriples(raw)
        if not triples:
            raise EmptyDescribeResult(session.resource_uri)
        session.triples = triples

    # -----------------------------
    # Best effort
    # -----------------------------
    def _render_graph(self, session: PageSession) -> None:
        session.state = PageState.RENDERING
        try:
            session.graph_html = self.graph_renderer.render(session.triples, session.prefixes) or None
        except (TypeError, ValueError) as e:
            logger.warning("Graph rendering failed: %s", e)

    def _geometry_check(self, session: PageSession) -> None:
        session.state = PageState.GEOMETRY_CHECK
        node = session.geometry_node
        if node is None:
            return
        if not isinstance(node, URIRef):
            # blank geometry nodes cannot be named in a follow-up query
            logger.debug("Skipping non-IRI geometry node %s", node)
            return

        try:
            wkt = self.client.wkt_literal(str(node))
            if wkt is None:
                return
            session.wkt_literal = wkt

            geometry, srid = parse_spatial_literal(wkt)
            if needs_reprojection(srid):
                geometry = reproject(geometry, srid, self.projections)
            session.map_html = self.geometry_renderer.render(geometry)
        except (QueryTransportError, GeometryParseError, GeometryTransformError) as e:
            logger.error("Error fetching geometry for %s: %s", node, e)
            session.map_html = None

    def _find_related(self, session: PageSession) -> None:
        types = [t for t in session.types if isinstance(t, URIRef)]
        if not types:
            return
        type_uri = str(types[0])
        try:
            related = self.client.same_class_resources(type_uri, session.resource_uri)
        except QueryTransportError as e:
            raise RelatedLookupError(f"same-class query for {type_uri} failed: {e}") from e
        session.related_type = type_uri
        session.related = related

    def _related_lookup(self, session: PageSession) -> None:
        session.state = PageState.RELATED_LOOKUP
        try:
            self._find_related(session)
        except RelatedLookupError as e:
            logger.error("Error loading same-class resources: %s", e)
            session.related = []
