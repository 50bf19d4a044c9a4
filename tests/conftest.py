from __future__ import annotations

import pytest

from dereferencer.errors import QueryTransportError
from dereferencer.prefixes import PrefixMap

RESOURCE = "http://ex.org/r1"

SAMPLE_NT = """\
<http://ex.org/r1> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> <http://ex.org/Station> .
<http://ex.org/r1> <http://www.w3.org/2000/01/rdf-schema#label> "Station One"@en .
<http://ex.org/r1> <http://www.w3.org/2000/01/rdf-schema#label> "Station Un"@fr .
<http://ex.org/r1> <http://ex.org/p> "b" .
<http://ex.org/r1> <http://ex.org/p> "a" .
<http://ex.org/r1> <http://ex.org/length> "12.5"^^<http://www.w3.org/2001/XMLSchema#decimal> .
<http://ex.org/r1> <http://ex.org/next> <http://ex.org/r2> .
<http://ex.org/r1> <http://ex.org/sameAs> <http://other.org/x> .
<http://ex.org/r1> <http://www.opengis.net/ont/geosparql#hasGeometry> <http://ex.org/r1/geom> .
<http://ex.org/r1/geom> <http://www.opengis.net/ont/geosparql#asWKT> "POINT(4.35 50.85)"^^<http://www.opengis.net/ont/geosparql#wktLiteral> .
_:b0 <http://ex.org/q> "blank" .
"""


class FakeSparqlClient:
    """Stands in for SparqlClient; records calls, fails on demand."""

    endpoint = "http://sparql.test/query"

    def __init__(self, describe: str = SAMPLE_NT, wkt: str | None = None, related=None, fail=()):
        self._describe = describe
        self._wkt = wkt
        self._related = list(related or [])
        self.fail = set(fail)
        self.calls: list[tuple] = []

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail:
            raise QueryTransportError("Service Unavailable", status=503)

    def describe(self, uri: str) -> str:
        self.calls.append(("describe", uri))
        self._maybe_fail("describe")
        return self._describe

    def describe_raw(self, uri: str, accept: str):
        self.calls.append(("describe_raw", uri, accept))
        self._maybe_fail("describe_raw")
        return b"<http://ex.org/r1> <http://ex.org/p> \"a\" .\n", accept

    def wkt_literal(self, geometry_node: str):
        self.calls.append(("wkt_literal", geometry_node))
        self._maybe_fail("wkt_literal")
        return self._wkt

    def same_class_resources(self, type_uri: str, resource_uri: str):
        self.calls.append(("same_class_resources", type_uri, resource_uri))
        self._maybe_fail("same_class_resources")
        return self._related

    def query(self, query: str, accept: str):
        self.calls.append(("query", query, accept))
        self._maybe_fail("query")
        return b'{"head": {}, "results": {"bindings": []}}', "application/sparql-results+json"


class RecordingGeometryRenderer:
    def __init__(self) -> None:
        self.rendered: list[dict] = []

    def render(self, geometry):
        self.rendered.append(geometry)
        return f'<div id="map-container">{geometry["type"]}</div>'


class RecordingGraphRenderer:
    def __init__(self) -> None:
        self.calls = 0

    def render(self, triples, prefixes):
        self.calls += 1
        return f'<div id="graph-container">{len(triples)} triples</div>'


@pytest.fixture
def prefixes() -> PrefixMap:
    return PrefixMap(
        {
            "http://www.w3.org/1999/02/22-rdf-syntax-ns#": "rdf",
            "http://www.w3.org/2000/01/rdf-schema#": "rdfs",
            "http://www.w3.org/2001/XMLSchema#": "xsd",
            "http://www.opengis.net/ont/geosparql#": "gsp",
            "http://ex.org/": "ex",
        }
    )


@pytest.fixture
def fake_client() -> FakeSparqlClient:
    return FakeSparqlClient(wkt="POINT(4.35 50.85)", related=["http://ex.org/r2", "http://other.org/y"])
