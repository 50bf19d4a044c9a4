import pytest
from rdflib import BNode, Literal, URIRef

from dereferencer.errors import ParseError
from dereferencer.triples import (
    Triple,
    best_label,
    geometry_node_of,
    group_by_subject,
    parse_ntriples,
    to_bindings,
    types_of,
)

from conftest import RESOURCE, SAMPLE_NT

RDF_TYPE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"
HAS_GEOMETRY = "http://www.opengis.net/ont/geosparql#hasGeometry"


def test_parse_keeps_source_order_and_term_kinds():
    triples = parse_ntriples(SAMPLE_NT)
    assert len(triples) == 11
    assert triples[0] == Triple(URIRef(RESOURCE), URIRef(RDF_TYPE), URIRef("http://ex.org/Station"))
    assert isinstance(triples[1].object, Literal) and triples[1].object.language == "en"
    assert isinstance(triples[-1].subject, BNode)


def test_parse_empty_body():
    assert parse_ntriples("") == []
    assert parse_ntriples("  \n") == []


def test_unterminated_literal_is_parse_error():
    with pytest.raises(ParseError):
        parse_ntriples('<http://a.org/s> <http://a.org/p> "never closed .\n')


def test_unknown_escape_is_parse_error():
    with pytest.raises(ParseError):
        parse_ntriples('<http://a.org/s> <http://a.org/p> "bad \\q escape" .\n')


def test_known_escapes_are_accepted():
    triples = parse_ntriples('<http://a.org/s> <http://a.org/p> "line\\nbreak \\"quoted\\" \\\\q" .\n')
    assert str(triples[0].object) == 'line\nbreak "quoted" \\q'


@pytest.mark.parametrize("escape", ["\\U00110000", "\\uD800", "\\UFFFFFFFF"])
def test_escape_outside_unicode_range_is_parse_error(escape):
    with pytest.raises(ParseError):
        parse_ntriples(f'<http://a.org/s> <http://a.org/p> "x{escape}" .\n')


def test_unicode_escapes_are_decoded():
    triples = parse_ntriples('<http://a.org/s> <http://a.org/p> "caf\\u00e9 \\U0001F600" .\n')
    assert str(triples[0].object) == "café \U0001F600"


def test_invalid_iri_is_parse_error():
    with pytest.raises(ParseError):
        parse_ntriples('<not an iri> <http://a.org/p> "x" .\n')


def test_types_keep_duplicates_in_order():
    triples = parse_ntriples(
        f"<{RESOURCE}> <{RDF_TYPE}> <http://ex.org/B> .\n"
        f"<{RESOURCE}> <{RDF_TYPE}> <http://ex.org/A> .\n"
        f"<http://ex.org/other> <{RDF_TYPE}> <http://ex.org/B> .\n"
    )
    assert [str(t) for t in types_of(triples)] == ["http://ex.org/B", "http://ex.org/A", "http://ex.org/B"]


def test_first_geometry_node_wins():
    triples = parse_ntriples(
        f"<{RESOURCE}> <{HAS_GEOMETRY}> <http://ex.org/g1> .\n"
        f"<{RESOURCE}> <{HAS_GEOMETRY}> <http://ex.org/g2> .\n"
    )
    assert geometry_node_of(triples) == URIRef("http://ex.org/g1")


def test_no_geometry_node():
    assert geometry_node_of(parse_ntriples(f"<{RESOURCE}> <http://ex.org/p> \"x\" .\n")) is None


def test_group_by_subject_sorts_predicates_and_keeps_value_order():
    grouped = group_by_subject(parse_ntriples(SAMPLE_NT), RESOURCE)
    assert list(grouped) == sorted(grouped)
    assert [str(v) for v in grouped["http://ex.org/p"]] == ["b", "a"]
    # other subjects are not part of the resource's properties
    assert "http://ex.org/q" not in grouped
    assert "http://www.opengis.net/ont/geosparql#asWKT" not in grouped


def test_best_label_language_preference():
    triples = parse_ntriples(SAMPLE_NT)
    assert best_label(triples, RESOURCE, "fr-BE") == "Station Un"
    assert best_label(triples, RESOURCE, "de") == "Station One"
    assert best_label(triples, "http://ex.org/none", "en") is None


def test_bindings_adapter_shapes():
    rows = to_bindings(parse_ntriples(SAMPLE_NT))
    assert rows[0]["subject"] == {"type": "uri", "value": RESOURCE}
    assert rows[1]["object"]["xml:lang"] == "en"
    assert rows[5]["object"]["datatype"] == "http://www.w3.org/2001/XMLSchema#decimal"
    assert rows[-1]["subject"]["type"] == "bnode"
