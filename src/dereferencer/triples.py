from __future__ import annotations

import re
from typing import Any, Iterable, NamedTuple, Optional, Union

from rdflib import BNode, Literal, URIRef
from rdflib.exceptions import ParserError
from rdflib.plugins.parsers.ntriples import W3CNTriplesParser

from .errors import ParseError
from .namespaces import GSP, RDF, RDFS, XSD

# The three RDF term kinds a DESCRIBE result can contain.
Term = Union[URIRef, BNode, Literal]


class Triple(NamedTuple):
    subject: Union[URIRef, BNode]
    predicate: URIRef
    object: Term


# -----------------------------
# Parsing
# -----------------------------
class _ListSink:
    """Collects triples in the order the parser emits them."""

    def __init__(self) -> None:
        self.triples: list[Triple] = []

    def triple(self, s: Any, p: Any, o: Any) -> None:
        self.triples.append(Triple(s, p, o))


_LITERAL_BODY = re.compile(r'"((?:[^"\\\n]|\\.)*)"')
_ESCAPE = re.compile(r"\\(.)")
_HEX = re.compile(r"[0-9A-Fa-f]+")
_SIMPLE_ESCAPES = set('tbnrf"\'\\')


def _check_escapes(text: str) -> None:
    # rdflib only validates string escapes in strict mode; do it here instead
    for lineno, line in enumerate(text.splitlines(), start=1):
        if line.lstrip().startswith("#"):
            continue
        for lit in _LITERAL_BODY.finditer(line):
            body = lit.group(1)
            for m in _ESCAPE.finditer(body):
                c = m.group(1)
                if c in _SIMPLE_ESCAPES:
                    continue
                width = {"u": 4, "U": 8}.get(c)
                digits = body[m.end():m.end() + width] if width else ""
                if width and len(digits) == width and _HEX.fullmatch(digits):
                    cp = int(digits, 16)
                    if cp > 0x10FFFF or 0xD800 <= cp <= 0xDFFF:
                        raise ParseError(f"Invalid code point \\{c}{digits} on line {lineno}")
                    continue
                raise ParseError(f"Unknown escape \\{c} on line {lineno}")


def parse_ntriples(raw: str) -> list[Triple]:
    """
    Parse an N-Triples document into triples, in source order, duplicates kept.
    """
    if not raw or not raw.strip():
        return []

    _check_escapes(raw)

    sink = _ListSink()
    parser = W3CNTriplesParser(sink=sink)
    try:
        parser.parsestring(raw)
    except (ParserError, ValueError) as e:
        # ValueError: chr() on an escape rdflib decoded itself
        raise ParseError(str(e)) from e
    return sink.triples


# -----------------------------
# Derived views
# -----------------------------
def types_of(triples: Iterable[Triple]) -> list[Term]:
    return [t.object for t in triples if t.predicate == RDF.type]


def geometry_node_of(triples: Iterable[Triple]) -> Optional[Term]:
    # only the first hasGeometry edge is honoured
    for t in triples:
        if t.predicate == GSP.hasGeometry:
            return t.object
    return None


def group_by_subject(triples: Iterable[Triple], subject_uri: str) -> dict[str, list[Term]]:
    grouped: dict[str, list[Term]] = {}
    for t in triples:
        if str(t.subject) != subject_uri or isinstance(t.subject, BNode):
            continue
        grouped.setdefault(str(t.predicate), []).append(t.object)
    return {p: grouped[p] for p in sorted(grouped)}


def best_label(triples: Iterable[Triple], subject_uri: str, lang: str) -> Optional[str]:
    labels = [
        t.object
        for t in triples
        if t.predicate == RDFS.label and str(t.subject) == subject_uri and isinstance(t.object, Literal)
    ]
    if not labels:
        return None

    # 1) exact language (pt-BR etc)
    for l in labels:
        if (l.language or "").lower() == lang.lower():
            return str(l)

    # 2) base language (pt-BR -> pt)
    if "-" in lang:
        base = lang.split("-", 1)[0].lower()
        for l in labels:
            if (l.language or "").lower() == base:
                return str(l)

    # 3) english
    for l in labels:
        if (l.language or "").lower() == "en":
            return str(l)

    return str(labels[0])


def is_plain_string(lit: Literal) -> bool:
    return lit.datatype is None or lit.datatype == XSD.string


# -----------------------------
# Graph widget adapter
# -----------------------------
def term_binding(term: Term) -> dict[str, Any]:
    if isinstance(term, URIRef):
        return {"type": "uri", "value": str(term)}
    if isinstance(term, BNode):
        return {"type": "bnode", "value": str(term)}
    if isinstance(term, Literal):
        b: dict[str, Any] = {"type": "literal", "value": str(term)}
        if term.datatype is not None:
            b["datatype"] = str(term.datatype)
        if term.language:
            b["xml:lang"] = term.language
        return b
    raise TypeError(f"not an RDF term: {term!r}")


def to_bindings(triples: Iterable[Triple]) -> list[dict[str, Any]]:
    """SPARQL-results-shaped rows, one per triple."""
    return [
        {
            "subject": term_binding(t.subject),
            "predicate": term_binding(t.predicate),
            "object": term_binding(t.object),
        }
        for t in triples
    ]
