import json
from unittest.mock import patch

import requests

from dereferencer.prefixes import PrefixMap, load_prefixes, shorten


def test_shorten_matching_namespace(prefixes):
    assert shorten("http://www.w3.org/2000/01/rdf-schema#label", prefixes) == "rdfs:label"


def test_shorten_unknown_uri_is_unchanged(prefixes):
    assert shorten("http://nowhere.org/x", prefixes) == "http://nowhere.org/x"


def test_shorten_is_idempotent(prefixes):
    once = shorten("http://ex.org/thing", prefixes)
    assert once == "ex:thing"
    assert shorten(once, prefixes) == once


def test_longest_namespace_wins_regardless_of_order():
    a = PrefixMap({"http://data.europa.eu/949/": "era", "http://data.europa.eu/949/concepts/": "era-c"})
    b = PrefixMap({"http://data.europa.eu/949/concepts/": "era-c", "http://data.europa.eu/949/": "era"})
    uri = "http://data.europa.eu/949/concepts/track-gauges/30"
    assert a.shorten(uri) == b.shorten(uri) == "era-c:track-gauges/30"
    assert a.shorten("http://data.europa.eu/949/Track") == "era:Track"


def test_inverted_for_graph_widget(prefixes):
    assert prefixes.inverted()["rdfs"] == "http://www.w3.org/2000/01/rdf-schema#"


def test_load_prefixes_from_file(tmp_path):
    p = tmp_path / "prefixes.json"
    p.write_text(json.dumps({"http://ex.org/": "ex"}), encoding="utf-8")
    pm = load_prefixes(str(p))
    assert pm.shorten("http://ex.org/a") == "ex:a"


def test_missing_file_degrades_to_no_shortening(tmp_path, caplog):
    pm = load_prefixes(str(tmp_path / "missing.json"))
    assert len(pm) == 0
    assert pm.shorten("http://ex.org/a") == "http://ex.org/a"
    assert "Prefixes unavailable" in caplog.text


def test_malformed_document_degrades(tmp_path):
    p = tmp_path / "prefixes.json"
    p.write_text('["not", "an", "object"]', encoding="utf-8")
    assert not load_prefixes(str(p))


def test_url_fetch_failure_degrades():
    with patch("dereferencer.prefixes.requests.get", side_effect=requests.ConnectionError("down")):
        assert not load_prefixes("https://viewer.example/assets/data/prefixes.json")


def test_packaged_default_loads():
    from dereferencer import config

    pm = load_prefixes(config.PREFIXES_PATH)
    assert pm.shorten("http://www.opengis.net/ont/geosparql#hasGeometry") == "gsp:hasGeometry"
