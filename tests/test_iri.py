import pytest

from dereferencer.errors import NoURISupplied
from dereferencer.iri import local_link, resolve_resource_uri

ORIGIN = "https://data.matdata.eu"


@pytest.mark.parametrize("path", ["", "/", "//"])
def test_empty_path_is_no_uri(path):
    with pytest.raises(NoURISupplied):
        resolve_resource_uri(path, ORIGIN)


def test_testing_mode_decodes_full_uri():
    path = "/http://example.org/resource%20one"
    assert resolve_resource_uri(path, ORIGIN) == "http://example.org/resource one"


def test_testing_mode_https_is_idempotent_on_decoded_input():
    assert resolve_resource_uri("/https://example.org/a/b", ORIGIN) == "https://example.org/a/b"


def test_production_mode_concatenates_origin():
    path = "/_netPointReferences_swi366_on_ne_348"
    assert resolve_resource_uri(path, ORIGIN) == f"{ORIGIN}/_netPointReferences_swi366_on_ne_348"


def test_production_mode_keeps_encoding():
    assert resolve_resource_uri("/op%20point", ORIGIN) == f"{ORIGIN}/op%20point"


def test_other_scheme_is_a_relative_path():
    assert resolve_resource_uri("/ftp://example.org/x", ORIGIN) == f"{ORIGIN}/ftp://example.org/x"


def test_scheme_match_is_case_sensitive():
    assert resolve_resource_uri("/HTTP://example.org/x", ORIGIN) == f"{ORIGIN}/HTTP://example.org/x"


def test_local_link_foreign_uri():
    assert local_link("http://other.org/x", ORIGIN, ORIGIN) is None


def test_local_link_production_uses_path():
    assert local_link(f"{ORIGIN}/op/123", ORIGIN, ORIGIN) == "/op/123"
    assert local_link(ORIGIN, ORIGIN, ORIGIN) == "/"


def test_local_link_testing_embeds_full_uri():
    uri = f"{ORIGIN}/op/123"
    assert local_link(uri, ORIGIN, "http://localhost:8080") == f"/{uri}"
