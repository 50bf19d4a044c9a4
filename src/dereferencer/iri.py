from __future__ import annotations

from typing import Optional
from urllib.parse import unquote

from .errors import NoURISupplied

FULL_URI_SCHEMES = ("http://", "https://")


def resolve_resource_uri(path: str, base_origin: str) -> str:
    """
    Derive the resource URI from the request path.

    Two modes:
    - testing:    /http://example.org/resource -> http://example.org/resource
    - production: /_netPointReferences_swi366  -> <base_origin>/_netPointReferences_swi366
    """
    rest = path[1:] if path.startswith("/") else path

    if not rest or rest == "/":
        raise NoURISupplied()

    if rest.startswith(FULL_URI_SCHEMES):
        return unquote(rest)

    # anything else (ftp://... included) is a path under our own origin
    return f"{base_origin}/{rest}"


def is_local(uri: str, entity_ns: str) -> bool:
    return uri.startswith(entity_ns)


def local_link(uri: str, entity_ns: str, origin: str) -> Optional[str]:
    """
    In-app link for a URI of the entity namespace, or None for external URIs.
    """
    if not is_local(uri, entity_ns):
        return None
    # production: origin is the entity namespace, keep the clean path
    if origin == entity_ns:
        return uri[len(entity_ns):] or "/"
    # testing: embed the full URI in the path
    return "/" + uri
