"""
Error taxonomy for a page load.

Primary-path errors (resolution, query, parse) abort the page and carry the
message and HTTP status shown to the user. Best-effort errors (geometry,
related lookup, prefixes) are only ever logged.
"""
from __future__ import annotations


class DereferencerError(Exception):
    status_code = 500

    @property
    def user_message(self) -> str:
        return f"Failed to load resource: {self}"


# -----------------------------
# Primary path
# -----------------------------
class NoURISupplied(DereferencerError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("No URI specified. Please provide a resource URI in the path.")

    @property
    def user_message(self) -> str:
        return str(self)


class QueryTransportError(DereferencerError):
    status_code = 502

    def __init__(self, reason: str, status: int | None = None) -> None:
        self.status = status
        self.reason = reason
        super().__init__(f"SPARQL query failed: {reason}")


class EmptyDescribeResult(DereferencerError):
    status_code = 404

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"No data found for resource: {uri}")

    @property
    def user_message(self) -> str:
        return str(self)


class ParseError(DereferencerError):
    status_code = 502


# -----------------------------
# Best effort
# -----------------------------
class GeometryParseError(DereferencerError):
    pass


class GeometryTransformError(DereferencerError):
    pass


class RelatedLookupError(DereferencerError):
    pass


class PrefixLoadError(DereferencerError):
    pass
