from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from .config import REQUEST_TIMEOUT_S, SPARQL_ENDPOINT, USER_AGENT
from .errors import QueryTransportError
from .namespaces import GSP

logger = logging.getLogger(__name__)

NTRIPLES = "application/n-triples"
SPARQL_JSON = "application/sparql-results+json"

RELATED_LIMIT = 10


# -----------------------------
# Query builders
# -----------------------------
def describe_query(uri: str) -> str:
    return f"DESCRIBE <{uri}>"


def wkt_query(geometry_node: str) -> str:
    return f"""
SELECT ?wkt WHERE {{
  <{geometry_node}> <{GSP.asWKT}> ?wkt .
}}
"""


def same_class_query(type_uri: str, resource_uri: str, limit: int = RELATED_LIMIT) -> str:
    return f"""
SELECT DISTINCT ?resource WHERE {{
  ?resource a <{type_uri}> .
  FILTER(?resource != <{resource_uri}>)
}}
LIMIT {limit}
"""


# -----------------------------
# Client
# -----------------------------
@dataclass
class SparqlClient:
    endpoint: str = SPARQL_ENDPOINT
    timeout: int = REQUEST_TIMEOUT_S
    session: requests.Session = field(default_factory=requests.Session)

    def __post_init__(self) -> None:
        self.session.headers.update({"User-Agent": USER_AGENT})

    def query(self, query: str, accept: str) -> tuple[bytes, str]:
        """
        POST the query (form field `query`), return (body, content type).
        POST avoids URL length limits on the endpoint side.
        """
        q = (query or "").strip()
        try:
            r = self.session.post(
                self.endpoint,
                data={"query": q},
                headers={"Accept": accept},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise QueryTransportError(str(e)) from e

        if not r.ok:
            logger.error("SPARQL endpoint %s answered %s %s", self.endpoint, r.status_code, r.reason)
            raise QueryTransportError(r.reason or f"HTTP {r.status_code}", status=r.status_code)

        return r.content, r.headers.get("Content-Type", accept)

    def describe(self, uri: str) -> str:
        body, _ = self.query(describe_query(uri), accept=NTRIPLES)
        return body.decode("utf-8", errors="replace")

    def describe_raw(self, uri: str, accept: str) -> tuple[bytes, str]:
        return self.query(describe_query(uri), accept=accept)

    def select(self, query: str) -> list[dict[str, Any]]:
        body, _ = self.query(query, accept=SPARQL_JSON)
        try:
            js = json.loads(body.decode("utf-8", errors="replace"))
            return js["results"]["bindings"]
        except (ValueError, KeyError, TypeError) as e:
            raise QueryTransportError(f"unreadable SPARQL results: {e}") from e

    def wkt_literal(self, geometry_node: str) -> Optional[str]:
        rows = self.select(wkt_query(geometry_node))
        for b in rows:
            if "wkt" in b:
                return b["wkt"]["value"]
        return None

    def same_class_resources(self, type_uri: str, resource_uri: str) -> list[str]:
        rows = self.select(same_class_query(type_uri, resource_uri))
        return [b["resource"]["value"] for b in rows if "resource" in b]
