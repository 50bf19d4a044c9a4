from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Mapping

import requests

from .config import REQUEST_TIMEOUT_S, USER_AGENT
from .errors import PrefixLoadError

logger = logging.getLogger(__name__)


class PrefixMap:
    """
    Read-only namespace -> prefix mapping.

    The source document has no meaningful key order, so candidates are tried
    longest namespace first (ties by namespace string). A short namespace can
    never mask a more specific one that extends it.
    """

    def __init__(self, mapping: Mapping[str, str] | None = None) -> None:
        self._mapping = dict(mapping or {})
        self._ordered = sorted(self._mapping.items(), key=lambda kv: (-len(kv[0]), kv[0]))

    def __len__(self) -> int:
        return len(self._mapping)

    def __bool__(self) -> bool:
        return bool(self._mapping)

    def as_dict(self) -> dict[str, str]:
        return dict(self._mapping)

    def inverted(self) -> dict[str, str]:
        # the graph widget wants { prefix: namespace }
        return {pfx: ns for ns, pfx in self._ordered}

    def shorten(self, uri: str) -> str:
        for ns, pfx in self._ordered:
            if ns and uri.startswith(ns):
                return f"{pfx}:{uri[len(ns):]}"
        return uri


def shorten(uri: str, prefix_map: PrefixMap) -> str:
    return prefix_map.shorten(uri)


def _read_source(source: str) -> str:
    if source.startswith(("http://", "https://")):
        r = requests.get(source, headers={"User-Agent": USER_AGENT}, timeout=REQUEST_TIMEOUT_S)
        r.raise_for_status()
        return r.text
    return Path(source).read_text(encoding="utf-8")


def load_prefixes(source: str | None) -> PrefixMap:
    """
    Load the prefix document (file path or URL). Never raises: on failure the
    viewer simply shows full URIs.
    """
    if not source:
        return PrefixMap()

    try:
        try:
            data = json.loads(_read_source(source))
        except (OSError, ValueError, requests.RequestException) as e:
            raise PrefixLoadError(f"could not read {source}: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise PrefixLoadError(f"{source} is not a namespace -> prefix object")
    except PrefixLoadError as e:
        logger.warning("Prefixes unavailable, using full URIs: %s", e)
        return PrefixMap()

    logger.info("Loaded %d prefixes from %s", len(data), source)
    return PrefixMap(data)
