import os
from pathlib import Path

# Endpoint + entity namespace (same variables the container entrypoint injects)
SPARQL_ENDPOINT = os.getenv("SPARQL_ENDPOINT", "https://jena.matdata.eu/rinf/sparql")
ENTITY_NS = os.getenv("BASE_URI", "https://data.matdata.eu")

# Empty -> use the origin of the incoming request
BASE_ORIGIN = os.getenv("BASE_ORIGIN", "").rstrip("/")

PREFIXES_PATH = os.getenv("PREFIXES_PATH", str(Path(__file__).parent / "data" / "prefixes.json"))

EPSG_SERVICE_URL = os.getenv("EPSG_SERVICE_URL", "https://epsg.io").rstrip("/")
GRAPH_PLUGIN_URL = os.getenv("GRAPH_PLUGIN_URL", "/vendor/yasgui-graph-plugin/dist/yasgui-graph-plugin.esm.js")
# Front-end widget bundles (graph plugin) served under /vendor/
VENDOR_DIR = os.getenv("VENDOR_DIR", "vendor")

USER_AGENT = os.getenv("USER_AGENT", "ld-dereferencer/0.1")
REQUEST_TIMEOUT_S = int(os.getenv("REQUEST_TIMEOUT_S", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
