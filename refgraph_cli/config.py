"""Default paths and settings for refgraph runs."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("REFGRAPH_HOME", str(Path.home() / ".refgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
SUPPORTED_EXTENSIONS = {".json"}

# Document schema keys
ID_KEY = "__snoID__"
FILENAME_KEY = "__fileName__"
REFERENCE_MARKER_KEY = "__raw__"
REFERENCE_NAME_KEY = "name"

# Neighborhood defaults (overridable via [neighborhood] in config.toml)
DEFAULT_TARGET_ID = 1315204
DEFAULT_OUTGOING_DEPTH = 3
DEFAULT_INCOMING_DEPTH = 3
DEFAULT_DEGREE_THRESHOLD = 20
DEFAULT_POLICY = "shortest"
DEFAULT_OUT_FILE = "graph.dot"

# Prune defaults (overridable via [prune] in config.toml).
# World/ assets and the shared animation tree fan out to most of the corpus.
DEFAULT_EXCLUDED_PATH_MARKERS = ("World/",)
DEFAULT_EXCLUDED_IDS = (472400,)


def ensure_base_dirs() -> None:
    """Create the base directory for the config file if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
