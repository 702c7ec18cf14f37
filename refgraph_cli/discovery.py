"""Recursive discovery of corpus documents below a root path."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from .config import SUPPORTED_EXTENSIONS
from .errors import DiscoveryError

logger = logging.getLogger(__name__)


def discover_documents(root: Path, extensions: Optional[Iterable[str]] = None) -> List[Path]:
    """Return every file below *root* whose suffix is in *extensions*.

    Entries that fail during the walk are logged and skipped. A missing or
    unreadable root is fatal.
    """
    exts = set(extensions) if extensions is not None else SUPPORTED_EXTENSIONS

    if not root.exists():
        raise DiscoveryError(f"Path not found: {root}")
    if root.is_file():
        return [root] if root.suffix in exts else []
    if not os.access(root, os.R_OK | os.X_OK):
        raise DiscoveryError(f"Path is not readable: {root}")

    def _on_error(exc: OSError) -> None:
        logger.warning("Skipping unreadable entry %s: %s", exc.filename, exc.strerror)

    found: List[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_on_error):
        for name in filenames:
            path = Path(dirpath) / name
            if path.suffix in exts:
                found.append(path)

    found.sort()
    logger.debug("Discovered %d documents below %s", len(found), root)
    return found
