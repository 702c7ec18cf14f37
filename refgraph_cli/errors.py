"""Exception hierarchy for the extraction pipeline.

Every error carries the name of the stage that raised it so the CLI can
report where a run stopped. Only :class:`IncompleteRecordError` is
recoverable; the parser catches it and skips the record.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class RefGraphError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, stage: str = "unknown"):
        self.stage = stage
        self.message = message
        super().__init__(f"[{stage}] {message}")


class ConfigError(RefGraphError):
    """The TOML config file is unreadable or holds a mistyped value."""

    def __init__(self, message: str):
        super().__init__(message, stage="config")


class DiscoveryError(RefGraphError):
    """The corpus root does not exist or cannot be read."""

    def __init__(self, message: str):
        super().__init__(message, stage="discovery")


class DocumentParseError(RefGraphError):
    """A document could not be read or is not well-formed JSON."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message, stage="parse")


class IncompleteRecordError(RefGraphError):
    """A document lacks a usable id or filename and is skipped."""

    def __init__(self, message: str):
        super().__init__(message, stage="parse")


class TargetNotFoundError(RefGraphError):
    """The requested target id has no node in the assembled graph."""

    def __init__(self, target_id: int):
        self.target_id = target_id
        super().__init__(f"Target node {target_id} not found in graph", stage="filter")


class OutputWriteError(RefGraphError):
    """The DOT output could not be written."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message, stage="export")
