"""Core data models shared by parsing, assembly, traversal and export."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Direction(str, Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


@dataclass
class NodeDescriptor:
    """One parsed corpus document.

    ``distance`` and the two truncation flags are written by the
    neighborhood filter only; everything else is fixed once parsed.
    """

    id: int
    filename: str
    outbound_references: List[int] = field(default_factory=list)
    distance: Optional[int] = None
    incoming_truncated: bool = False
    outgoing_truncated: bool = False

    @property
    def display_name(self) -> str:
        return self.filename.split("/")[-1]

    def is_truncated(self, direction: Direction) -> bool:
        if direction is Direction.OUTGOING:
            return self.outgoing_truncated
        return self.incoming_truncated

    def mark_truncated(self, direction: Direction) -> None:
        if direction is Direction.OUTGOING:
            self.outgoing_truncated = True
        else:
            self.incoming_truncated = True

    def reset_annotations(self) -> None:
        self.distance = None
        self.incoming_truncated = False
        self.outgoing_truncated = False

    def label(self) -> str:
        lines = [
            self.display_name,
            f"sno={self.id}",
            f"distance={self.distance if self.distance is not None else 0}",
        ]
        if self.incoming_truncated:
            lines.append("(incoming edges not shown)")
        if self.outgoing_truncated:
            lines.append("(outgoing edges not shown)")
        return "\n".join(lines) + "\n"


@dataclass(frozen=True, order=True)
class Edge:
    source: int
    target: int
