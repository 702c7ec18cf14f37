"""Graphviz DOT export for extracted neighborhoods."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .errors import OutputWriteError
from .graph import ReferenceGraph

HEADER = [
    "digraph {",
    "    bgcolor=black",
    "    node [color=white fillcolor=black style=filled fontcolor=white shape=box]",
    "    edge [color=white]",
]
TARGET_STYLE = "fillcolor=blue style=filled"


def render_dot(graph: ReferenceGraph, target_id: Optional[int] = None) -> str:
    """Render *graph* as DOT text, highlighting *target_id* if present."""
    lines: List[str] = list(HEADER)

    for node in sorted(graph.nodes(), key=lambda n: n.id):
        attrs = f'label = "{_esc(node.label())}"'
        if node.id == target_id:
            attrs += f" {TARGET_STYLE}"
        lines.append(f"    {node.id} [ {attrs} ]")

    for edge in sorted(graph.edges()):
        lines.append(f"    {edge.source} -> {edge.target}")

    lines.append("}")
    return "\n".join(lines) + "\n"


def export_dot(graph: ReferenceGraph, target_id: Optional[int], output_file: Path) -> None:
    text = render_dot(graph, target_id)
    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(f"Failed to write {output_file}: {exc}", path=output_file) from exc


def _esc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
