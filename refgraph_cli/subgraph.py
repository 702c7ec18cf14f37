"""Induced subgraph extraction."""

from __future__ import annotations

from typing import AbstractSet

from .graph import ReferenceGraph


def extract_subgraph(graph: ReferenceGraph, kept_ids: AbstractSet[int]) -> ReferenceGraph:
    """Return a new graph holding the kept nodes and the edges among them.

    *graph* is left untouched. Descriptors are shared, not copied, so
    traversal annotations carry over. Ids absent from *graph* are ignored.
    """
    subgraph = ReferenceGraph()
    for node in graph.nodes():
        if node.id in kept_ids:
            subgraph.add_node(node)

    subgraph.add_edges(
        edge for edge in graph.edges()
        if edge.source in kept_ids and edge.target in kept_ids
    )
    return subgraph
