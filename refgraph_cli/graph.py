"""Arena-backed directed reference graph and its assembler.

Descriptors live in a flat list addressed by dense index; an id -> index
map resolves record ids. Adjacency lists hold indices, kept sorted by the
neighbor's record id so traversal order is deterministic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Set, Tuple

from .models import Direction, Edge, NodeDescriptor

logger = logging.getLogger(__name__)


class ReferenceGraph:
    """Directed, possibly cyclic graph of corpus documents keyed by id."""

    def __init__(self) -> None:
        self._nodes: List[NodeDescriptor] = []
        self._index: Dict[int, int] = {}
        self._out: List[List[int]] = []
        self._in: List[List[int]] = []
        self._edge_count = 0

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_node(self, descriptor: NodeDescriptor) -> bool:
        """Insert *descriptor*; return False if it replaced an existing id."""
        slot = self._index.get(descriptor.id)
        if slot is not None:
            self._nodes[slot] = descriptor
            return False
        self._index[descriptor.id] = len(self._nodes)
        self._nodes.append(descriptor)
        self._out.append([])
        self._in.append([])
        return True

    def add_edges(self, edges: Iterable[Edge]) -> int:
        """Insert edges whose endpoints both exist; return how many were dropped.

        Callers pass a deduplicated collection.
        """
        dropped = 0
        for edge in edges:
            src = self._index.get(edge.source)
            dst = self._index.get(edge.target)
            if src is None or dst is None:
                dropped += 1
                continue
            self._out[src].append(dst)
            self._in[dst].append(src)
            self._edge_count += 1

        for adjacency in (self._out, self._in):
            for neighbors in adjacency:
                neighbors.sort(key=lambda idx: self._nodes[idx].id)
        return dropped

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def node(self, node_id: int) -> NodeDescriptor:
        return self._nodes[self._index[node_id]]

    def nodes(self) -> Iterator[NodeDescriptor]:
        yield from self._nodes

    def node_ids(self) -> Set[int]:
        return set(self._index)

    def edges(self) -> Iterator[Edge]:
        for src, targets in enumerate(self._out):
            source_id = self._nodes[src].id
            for dst in targets:
                yield Edge(source_id, self._nodes[dst].id)

    def neighbors(self, node_id: int, direction: Direction) -> List[NodeDescriptor]:
        adjacency = self._out if direction is Direction.OUTGOING else self._in
        return [self._nodes[idx] for idx in adjacency[self._index[node_id]]]

    def successors(self, node_id: int) -> List[NodeDescriptor]:
        return self.neighbors(node_id, Direction.OUTGOING)

    def predecessors(self, node_id: int) -> List[NodeDescriptor]:
        return self.neighbors(node_id, Direction.INCOMING)

    def degree(self, node_id: int, direction: Direction) -> int:
        adjacency = self._out if direction is Direction.OUTGOING else self._in
        return len(adjacency[self._index[node_id]])

    def reset_annotations(self) -> None:
        for node in self._nodes:
            node.reset_annotations()


@dataclass
class AssemblyStats:
    nodes: int = 0
    edges: int = 0
    dangling_dropped: int = 0
    duplicate_ids: List[int] = field(default_factory=list)


def collect_edges(descriptors: Iterable[NodeDescriptor]) -> Set[Edge]:
    """Harvest every outbound reference into one deduplicated edge set."""
    return {
        Edge(descriptor.id, target)
        for descriptor in descriptors
        for target in descriptor.outbound_references
    }


def build_graph(descriptors: Iterable[NodeDescriptor]) -> Tuple[ReferenceGraph, AssemblyStats]:
    """Assemble descriptors into a graph.

    Duplicate ids are resolved last-write-wins and reported. Edges whose
    endpoints are unknown are dropped and counted.
    """
    graph = ReferenceGraph()
    stats = AssemblyStats()

    for descriptor in descriptors:
        if not graph.add_node(descriptor):
            logger.warning(
                "Duplicate id %d: %s replaces an earlier record",
                descriptor.id, descriptor.filename,
            )
            stats.duplicate_ids.append(descriptor.id)

    # Harvest from the surviving descriptors only, after overwrites settle.
    edges = collect_edges(graph.nodes())
    stats.dangling_dropped = graph.add_edges(sorted(edges))
    stats.nodes = len(graph)
    stats.edges = graph.edge_count

    if stats.dangling_dropped:
        logger.info("Dropped %d references to unknown ids", stats.dangling_dropped)
    return graph, stats
