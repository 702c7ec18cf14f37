"""Depth- and degree-bounded neighborhood selection around a target node.

The filter runs two independent traversals from the target, one along
outgoing edges and one along incoming edges. Each visited node is kept and
annotated with its hop distance. A node stops expanding, and gets the
direction's truncation flag, when it sits at the depth limit or (past the
target itself) when it matches a prune rule: an excluded path marker, an
excluded id, or more edges in that direction than the degree threshold.

Two traversal policies are available:

``SHORTEST``
    Breadth-first with a visited set per direction. Every node is visited
    once, at its minimum hop distance. A node reached in both directions
    keeps the smaller distance.

``REVISIT``
    Depth-first stack with no visited set. Nodes reached along several
    paths are visited once per path; each visit overwrites the distance
    and truncation flags accumulate. Work grows with ``fan_out ** depth``,
    so keep depth limits small with this policy.

Both policies keep the same set of nodes.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, FrozenSet, Iterable, List, Optional, Set, Tuple

from . import config
from .errors import TargetNotFoundError
from .graph import ReferenceGraph
from .models import Direction, NodeDescriptor

logger = logging.getLogger(__name__)


class TraversalPolicy(str, Enum):
    SHORTEST = "shortest"
    REVISIT = "revisit"


@dataclass(frozen=True)
class PruneRules:
    """Heuristics that stop expansion through hub-like nodes.

    ``degree_threshold=None`` disables degree pruning.
    """

    excluded_path_markers: Tuple[str, ...] = config.DEFAULT_EXCLUDED_PATH_MARKERS
    excluded_ids: FrozenSet[int] = frozenset(config.DEFAULT_EXCLUDED_IDS)
    degree_threshold: Optional[int] = config.DEFAULT_DEGREE_THRESHOLD

    @classmethod
    def disabled(cls) -> "PruneRules":
        return cls(excluded_path_markers=(), excluded_ids=frozenset(), degree_threshold=None)

    def should_prune(self, graph: ReferenceGraph, node: NodeDescriptor, direction: Direction) -> bool:
        if any(marker in node.filename for marker in self.excluded_path_markers):
            return True
        if node.id in self.excluded_ids:
            return True
        if self.degree_threshold is not None:
            return graph.degree(node.id, direction) > self.degree_threshold
        return False


@dataclass
class NeighborhoodResult:
    target_id: int
    kept_ids: FrozenSet[int]
    visits: int = 0
    truncated_ids: FrozenSet[int] = field(default_factory=frozenset)

    def __len__(self) -> int:
        return len(self.kept_ids)


class NeighborhoodFilter:
    """Selects and annotates the nodes around a target."""

    def __init__(
        self,
        prune_rules: Optional[PruneRules] = None,
        policy: TraversalPolicy = TraversalPolicy.SHORTEST,
    ) -> None:
        self.prune_rules = prune_rules if prune_rules is not None else PruneRules()
        self.policy = TraversalPolicy(policy)

    def run(
        self,
        graph: ReferenceGraph,
        target_id: int,
        outgoing_depth: int = config.DEFAULT_OUTGOING_DEPTH,
        incoming_depth: int = config.DEFAULT_INCOMING_DEPTH,
    ) -> NeighborhoodResult:
        if target_id not in graph:
            raise TargetNotFoundError(target_id)
        if outgoing_depth < 0 or incoming_depth < 0:
            raise ValueError("depth limits must be >= 0")

        graph.reset_annotations()
        kept: Set[int] = set()
        visits = 0
        for direction, depth_limit in (
            (Direction.OUTGOING, outgoing_depth),
            (Direction.INCOMING, incoming_depth),
        ):
            if self.policy is TraversalPolicy.SHORTEST:
                visits += self._breadth_first(graph, target_id, direction, depth_limit, kept)
            else:
                visits += self._revisiting(graph, target_id, direction, depth_limit, kept)
            logger.debug("%s pass: %d nodes kept so far", direction.value, len(kept))

        truncated = frozenset(
            node_id for node_id in kept
            if graph.node(node_id).incoming_truncated or graph.node(node_id).outgoing_truncated
        )
        logger.debug(
            "Kept %d nodes around %d after %d visits (%s policy)",
            len(kept), target_id, visits, self.policy.value,
        )
        return NeighborhoodResult(
            target_id=target_id,
            kept_ids=frozenset(kept),
            visits=visits,
            truncated_ids=truncated,
        )

    # ------------------------------------------------------------------
    # Traversals
    # ------------------------------------------------------------------

    def _stops_at(
        self,
        graph: ReferenceGraph,
        node: NodeDescriptor,
        depth: int,
        direction: Direction,
        depth_limit: int,
    ) -> bool:
        # The target itself always expands at least once.
        if depth == depth_limit:
            return True
        return depth > 0 and self.prune_rules.should_prune(graph, node, direction)

    def _breadth_first(
        self,
        graph: ReferenceGraph,
        target_id: int,
        direction: Direction,
        depth_limit: int,
        kept: Set[int],
    ) -> int:
        queue: Deque[Tuple[int, NodeDescriptor]] = deque([(0, graph.node(target_id))])
        seen = {target_id}
        visits = 0

        while queue:
            depth, node = queue.popleft()
            visits += 1
            if node.distance is None or depth < node.distance:
                node.distance = depth
            kept.add(node.id)

            if self._stops_at(graph, node, depth, direction, depth_limit):
                node.mark_truncated(direction)
                continue

            for neighbor in graph.neighbors(node.id, direction):
                if neighbor.id not in seen:
                    seen.add(neighbor.id)
                    queue.append((depth + 1, neighbor))
        return visits

    def _revisiting(
        self,
        graph: ReferenceGraph,
        target_id: int,
        direction: Direction,
        depth_limit: int,
        kept: Set[int],
    ) -> int:
        stack: List[Tuple[int, NodeDescriptor]] = [(0, graph.node(target_id))]
        visits = 0

        while stack:
            depth, node = stack.pop()
            visits += 1
            # Cycles can lead back to the target; it stays at distance 0.
            node.distance = 0 if node.id == target_id else depth
            kept.add(node.id)

            if self._stops_at(graph, node, depth, direction, depth_limit):
                node.mark_truncated(direction)
                continue

            for neighbor in graph.neighbors(node.id, direction):
                stack.append((depth + 1, neighbor))
        return visits


def filter_neighborhood(
    graph: ReferenceGraph,
    target_id: int,
    outgoing_depth: int = config.DEFAULT_OUTGOING_DEPTH,
    incoming_depth: int = config.DEFAULT_INCOMING_DEPTH,
    prune_rules: Optional[PruneRules] = None,
    policy: TraversalPolicy = TraversalPolicy.SHORTEST,
) -> NeighborhoodResult:
    """Convenience wrapper around :class:`NeighborhoodFilter`."""
    return NeighborhoodFilter(prune_rules, policy).run(
        graph, target_id, outgoing_depth=outgoing_depth, incoming_depth=incoming_depth,
    )


def build_prune_rules(
    exclude_paths: Iterable[str],
    exclude_ids: Iterable[int],
    degree_threshold: Optional[int],
) -> PruneRules:
    return PruneRules(
        excluded_path_markers=tuple(exclude_paths),
        excluded_ids=frozenset(exclude_ids),
        degree_threshold=degree_threshold,
    )
