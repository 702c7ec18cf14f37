"""Pipeline coordinating discovery, parsing, assembly, filtering and export."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from .discovery import discover_documents
from .dot_export import export_dot
from .graph import AssemblyStats, ReferenceGraph, build_graph
from .models import NodeDescriptor
from .neighborhood import NeighborhoodFilter, NeighborhoodResult, PruneRules, TraversalPolicy
from .parser import DEFAULT_SCHEMA, DocumentSchema, parse_corpus
from .subgraph import extract_subgraph

logger = logging.getLogger(__name__)


@dataclass
class CorpusLoad:
    graph: ReferenceGraph
    stats: AssemblyStats
    documents: int


@dataclass
class PipelineReport:
    documents: int
    assembly: AssemblyStats
    neighborhood: NeighborhoodResult
    subgraph_nodes: int
    subgraph_edges: int
    output_file: Path


class NeighborhoodPipeline:
    """Runs one corpus snapshot end to end."""

    def __init__(
        self,
        workers: int = 1,
        show_progress: bool = True,
        console: Optional[Console] = None,
        schema: DocumentSchema = DEFAULT_SCHEMA,
    ) -> None:
        self.workers = max(1, workers)
        self.show_progress = show_progress
        self.console = console or Console(stderr=True)
        self.schema = schema

    def _progress(self) -> Progress:
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.console,
            disable=not self.show_progress,
            transient=True,
        )

    def load_graph(self, corpus_root: Path) -> CorpusLoad:
        """Discover, parse and assemble the corpus below *corpus_root*."""
        paths = discover_documents(corpus_root)
        logger.info("Found %d documents below %s", len(paths), corpus_root)

        with self._progress() as progress:
            task = progress.add_task("Parsing documents...", total=len(paths))
            descriptors: List[NodeDescriptor] = parse_corpus(
                paths,
                workers=self.workers,
                on_progress=lambda n: progress.advance(task, n),
                schema=self.schema,
            )
            progress.update(task, description="Building graph...")
            graph, stats = build_graph(descriptors)

        return CorpusLoad(graph=graph, stats=stats, documents=len(paths))

    def select(
        self,
        graph: ReferenceGraph,
        target_id: int,
        outgoing_depth: int,
        incoming_depth: int,
        prune_rules: Optional[PruneRules] = None,
        policy: TraversalPolicy = TraversalPolicy.SHORTEST,
    ) -> Tuple[NeighborhoodResult, ReferenceGraph]:
        """Filter the neighborhood of *target_id* and extract its subgraph."""
        result = NeighborhoodFilter(prune_rules, policy).run(
            graph, target_id, outgoing_depth=outgoing_depth, incoming_depth=incoming_depth,
        )
        return result, extract_subgraph(graph, result.kept_ids)

    def run(
        self,
        corpus_root: Path,
        target_id: int,
        output_file: Path,
        outgoing_depth: int,
        incoming_depth: int,
        prune_rules: Optional[PruneRules] = None,
        policy: TraversalPolicy = TraversalPolicy.SHORTEST,
    ) -> PipelineReport:
        loaded = self.load_graph(corpus_root)
        result, subgraph = self.select(
            loaded.graph, target_id, outgoing_depth, incoming_depth, prune_rules, policy,
        )
        export_dot(subgraph, target_id, output_file)
        logger.info("Wrote %d nodes to %s", len(subgraph), output_file)

        return PipelineReport(
            documents=loaded.documents,
            assembly=loaded.stats,
            neighborhood=result,
            subgraph_nodes=len(subgraph),
            subgraph_edges=subgraph.edge_count,
            output_file=output_file,
        )
