"""Typer-based CLI for extracting reference neighborhoods as DOT graphs."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config
from .config_manager import (
    NeighborhoodSettings,
    load_neighborhood_config,
    load_prune_config,
    save_neighborhood_config,
)
from .errors import RefGraphError
from .models import Direction
from .neighborhood import TraversalPolicy, build_prune_rules
from .pipeline import NeighborhoodPipeline

app = typer.Typer(
    help="🕸️  refgraph: extract the reference neighborhood of one record as a DOT graph.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"refgraph v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """refgraph: bounded neighborhood extraction for cross-referencing JSON corpora."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(exc: RefGraphError) -> NoReturn:
    typer.echo(f"❌ {exc.stage}: {exc.message}", err=True)
    raise typer.Exit(code=1)


@app.command("extract")
def extract(
    json_path: Path = typer.Argument(..., help="Root directory (or file) of the JSON corpus."),
    target_node_id: Optional[int] = typer.Option(
        None, "--target-node-id", "-t", min=0, help=f"Id of the target node [default: {config.DEFAULT_TARGET_ID}]",
    ),
    outgoing_count: Optional[int] = typer.Option(
        None, min=0, help=f"Hops to follow outgoing references [default: {config.DEFAULT_OUTGOING_DEPTH}]",
    ),
    incoming_count: Optional[int] = typer.Option(
        None, min=0, help=f"Hops to trace incoming references [default: {config.DEFAULT_INCOMING_DEPTH}]",
    ),
    filter_count: Optional[int] = typer.Option(
        None, min=0, help=f"Stop expanding nodes with more edges than this [default: {config.DEFAULT_DEGREE_THRESHOLD}]",
    ),
    no_filter: bool = typer.Option(False, "--no-filter", help="Disable degree-based pruning."),
    exclude_path: Optional[List[str]] = typer.Option(
        None, "--exclude-path", help="Filename substring whose nodes are never expanded (repeatable).",
    ),
    exclude_id: Optional[List[int]] = typer.Option(
        None, "--exclude-id", help="Node id that is never expanded (repeatable).",
    ),
    policy: Optional[TraversalPolicy] = typer.Option(
        None, "--policy", case_sensitive=False,
        help="shortest: breadth-first, minimum distances. revisit: re-expand on every path.",
    ),
    workers: int = typer.Option(os.cpu_count() or 1, "--workers", "-j", min=1, help="Parallel parse workers."),
    out_file: Optional[Path] = typer.Option(None, "--out-file", "-o", help="Output DOT file."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide progress bars."),
):
    """Write the bounded neighborhood of a target node to a DOT file."""
    try:
        settings = load_neighborhood_config()
        prune = load_prune_config()
    except RefGraphError as exc:
        _fail(exc)

    threshold = settings.filter_count if filter_count is None else filter_count
    if no_filter:
        threshold = None
    rules = build_prune_rules(
        exclude_path if exclude_path else prune.exclude_paths,
        exclude_id if exclude_id else prune.exclude_ids,
        threshold,
    )
    chosen_policy = policy or TraversalPolicy(settings.policy)
    target = settings.target_node_id if target_node_id is None else target_node_id
    output = out_file or Path(settings.out_file)

    pipeline = NeighborhoodPipeline(workers=workers, show_progress=not quiet)
    try:
        report = pipeline.run(
            json_path,
            target_id=target,
            output_file=output,
            outgoing_depth=settings.outgoing_count if outgoing_count is None else outgoing_count,
            incoming_depth=settings.incoming_count if incoming_count is None else incoming_count,
            prune_rules=rules,
            policy=chosen_policy,
        )
    except RefGraphError as exc:
        _fail(exc)

    stats = report.assembly
    typer.echo(f"Documents: {report.documents} | Nodes: {stats.nodes} | Edges: {stats.edges}")
    typer.echo(f"Dangling references dropped: {stats.dangling_dropped}")
    if stats.duplicate_ids:
        typer.echo(f"⚠️  Duplicate ids (last record kept): {len(stats.duplicate_ids)}")
    typer.echo(
        f"Kept: {report.subgraph_nodes} nodes, {report.subgraph_edges} edges "
        f"({len(report.neighborhood.truncated_ids)} truncated)"
    )
    typer.echo(f"Wrote graph to {report.output_file}")


@app.command("stats")
def stats(
    json_path: Path = typer.Argument(..., help="Root directory (or file) of the JSON corpus."),
    top: int = typer.Option(10, "--top", "-n", min=1, max=100, help="Number of hubs to list per direction."),
    workers: int = typer.Option(os.cpu_count() or 1, "--workers", "-j", min=1, help="Parallel parse workers."),
):
    """Summarize a corpus and list its highest-degree nodes."""
    pipeline = NeighborhoodPipeline(workers=workers, show_progress=False)
    try:
        loaded = pipeline.load_graph(json_path)
    except RefGraphError as exc:
        _fail(exc)

    graph, assembly = loaded.graph, loaded.stats
    typer.echo(f"Documents: {loaded.documents}")
    typer.echo(f"Nodes: {assembly.nodes} | Edges: {assembly.edges}")
    typer.echo(f"Skipped records: {loaded.documents - assembly.nodes - len(assembly.duplicate_ids)}")
    typer.echo(f"Dangling references dropped: {assembly.dangling_dropped}")
    typer.echo(f"Duplicate ids: {len(assembly.duplicate_ids)}")

    for direction in (Direction.OUTGOING, Direction.INCOMING):
        hubs = sorted(graph.nodes(), key=lambda n: (-graph.degree(n.id, direction), n.id))[:top]
        table = Table(title=f"Top {direction.value} degree", show_lines=False)
        table.add_column("sno", justify="right")
        table.add_column("file")
        table.add_column("degree", justify="right")
        for node in hubs:
            table.add_row(str(node.id), node.display_name, str(graph.degree(node.id, direction)))
        console.print(table)


@app.command("show-config")
def show_config():
    """Print effective defaults and where they come from."""
    try:
        settings = load_neighborhood_config()
        prune = load_prune_config()
    except RefGraphError as exc:
        _fail(exc)

    source = config.CONFIG_FILE if config.CONFIG_FILE.exists() else "built-in defaults"
    typer.echo(f"Config: {source}")
    typer.echo(f"target_node_id = {settings.target_node_id}")
    typer.echo(f"outgoing_count = {settings.outgoing_count}")
    typer.echo(f"incoming_count = {settings.incoming_count}")
    typer.echo(f"filter_count   = {settings.filter_count if settings.filter_count is not None else 'disabled'}")
    typer.echo(f"policy         = {settings.policy}")
    typer.echo(f"out_file       = {settings.out_file}")
    typer.echo(f"exclude_paths  = {', '.join(prune.exclude_paths) or '-'}")
    typer.echo(f"exclude_ids    = {', '.join(str(i) for i in prune.exclude_ids) or '-'}")


@app.command("set-defaults")
def set_defaults(
    target_node_id: Optional[int] = typer.Option(None, "--target-node-id", "-t", min=0),
    outgoing_count: Optional[int] = typer.Option(None, min=0),
    incoming_count: Optional[int] = typer.Option(None, min=0),
    filter_count: Optional[int] = typer.Option(None, min=-1, help="-1 disables degree pruning."),
    policy: Optional[TraversalPolicy] = typer.Option(None, "--policy", case_sensitive=False),
    out_file: Optional[str] = typer.Option(None, "--out-file", "-o"),
):
    """Persist neighborhood defaults to the config file."""
    try:
        settings = load_neighborhood_config()
    except RefGraphError as exc:
        _fail(exc)

    updated = NeighborhoodSettings(
        target_node_id=settings.target_node_id if target_node_id is None else target_node_id,
        outgoing_count=settings.outgoing_count if outgoing_count is None else outgoing_count,
        incoming_count=settings.incoming_count if incoming_count is None else incoming_count,
        filter_count=settings.filter_count if filter_count is None else (None if filter_count < 0 else filter_count),
        policy=policy.value if policy else settings.policy,
        out_file=out_file or settings.out_file,
    )
    try:
        save_neighborhood_config(updated)
    except RefGraphError as exc:
        _fail(exc)
    typer.echo(f"Saved defaults to {config.CONFIG_FILE}")


if __name__ == "__main__":
    app()
