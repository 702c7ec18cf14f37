"""Pytest configuration and fixtures for refgraph tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, Iterable, Optional, Tuple

import pytest

from refgraph_cli.graph import ReferenceGraph, build_graph
from refgraph_cli.models import NodeDescriptor


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch):
    """Point the config file at an empty temp directory for every test.

    Keeps a developer's ~/.refgraph/config.toml from leaking into results.
    """
    home = tmp_path_factory.mktemp("refgraph_home")
    monkeypatch.setattr("refgraph_cli.config.BASE_DIR", home)
    monkeypatch.setattr("refgraph_cli.config.CONFIG_FILE", home / "config.toml")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_corpus_path() -> Path:
    """Get path to the sample JSON corpus."""
    return Path(__file__).parent / "fixtures" / "sample_corpus"


@pytest.fixture
def write_document(temp_dir: Path) -> Callable[..., Path]:
    """Write a JSON document under temp_dir and return its path."""

    def _write(relpath: str, payload, raw: Optional[str] = None) -> Path:
        path = temp_dir / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(raw if raw is not None else json.dumps(payload), encoding="utf-8")
        return path

    return _write


def _record(node_id: int, filename: str, *refs: int) -> dict:
    return {
        "__snoID__": node_id,
        "__fileName__": filename,
        "arRefs": [{"sno": {"__raw__": ref, "name": f"ref_{ref}"}} for ref in refs],
    }


@pytest.fixture
def make_record() -> Callable[..., dict]:
    """Build a minimal corpus document referencing the given ids."""
    return _record


@pytest.fixture
def graph_factory() -> Callable[..., ReferenceGraph]:
    """Build a graph from ``(source, target)`` pairs.

    Every id mentioned becomes a node named ``Base/Node_<id>.bin`` unless
    *filenames* overrides it.
    """

    def _build(
        edges: Iterable[Tuple[int, int]],
        filenames: Optional[Dict[int, str]] = None,
        nodes: Iterable[int] = (),
    ) -> ReferenceGraph:
        filenames = filenames or {}
        edges = list(edges)
        refs: Dict[int, list] = {node_id: [] for node_id in nodes}
        for src, dst in edges:
            refs.setdefault(src, []).append(dst)
            refs.setdefault(dst, [])
        descriptors = [
            NodeDescriptor(
                id=node_id,
                filename=filenames.get(node_id, f"Base/Node_{node_id}.bin"),
                outbound_references=targets,
            )
            for node_id, targets in sorted(refs.items())
        ]
        graph, _stats = build_graph(descriptors)
        return graph

    return _build
