"""Schema-free record parser for JSON corpus documents.

A document becomes a :class:`~refgraph_cli.models.NodeDescriptor` when it
carries a top-level id and filename. Outbound references are any nested
map holding both the reference marker key and a ``name`` key, wherever
they appear in the tree. The scan uses an explicit stack, so deeply nested
documents cannot exhaust the interpreter's recursion limit.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from . import config
from .errors import DocumentParseError, IncompleteRecordError
from .models import NodeDescriptor

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class DocumentSchema:
    """Key names that identify records and references."""

    id_key: str = config.ID_KEY
    filename_key: str = config.FILENAME_KEY
    marker_key: str = config.REFERENCE_MARKER_KEY
    name_key: str = config.REFERENCE_NAME_KEY


DEFAULT_SCHEMA = DocumentSchema()


def _as_record_id(value: Any) -> Optional[int]:
    # bool is an int subclass; floats are never ids
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def is_reference(value: Any, schema: DocumentSchema = DEFAULT_SCHEMA) -> bool:
    """True if *value* is a map shaped like a reference to another document."""
    return isinstance(value, dict) and schema.marker_key in value and schema.name_key in value


def extract_references(tree: Any, schema: DocumentSchema = DEFAULT_SCHEMA) -> List[int]:
    """Collect reference ids from every reference-shaped map in *tree*.

    Reference maps are not scanned any further. Ids are returned in
    document order; duplicates are kept.

    Raises:
        IncompleteRecordError: a reference marker does not hold a
            non-negative integer.
    """
    references: List[int] = []
    stack: List[Union[Dict[str, Any], List[Any]]] = []
    if isinstance(tree, (dict, list)):
        stack.append(tree)

    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            if is_reference(current, schema):
                ref_id = _as_record_id(current[schema.marker_key])
                if ref_id is None:
                    raise IncompleteRecordError(
                        f"reference {schema.marker_key}={current[schema.marker_key]!r} is not a valid id"
                    )
                references.append(ref_id)
                continue
            children = list(current.values())
        else:
            children = current

        for child in reversed(children):
            if isinstance(child, (dict, list)):
                stack.append(child)

    return references


def parse_document(
    raw: Union[bytes, str],
    source: str = "<memory>",
    schema: DocumentSchema = DEFAULT_SCHEMA,
) -> NodeDescriptor:
    """Parse one raw document into a node descriptor.

    Raises:
        DocumentParseError: *raw* is not well-formed JSON, or nests
            deeper than the decoder can follow.
        IncompleteRecordError: the id or filename field is missing or
            mistyped, or a reference id is invalid.
    """
    try:
        tree = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DocumentParseError(f"Malformed JSON in {source}: {exc}") from exc
    except RecursionError as exc:
        # the stdlib decoder recurses once per nesting level
        raise DocumentParseError(f"JSON in {source} is nested too deeply to decode") from exc

    if not isinstance(tree, dict):
        raise IncompleteRecordError(f"{source}: top level is not an object")

    record_id = _as_record_id(tree.get(schema.id_key))
    if record_id is None:
        raise IncompleteRecordError(f"{source}: missing or invalid {schema.id_key}")

    filename = tree.get(schema.filename_key)
    if not isinstance(filename, str):
        raise IncompleteRecordError(f"{source}: missing or invalid {schema.filename_key}")

    return NodeDescriptor(
        id=record_id,
        filename=filename,
        outbound_references=extract_references(tree, schema),
    )


def parse_file(path: Path, schema: DocumentSchema = DEFAULT_SCHEMA) -> Optional[NodeDescriptor]:
    """Read and parse *path*; return None when the record is incomplete."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise DocumentParseError(f"Failed to read {path}: {exc}", path=path) from exc

    try:
        return parse_document(raw, source=str(path), schema=schema)
    except IncompleteRecordError as exc:
        logger.debug("Skipping incomplete record: %s", exc.message)
        return None
    except DocumentParseError as exc:
        exc.path = path
        raise


def parse_corpus(
    paths: Sequence[Path],
    workers: int = 1,
    on_progress: Optional[ProgressCallback] = None,
    schema: DocumentSchema = DEFAULT_SCHEMA,
) -> List[NodeDescriptor]:
    """Parse every file in *paths*, in parallel when *workers* > 1.

    Completion order is not preserved. The first read or parse failure
    cancels outstanding work and is re-raised.
    """
    descriptors: List[NodeDescriptor] = []

    if workers <= 1:
        for path in paths:
            descriptor = parse_file(path, schema)
            if descriptor is not None:
                descriptors.append(descriptor)
            if on_progress:
                on_progress(1)
    else:
        _parse_parallel(paths, workers, on_progress, schema, descriptors)

    skipped = len(paths) - len(descriptors)
    if skipped:
        logger.info("Skipped %d incomplete records out of %d documents", skipped, len(paths))
    return descriptors


def _parse_parallel(
    paths: Sequence[Path],
    workers: int,
    on_progress: Optional[ProgressCallback],
    schema: DocumentSchema,
    descriptors: List[NodeDescriptor],
) -> None:
    # Results and progress are only touched from this thread.
    with ThreadPoolExecutor(max_workers=workers) as pool:
        pending = {pool.submit(parse_file, path, schema) for path in paths}
        while pending:
            done, pending = wait(pending, return_when=FIRST_EXCEPTION)
            failed: Optional[Future] = None
            for future in done:
                if future.exception() is not None:
                    failed = future
                    continue
                descriptor = future.result()
                if descriptor is not None:
                    descriptors.append(descriptor)
                if on_progress:
                    on_progress(1)
            if failed is not None:
                for future in pending:
                    future.cancel()
                raise failed.exception()
