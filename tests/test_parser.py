"""Tests for document discovery and the record parser."""

import json
from pathlib import Path

import pytest

from refgraph_cli.discovery import discover_documents
from refgraph_cli.errors import DiscoveryError, DocumentParseError, IncompleteRecordError
from refgraph_cli.parser import (
    DocumentSchema,
    extract_references,
    is_reference,
    parse_corpus,
    parse_document,
    parse_file,
)


class TestDiscovery:
    """Tests for discover_documents."""

    def test_finds_json_recursively(self, sample_corpus_path: Path):
        paths = discover_documents(sample_corpus_path)

        assert len(paths) == 9
        assert all(p.suffix == ".json" for p in paths)
        assert paths == sorted(paths)
        assert any(p.parent.name == "world" for p in paths)

    def test_skips_other_extensions(self, sample_corpus_path: Path):
        names = {p.name for p in discover_documents(sample_corpus_path)}
        assert "README.txt" not in names

    def test_missing_root_is_fatal(self, temp_dir: Path):
        with pytest.raises(DiscoveryError) as info:
            discover_documents(temp_dir / "nope")
        assert info.value.stage == "discovery"

    def test_single_file_root(self, write_document, make_record):
        path = write_document("one.json", make_record(1, "Base/One.bin"))
        assert discover_documents(path) == [path]

    def test_empty_directory(self, temp_dir: Path):
        assert discover_documents(temp_dir) == []


class TestExtractReferences:
    """Tests for the schema-free reference scan."""

    def test_nested_references_in_document_order(self):
        tree = {
            "a": [{"x": {"__raw__": 3, "name": "c"}}, [[{"__raw__": 1, "name": "a"}]]],
            "b": {"deep": {"deeper": {"__raw__": 2, "name": "b"}}},
        }
        assert extract_references(tree) == [3, 1, 2]

    def test_duplicates_are_kept(self):
        tree = {"a": {"__raw__": 5, "name": "x"}, "b": [{"__raw__": 5, "name": "x"}]}
        assert extract_references(tree) == [5, 5]

    def test_reference_map_is_not_scanned(self):
        tree = {
            "ref": {
                "__raw__": 10,
                "name": "outer",
                "inner": {"__raw__": 11, "name": "hidden"},
            }
        }
        assert extract_references(tree) == [10]

    def test_marker_without_name_is_not_a_reference(self):
        tree = {"a": {"__raw__": 7, "child": {"__raw__": 8, "name": "kept"}}}
        assert not is_reference(tree["a"])
        assert extract_references(tree) == [8]

    def test_scalars_and_empty_containers(self):
        assert extract_references({"a": 1, "b": "s", "c": [], "d": {}}) == []
        assert extract_references(42) == []

    def test_invalid_reference_id_marks_record_incomplete(self):
        with pytest.raises(IncompleteRecordError):
            extract_references({"a": {"__raw__": "oops", "name": "x"}})
        with pytest.raises(IncompleteRecordError):
            extract_references({"a": {"__raw__": -1, "name": "x"}})

    def test_deep_nesting_does_not_recurse(self):
        tree: object = {"__raw__": 99, "name": "leaf"}
        for _ in range(20000):
            tree = [tree]
        assert extract_references({"root": tree}) == [99]

    def test_custom_schema(self):
        schema = DocumentSchema(marker_key="$ref", name_key="label")
        tree = {"a": {"$ref": 4, "label": "x"}, "b": {"__raw__": 5, "name": "y"}}
        assert extract_references(tree, schema) == [4]


class TestParseDocument:
    """Tests for parse_document."""

    def test_builds_descriptor(self, make_record):
        raw = json.dumps(make_record(12, "Base/Quest/A.qst", 3, 4)).encode("utf-8")
        node = parse_document(raw)

        assert node.id == 12
        assert node.filename == "Base/Quest/A.qst"
        assert node.display_name == "A.qst"
        assert node.outbound_references == [3, 4]
        assert node.distance is None
        assert not node.incoming_truncated
        assert not node.outgoing_truncated

    def test_malformed_json_is_fatal(self):
        with pytest.raises(DocumentParseError) as info:
            parse_document(b'{"__snoID__": 1,', source="bad.json")
        assert info.value.stage == "parse"
        assert "bad.json" in info.value.message

    @pytest.mark.parametrize(
        "payload",
        [
            {"__fileName__": "Base/A"},
            {"__snoID__": 1},
            {"__snoID__": "1", "__fileName__": "Base/A"},
            {"__snoID__": True, "__fileName__": "Base/A"},
            {"__snoID__": 1.0, "__fileName__": "Base/A"},
            {"__snoID__": -3, "__fileName__": "Base/A"},
            {"__snoID__": 1, "__fileName__": 7},
        ],
    )
    def test_incomplete_records(self, payload):
        with pytest.raises(IncompleteRecordError):
            parse_document(json.dumps(payload))

    def test_too_deeply_nested_json_is_fatal(self):
        depth = 100000
        raw = '{"__snoID__": 1, "__fileName__": "Base/A", "x": ' + "[" * depth + "]" * depth + "}"

        with pytest.raises(DocumentParseError) as info:
            parse_document(raw, source="deep.json")
        assert info.value.stage == "parse"
        assert "nested too deeply" in info.value.message
        assert "deep.json" in info.value.message

    def test_top_level_array_is_incomplete(self):
        with pytest.raises(IncompleteRecordError):
            parse_document("[1, 2, 3]")


class TestParseFile:
    """Tests for parse_file and parse_corpus."""

    def test_incomplete_file_is_skipped(self, write_document):
        path = write_document("broken.json", {"__fileName__": "Base/X"})
        assert parse_file(path) is None

    def test_unreadable_file_is_fatal(self, temp_dir: Path):
        with pytest.raises(DocumentParseError) as info:
            parse_file(temp_dir / "missing.json")
        assert info.value.path == temp_dir / "missing.json"

    def test_parse_error_carries_path(self, write_document):
        path = write_document("bad.json", None, raw="{not json")
        with pytest.raises(DocumentParseError) as info:
            parse_file(path)
        assert info.value.path == path

    def test_sample_corpus_serial(self, sample_corpus_path: Path):
        paths = discover_documents(sample_corpus_path)
        ticks = []
        nodes = parse_corpus(paths, workers=1, on_progress=ticks.append)

        assert len(nodes) == 8
        assert sum(ticks) == len(paths)
        quest = next(n for n in nodes if n.id == 100)
        assert quest.outbound_references == [200, 300, 999, 200]

    def test_sample_corpus_parallel_matches_serial(self, sample_corpus_path: Path):
        paths = discover_documents(sample_corpus_path)
        serial = {n.id: n.outbound_references for n in parse_corpus(paths, workers=1)}
        parallel = {n.id: n.outbound_references for n in parse_corpus(paths, workers=4)}
        assert serial == parallel

    def test_malformed_document_aborts_corpus(self, write_document, make_record):
        paths = [
            write_document(f"ok_{i}.json", make_record(i, f"Base/{i}.bin")) for i in range(10)
        ]
        paths.append(write_document("zz_bad.json", None, raw="{]"))

        with pytest.raises(DocumentParseError):
            parse_corpus(paths, workers=4)
        with pytest.raises(DocumentParseError):
            parse_corpus(paths, workers=1)
