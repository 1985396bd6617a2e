"""
Tests for the loader module.

Tests reading the initial graph and the mutation log from JSON and the
errors raised for malformed input.
"""

import json

import pytest

from dagview.errors import InputFormatError
from dagview.graph import build_graph_from_records
from dagview.loader import (
    load_mutation_log,
    load_records,
    multi_mutation_from_dict,
    multi_mutation_to_dict,
    mutation_from_dict,
    mutation_log_from_data,
    mutation_to_dict,
    records_from_dict,
)
from dagview.models import Mutation, MutationType, NodeRecord
from tests.fixtures import SAMPLE_GRAPH_PATH, SAMPLE_LOG_PATH, SAMPLE_RECORDS, sample_log


class TestLoadFiles:
    """Tests for reading the fixture files."""

    def test_load_sample_records(self):
        """The fixture graph builds the same graph as the in-memory records."""
        records = load_records(SAMPLE_GRAPH_PATH)

        assert list(records) == ["app", "parser", "render", "lexer"]
        assert records["app"] == NodeRecord(
            name="app",
            children=["parser", "render"],
            tokens=["main.py"],
            metadata={"kind": "module"},
        )

        from_file = build_graph_from_records(records)
        from_dicts = build_graph_from_records(SAMPLE_RECORDS)
        assert set(from_file.edges()) == set(from_dicts.edges())
        assert from_file.token_index == from_dicts.token_index

    def test_load_sample_log(self):
        """The fixture log matches the in-memory log."""
        assert load_mutation_log(SAMPLE_LOG_PATH) == sample_log()

    def test_missing_file(self, tmp_path):
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_records(tmp_path / "nope.json")
        with pytest.raises(FileNotFoundError):
            load_mutation_log(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        """Files that are not JSON raise InputFormatError."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(InputFormatError, match="not valid JSON"):
            load_records(path)

    def test_bare_forms(self, tmp_path):
        """A bare record mapping and a bare entry list are accepted."""
        graph_path = tmp_path / "graph.json"
        graph_path.write_text(json.dumps({"A": {"children": ["B"]}, "B": None}))
        log_path = tmp_path / "log.json"
        log_path.write_text(
            json.dumps([{"reason": "r", "mutation": [{"type": "DELETE_NODE", "start_node": "B"}]}])
        )

        records = load_records(graph_path)
        log = load_mutation_log(log_path)

        assert records["B"] == NodeRecord(name="B")
        assert log[0].mutations == (Mutation.delete_node("B"),)


class TestRecordsFromDict:
    """Tests for records_from_dict."""

    def test_missing_fields_default_to_empty(self):
        """Records may omit children, tokens and metadata."""
        records = records_from_dict({"nodes": {"A": {}}})
        assert records["A"] == NodeRecord(name="A")

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"nodes": []},
            {"nodes": {"A": "B"}},
            {"nodes": {"A": {"children": "B"}}},
            {"nodes": {"A": {"tokens": [1, 2]}}},
            {"nodes": {"A": {"metadata": []}}},
        ],
    )
    def test_malformed(self, data):
        """Wrong shapes raise InputFormatError."""
        with pytest.raises(InputFormatError):
            records_from_dict(data)


class TestMutationFromDict:
    """Tests for parsing mutations and batches."""

    def test_token_change(self):
        """CHANGE_TOKEN entries carry their token edit."""
        mutation = mutation_from_dict(
            {
                "type": "CHANGE_TOKEN",
                "start_node": "A",
                "token_change": {"type": "DELETE_TOKEN", "tokens": ["x", "y"]},
            }
        )

        assert mutation == Mutation.delete_tokens("A", ["x", "y"])

    def test_camel_case_keys(self):
        """camelCase field names are accepted."""
        mutation = mutation_from_dict({"type": "ADD_EDGE", "startNode": "A", "endNode": "B"})
        assert mutation == Mutation.add_edge("A", "B")

    def test_unknown_type(self):
        """Unknown mutation kinds name the valid ones."""
        with pytest.raises(InputFormatError, match="Unknown mutation type 'RENAME'"):
            mutation_from_dict({"type": "RENAME", "start_node": "A"})

    def test_unknown_token_type(self):
        """Unknown token edit kinds are rejected."""
        with pytest.raises(InputFormatError, match="token mutation type"):
            mutation_from_dict(
                {
                    "type": "CHANGE_TOKEN",
                    "start_node": "A",
                    "token_change": {"type": "SWAP", "tokens": []},
                }
            )

    @pytest.mark.parametrize(
        "data, message",
        [
            ({"type": "ADD_NODE"}, "needs a start_node"),
            ({"type": "ADD_EDGE", "start_node": "A"}, "needs an end_node"),
            ({"type": "CHANGE_TOKEN", "start_node": "A"}, "needs a token_change"),
        ],
    )
    def test_missing_fields(self, data, message):
        """Required fields are checked per mutation kind."""
        with pytest.raises(InputFormatError, match=message):
            mutation_from_dict(data)

    def test_empty_batch(self):
        """Batches must hold at least one mutation."""
        with pytest.raises(InputFormatError, match="non-empty"):
            multi_mutation_from_dict({"reason": "nothing", "mutation": []})

    def test_log_error_names_entry(self):
        """Errors inside a log name the entry index."""
        data = {
            "mutations": [
                {"reason": "ok", "mutation": [{"type": "ADD_NODE", "start_node": "A"}]},
                {"reason": "bad", "mutation": [{"type": "ADD_EDGE", "start_node": "A"}]},
            ]
        }

        with pytest.raises(InputFormatError, match="Log entry 1"):
            mutation_log_from_data(data)

    def test_log_must_be_a_list(self):
        """A log that is neither a list nor holds one is rejected."""
        with pytest.raises(InputFormatError):
            mutation_log_from_data({"mutations": "nope"})


class TestMutationToDict:
    """Tests for rendering mutations back into plain data."""

    def test_node_mutation_omits_empty_fields(self):
        """Node mutations have no end_node or token_change keys."""
        assert mutation_to_dict(Mutation.add_node("A")) == {
            "type": "ADD_NODE",
            "start_node": "A",
        }

    def test_rendered_batch_parses_back(self):
        """Rendered batches are accepted by the parser."""
        for multi in sample_log():
            data = multi_mutation_to_dict(multi)
            assert data["reason"] == multi.reason
            assert multi_mutation_from_dict(data) == multi

    def test_token_change_rendering(self):
        """Token edits render their kind and tokens."""
        data = mutation_to_dict(Mutation.add_tokens("A", ["x"]))

        assert data["type"] == MutationType.CHANGE_TOKEN.value
        assert data["token_change"] == {"type": "ADD_TOKEN", "tokens": ["x"]}
