"""
Test fixtures for dagview.

This module provides sample graphs, mutation logs and helper functions
for testing the engine.
"""

from pathlib import Path

from dagview.graph import build_graph_from_records
from dagview.models import MultiMutation, Mutation

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "sample_graph"
SAMPLE_GRAPH_PATH = FIXTURES_DIR / "initial_graph.json"
SAMPLE_LOG_PATH = FIXTURES_DIR / "mutations.json"

# A -> B, A -> C, B -> C
DIAMOND_RECORDS = {
    "A": {"children": ["B", "C"]},
    "B": {"children": ["C"]},
    "C": {},
}

# A -> B -> C
CHAIN_RECORDS = {
    "A": {"children": ["B"]},
    "B": {"children": ["C"]},
    "C": {},
}

# Three unconnected nodes
ISOLATED_RECORDS = {"A": {}, "B": {}, "C": {}}

# Mirrors tests/fixtures/sample_graph/initial_graph.json
SAMPLE_RECORDS = {
    "app": {"children": ["parser", "render"], "tokens": ["main.py"], "metadata": {"kind": "module"}},
    "parser": {"children": ["lexer"], "tokens": ["parser.py"]},
    "render": {"children": ["lexer"], "tokens": ["render.py"]},
    "lexer": {"children": [], "tokens": ["lexer.py", "tokens.py"]},
}


def sample_log() -> list[MultiMutation]:
    """The mutation log of tests/fixtures/sample_graph/mutations.json."""
    return [
        MultiMutation(
            mutations=(
                Mutation.add_node("cache"),
                Mutation.add_edge("parser", "cache"),
                Mutation.add_tokens("cache", ["cache.py"]),
            ),
            reason="add cache",
        ),
        MultiMutation(
            mutations=(
                Mutation.delete_edge("app", "render"),
                Mutation.delete_node("render"),
            ),
            reason="drop render",
        ),
        MultiMutation(
            mutations=(
                Mutation.delete_tokens("lexer", ["tokens.py"]),
                Mutation.add_tokens("cache", ["tokens.py"]),
            ),
            reason="move tokens",
        ),
    ]


def isolated_log() -> list[MultiMutation]:
    """[AddEdge(A, B), DeleteNode(C)] over three isolated nodes."""
    return [
        MultiMutation(mutations=(Mutation.add_edge("A", "B"),), reason="link"),
        MultiMutation(mutations=(Mutation.delete_node("C"),), reason="drop C"),
    ]


def build(records):
    """Build a DataGraph from plain record dicts."""
    return build_graph_from_records(records)
