"""
Graph module for dagview.

This module provides the NetworkX-based DataGraph and its construction from
named input records.
"""

from dagview.graph.builder import (
    DataGraph,
    build_graph_from_records,
    graph_from_records,
)

__all__ = [
    "DataGraph",
    "build_graph_from_records",
    "graph_from_records",
]
