"""
dagview Engine

Core engine for versioned directed acyclic graphs: building a DAG from named
records, applying and reverting mutations, navigating between versions of a
mutation log and extracting bounded views for display.
"""

from dagview.models import GraphNode, Mutation, MultiMutation, MutationType

__all__ = ["GraphNode", "Mutation", "MultiMutation", "MutationType"]
__version__ = "0.1.0"
