"""
Session module for dagview.

This module holds the explicit per-client navigation state and answers view
queries against it.
"""

from dagview.session.query import GraphSession, ViewPayload

__all__ = [
    "GraphSession",
    "ViewPayload",
]
