"""
Views module for dagview.

This module extracts depth- and radius-bounded induced subgraphs for display.
"""

from dagview.views.extractor import (
    max_depth_view,
    neighborhood_view,
    node_names_in,
    reachable_view,
)

__all__ = [
    "max_depth_view",
    "neighborhood_view",
    "node_names_in",
    "reachable_view",
]
