"""
Navigation module for dagview.

This module moves between versions of the graph described by the mutation
log.
"""

from dagview.navigation.navigator import clamp_version, go_to, replay

__all__ = [
    "clamp_version",
    "go_to",
    "replay",
]
