"""
Mutation module for dagview.

This module applies atomic mutations and mutation batches to a DataGraph
in place.
"""

from dagview.mutation.applicator import apply_mutation, apply_multi_mutation

__all__ = [
    "apply_mutation",
    "apply_multi_mutation",
]
