"""
Diff module for dagview.

This module computes step diffs between versions, inverts mutations and
filters the log down to the parts relevant to a query.
"""

from dagview.diff.revert import (
    diff_between,
    filter_multi_mutation_by_nodes,
    find_relevant_mutations,
    multi_mutation_at,
    mutation_indices_of_node,
    mutation_indices_of_token,
    revert_multi_mutation,
    revert_mutation,
    revert_token_mutation,
)

__all__ = [
    "diff_between",
    "filter_multi_mutation_by_nodes",
    "find_relevant_mutations",
    "multi_mutation_at",
    "mutation_indices_of_node",
    "mutation_indices_of_token",
    "revert_multi_mutation",
    "revert_mutation",
    "revert_token_mutation",
]
