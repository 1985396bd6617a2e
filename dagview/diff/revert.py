"""
Mutation Diff and Revert for dagview

This module computes the displayable change between two adjacent versions
of the mutation log and the inverse ("undo") of mutations and batches. It
also narrows batches and the log down to the mutations relevant to a set of
nodes or a token.

Inversion Rules:
    ADD_NODE n           <-> DELETE_NODE n
    ADD_EDGE a b         <-> DELETE_EDGE a b
    CHANGE_TOKEN n +tks  <-> CHANGE_TOKEN n -tks   (token order preserved)

    A batch is inverted by inverting each mutation and reversing the order.

Limitation:
    Inverting DELETE_NODE gives back the node but not its edges or tokens;
    the navigator therefore never replays inverses onto a graph and rebuilds
    from the original instead.
"""

from collections.abc import Iterable, Sequence
from typing import Optional

from dagview.errors import MutationError
from dagview.models import (
    MultiMutation,
    Mutation,
    MutationType,
    TokenMutation,
    TokenMutationType,
)

_INVERSE_TYPES = {
    MutationType.ADD_NODE: MutationType.DELETE_NODE,
    MutationType.DELETE_NODE: MutationType.ADD_NODE,
    MutationType.ADD_EDGE: MutationType.DELETE_EDGE,
    MutationType.DELETE_EDGE: MutationType.ADD_EDGE,
}

_INVERSE_TOKEN_TYPES = {
    TokenMutationType.ADD_TOKEN: TokenMutationType.DELETE_TOKEN,
    TokenMutationType.DELETE_TOKEN: TokenMutationType.ADD_TOKEN,
}


def revert_token_mutation(token_mutation: TokenMutation) -> TokenMutation:
    """Return the token edit undoing ``token_mutation`` (same tokens, same order)."""
    inverse = _INVERSE_TOKEN_TYPES.get(token_mutation.type)
    if inverse is None:
        raise ValueError(f"Cannot revert token mutation of type {token_mutation.type!r}")
    return TokenMutation(type=inverse, tokens=token_mutation.tokens)


def revert_mutation(mutation: Mutation) -> Mutation:
    """
    Return the mutation undoing ``mutation``.

    Raises:
        MutationError: If the mutation kind has no inverse
    """
    if mutation.type == MutationType.CHANGE_TOKEN:
        if mutation.token_change is None:
            raise MutationError(
                f"Cannot revert CHANGE_TOKEN without a token change on '{mutation.start_node}'",
                mutation=mutation,
            )
        try:
            token_change = revert_token_mutation(mutation.token_change)
        except ValueError as e:
            raise MutationError(str(e), mutation=mutation) from e
        return Mutation(
            type=MutationType.CHANGE_TOKEN,
            start_node=mutation.start_node,
            end_node=mutation.end_node,
            token_change=token_change,
        )

    inverse = _INVERSE_TYPES.get(mutation.type)
    if inverse is None:
        raise MutationError(
            f"Cannot revert mutation of type {mutation.type!r}", mutation=mutation
        )
    return Mutation(type=inverse, start_node=mutation.start_node, end_node=mutation.end_node)


def revert_multi_mutation(multi: MultiMutation) -> MultiMutation:
    """Invert every mutation of the batch and reverse their order, keeping the reason."""
    return MultiMutation(
        mutations=tuple(revert_mutation(m) for m in reversed(multi.mutations)),
        reason=multi.reason,
    )


def multi_mutation_at(log: Sequence[MultiMutation], index: int) -> Optional[MultiMutation]:
    """Return ``log[index]``, or None when the index is out of range."""
    if index < 0 or index >= len(log):
        return None
    return log[index]


def diff_between(
    log: Sequence[MultiMutation],
    curr_index: int,
    next_index: int,
) -> Optional[MultiMutation]:
    """
    Compute the batch separating two adjacent positions of the log.

    Position ``i`` means "``i`` log entries applied", so valid positions run
    from 0 to ``len(log)``.

    Args:
        log: The mutation log
        curr_index: Position being left
        next_index: Position being entered

    Returns:
        ``log[curr_index]`` when moving one step forward, the inverse of
        ``log[next_index]`` when moving one step back, None otherwise
    """
    size = len(log)
    if not (0 <= curr_index <= size and 0 <= next_index <= size):
        return None

    if next_index == curr_index + 1:
        return log[curr_index]
    if next_index == curr_index - 1:
        return revert_multi_mutation(log[next_index])
    return None


def _is_relevant(mutation: Mutation, names: set[str]) -> bool:
    if mutation.is_edge_mutation:
        return mutation.start_node in names and mutation.end_node in names
    return mutation.start_node in names


def filter_multi_mutation_by_nodes(
    multi: Optional[MultiMutation],
    names: Iterable[str],
) -> Optional[MultiMutation]:
    """
    Keep only the mutations of a batch relevant to the given nodes.

    Node and token mutations are kept when their node is in ``names``; edge
    mutations when both endpoints are. An empty ``names`` keeps everything.

    Returns:
        The filtered batch with the same reason, or None if ``multi`` is None
    """
    if multi is None:
        return None

    names = set(names)
    if not names:
        return multi

    return MultiMutation(
        mutations=tuple(m for m in multi.mutations if _is_relevant(m, names)),
        reason=multi.reason,
    )


def mutation_indices_of_node(
    name: Optional[str],
    log: Sequence[MultiMutation],
) -> list[int]:
    """Sorted indices of the log entries with a mutation naming ``name``."""
    if not name:
        return []
    return [i for i, multi in enumerate(log) if multi.touches(name)]


def mutation_indices_of_token(
    token: Optional[str],
    log: Sequence[MultiMutation],
) -> set[int]:
    """Indices of the log entries adding or deleting ``token`` on some node."""
    if not token:
        return set()

    indices = set()
    for i, multi in enumerate(log):
        for mutation in multi.mutations:
            change = mutation.token_change
            if mutation.type == MutationType.CHANGE_TOKEN and change and token in change.tokens:
                indices.add(i)
                break
    return indices


def find_relevant_mutations(
    names: Iterable[str],
    log: Sequence[MultiMutation],
    cache: Optional[dict[str, list[int]]] = None,
) -> set[int]:
    """
    Union of the log indices relevant to each of ``names``.

    Blank names are ignored. Per-name results are memoised in ``cache`` when
    one is given.
    """
    if cache is None:
        cache = {}

    indices: set[int] = set()
    for name in names:
        if not name:
            continue
        if name not in cache:
            cache[name] = mutation_indices_of_node(name, log)
        indices.update(cache[name])
    return indices
