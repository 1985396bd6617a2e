"""
Mutation Applicator for dagview

Applies atomic mutations to a live DataGraph in place, keeping the root set
and the token index consistent with the graph.

Rules:
    ADD_NODE:     new node with no tokens, recorded as a root. A duplicate
                  name is an error in strict mode and a logged no-op otherwise.
    ADD_EDGE:     both endpoints must exist and the edge must not close a
                  cycle. The target stops being a root. Idempotent.
    DELETE_NODE:  the node must exist. Children whose only parent it was
                  become roots; incident edges and index entries go with it.
    DELETE_EDGE:  both endpoints must exist. A target losing its only parent
                  becomes a root. Deleting an absent edge is a no-op.
    CHANGE_TOKEN: the node must exist. Tokens already present are not added
                  again and tokens not present are not deleted; the returned
                  effective mutation only lists the tokens really changed.

Every function either fully applies one mutation or raises MutationError
before touching the graph.
"""

import logging

import networkx as nx

from dagview.errors import DuplicateNodeError, MutationError
from dagview.graph.builder import DataGraph
from dagview.models import (
    GraphNode,
    MultiMutation,
    Mutation,
    MutationType,
    TokenMutation,
    TokenMutationType,
)

logger = logging.getLogger(__name__)


def apply_mutation(
    data_graph: DataGraph,
    mutation: Mutation,
    *,
    strict: bool = True,
) -> Mutation:
    """
    Apply a single mutation to the graph in place.

    Args:
        data_graph: The graph to mutate
        mutation: The mutation to apply
        strict: When False, adding an existing node is logged and skipped
            instead of raising DuplicateNodeError

    Returns:
        The effective mutation. It equals ``mutation`` except for token
        changes, where no-op tokens are dropped from the token list.

    Raises:
        MutationError: If the mutation cannot be applied
    """
    handler = _HANDLERS.get(mutation.type)
    if handler is None:
        raise MutationError(
            f"Unrecognized mutation type {mutation.type!r} for node '{mutation.start_node}'",
            mutation=mutation,
        )
    return handler(data_graph, mutation, strict)


def apply_multi_mutation(
    data_graph: DataGraph,
    multi: MultiMutation,
    *,
    strict: bool = True,
) -> MultiMutation:
    """
    Apply every mutation of a batch, in order.

    A failing mutation raises MutationError tagged with its position. The
    mutations before it stay applied; reverting them is the caller's job
    (the navigator always works on a throwaway copy).

    Returns:
        The effective batch, with the same reason
    """
    effective = []
    for position, mutation in enumerate(multi.mutations):
        try:
            effective.append(apply_mutation(data_graph, mutation, strict=strict))
        except MutationError as e:
            raise e.located(position=position) from e
    return MultiMutation(mutations=tuple(effective), reason=multi.reason)


def _require_node(data_graph: DataGraph, name: str, mutation: Mutation) -> GraphNode:
    node = data_graph.get_node(name)
    if node is None:
        raise MutationError(
            f"{mutation.type.value}: node '{name}' does not exist",
            mutation=mutation,
        )
    return node


def _add_node(data_graph: DataGraph, mutation: Mutation, strict: bool) -> Mutation:
    name = mutation.start_node
    if data_graph.has_node(name):
        if strict:
            raise DuplicateNodeError(
                f"ADD_NODE: node '{name}' already exists", mutation=mutation
            )
        logger.warning("Skipping ADD_NODE of existing node '%s'", name)
        return mutation

    data_graph.add_node(GraphNode(name=name), as_root=True)
    return mutation


def _add_edge(data_graph: DataGraph, mutation: Mutation, strict: bool) -> Mutation:
    start, end = mutation.start_node, mutation.end_node
    _require_node(data_graph, start, mutation)
    _require_node(data_graph, end, mutation)

    if data_graph.has_edge(start, end):
        return mutation

    if start == end or nx.has_path(data_graph.graph, end, start):
        raise MutationError(
            f"ADD_EDGE: edge '{start}' -> '{end}' would create a cycle",
            mutation=mutation,
        )

    data_graph.add_edge(start, end)
    return mutation


def _delete_node(data_graph: DataGraph, mutation: Mutation, strict: bool) -> Mutation:
    _require_node(data_graph, mutation.start_node, mutation)
    data_graph.remove_node(mutation.start_node)
    return mutation


def _delete_edge(data_graph: DataGraph, mutation: Mutation, strict: bool) -> Mutation:
    _require_node(data_graph, mutation.start_node, mutation)
    _require_node(data_graph, mutation.end_node, mutation)
    data_graph.remove_edge(mutation.start_node, mutation.end_node)
    return mutation


def _change_token(data_graph: DataGraph, mutation: Mutation, strict: bool) -> Mutation:
    node = _require_node(data_graph, mutation.start_node, mutation)
    token_change = mutation.token_change

    if token_change is None:
        raise MutationError(
            f"CHANGE_TOKEN: no token change given for node '{node.name}'",
            mutation=mutation,
        )

    if token_change.type == TokenMutationType.ADD_TOKEN:
        changed = []
        for token in token_change.tokens:
            if token not in node.tokens and token not in changed:
                changed.append(token)
        new_tokens = node.tokens + tuple(changed)
    elif token_change.type == TokenMutationType.DELETE_TOKEN:
        changed = []
        for token in token_change.tokens:
            if token in node.tokens and token not in changed:
                changed.append(token)
        new_tokens = tuple(t for t in node.tokens if t not in changed)
    else:
        raise MutationError(
            f"CHANGE_TOKEN: unrecognized token mutation {token_change.type!r} "
            f"for node '{node.name}'",
            mutation=mutation,
        )

    data_graph.replace_node(node.with_tokens(new_tokens))

    if tuple(changed) == token_change.tokens:
        return mutation
    return Mutation(
        type=mutation.type,
        start_node=mutation.start_node,
        end_node=mutation.end_node,
        token_change=TokenMutation(token_change.type, tuple(changed)),
    )


_HANDLERS = {
    MutationType.ADD_NODE: _add_node,
    MutationType.ADD_EDGE: _add_edge,
    MutationType.DELETE_NODE: _delete_node,
    MutationType.DELETE_EDGE: _delete_edge,
    MutationType.CHANGE_TOKEN: _change_token,
}
