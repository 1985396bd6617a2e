"""
Core Data Models for dagview

This module defines the canonical data structures used throughout the system:
- GraphNode: A named entity of the graph with its tokens and metadata
- Mutation / TokenMutation: One atomic change to a graph
- MultiMutation: An ordered batch of mutations forming one version step
- NodeRecord: A raw input record consumed by the graph builder

These models are designed to be:
- Immutable (frozen dataclasses, tuples instead of lists)
- Comparable, so logs and diffs can be checked for equality
- Clear in their semantic meaning
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional


class MutationType(Enum):
    """
    Kinds of atomic graph mutations.

    Node mutations use ``start_node`` only. Edge mutations describe the edge
    ``start_node -> end_node``. CHANGE_TOKEN edits the token list of
    ``start_node`` according to its ``token_change``.
    """

    ADD_NODE = "ADD_NODE"
    DELETE_NODE = "DELETE_NODE"
    ADD_EDGE = "ADD_EDGE"
    DELETE_EDGE = "DELETE_EDGE"
    CHANGE_TOKEN = "CHANGE_TOKEN"


class TokenMutationType(Enum):
    """Kinds of token list edits carried by a CHANGE_TOKEN mutation."""

    ADD_TOKEN = "ADD_TOKEN"
    DELETE_TOKEN = "DELETE_TOKEN"


EDGE_MUTATIONS = frozenset({MutationType.ADD_EDGE, MutationType.DELETE_EDGE})


@dataclass(frozen=True, eq=False)
class GraphNode:
    """
    Represents one entity of the graph (a module, a file, an AST symbol...).

    A GraphNode carries no dependency information; that lives in the edges
    of the graph holding it.

    Attributes:
        name: Unique key of the node within a graph
        tokens: Ordered tokens (files, AST tokens etc.) attached to the node
        metadata: Opaque structured data, for example a source location
            (a read-only mapping)

    Invariants:
        - Equality and hashing use ``name`` only, so two values with the same
          name are the same graph member regardless of their tokens
        - Values are never changed in place; use ``with_tokens``
    """

    name: str
    tokens: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Normalize tokens into a tuple and metadata into a read-only copy."""
        if not isinstance(self.tokens, tuple):
            object.__setattr__(self, "tokens", tuple(self.tokens))
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphNode):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def has_token(self, token: str) -> bool:
        """Check if this node holds the given token."""
        return token in self.tokens

    def with_tokens(self, tokens) -> "GraphNode":
        """Return a new GraphNode with a replaced token list (immutable update)."""
        return GraphNode(name=self.name, tokens=tuple(tokens), metadata=self.metadata)


@dataclass(frozen=True)
class TokenMutation:
    """
    A token list edit.

    Attributes:
        type: Whether the tokens are added or deleted
        tokens: Tokens to add or delete, in order
    """

    type: TokenMutationType
    tokens: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.tokens, tuple):
            object.__setattr__(self, "tokens", tuple(self.tokens))


@dataclass(frozen=True)
class Mutation:
    """
    A single atomic change to a graph.

    Attributes:
        type: The mutation kind
        start_node: The node acted on, or the source of an edge
        end_node: The target of an edge (empty for node mutations)
        token_change: The token edit of a CHANGE_TOKEN mutation

    Usage:
        Mutation.add_edge("A", "B")
        Mutation.add_tokens("A", ["parser.py"])
    """

    type: MutationType
    start_node: str
    end_node: str = ""
    token_change: Optional[TokenMutation] = None

    @classmethod
    def add_node(cls, name: str) -> "Mutation":
        return cls(MutationType.ADD_NODE, name)

    @classmethod
    def delete_node(cls, name: str) -> "Mutation":
        return cls(MutationType.DELETE_NODE, name)

    @classmethod
    def add_edge(cls, start: str, end: str) -> "Mutation":
        return cls(MutationType.ADD_EDGE, start, end)

    @classmethod
    def delete_edge(cls, start: str, end: str) -> "Mutation":
        return cls(MutationType.DELETE_EDGE, start, end)

    @classmethod
    def add_tokens(cls, name: str, tokens) -> "Mutation":
        return cls(
            MutationType.CHANGE_TOKEN,
            name,
            token_change=TokenMutation(TokenMutationType.ADD_TOKEN, tuple(tokens)),
        )

    @classmethod
    def delete_tokens(cls, name: str, tokens) -> "Mutation":
        return cls(
            MutationType.CHANGE_TOKEN,
            name,
            token_change=TokenMutation(TokenMutationType.DELETE_TOKEN, tuple(tokens)),
        )

    @property
    def is_edge_mutation(self) -> bool:
        """True for ADD_EDGE and DELETE_EDGE."""
        return self.type in EDGE_MUTATIONS

    def touches(self, name: str) -> bool:
        """Check whether ``name`` is one of the nodes this mutation names."""
        return name == self.start_node or (bool(self.end_node) and name == self.end_node)

    def describe(self) -> str:
        """Short human readable form, e.g. ``ADD_EDGE A -> B``."""
        if self.is_edge_mutation:
            return f"{self.type.value} {self.start_node} -> {self.end_node}"
        if self.type == MutationType.CHANGE_TOKEN and self.token_change is not None:
            tokens = ", ".join(self.token_change.tokens)
            return f"{self.token_change.type.value} {self.start_node} [{tokens}]"
        return f"{self.type.value} {self.start_node}"


@dataclass(frozen=True)
class MultiMutation:
    """
    An ordered batch of mutations representing one version step.

    Attributes:
        mutations: The mutations, applied in order
        reason: Human-readable reason for the change
    """

    mutations: tuple[Mutation, ...] = ()
    reason: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.mutations, tuple):
            object.__setattr__(self, "mutations", tuple(self.mutations))

    def __len__(self) -> int:
        return len(self.mutations)

    def __iter__(self):
        return iter(self.mutations)

    def touches(self, name: str) -> bool:
        """Check whether any mutation of the batch names ``name``."""
        return any(mutation.touches(name) for mutation in self.mutations)


# An ordered version log. Index 0 is the first step away from the original graph.
MutationList = list[MultiMutation]


@dataclass
class NodeRecord:
    """
    A raw input record describing one node of the initial graph.

    Attributes:
        name: Node name
        children: Names of the nodes this node has edges to
        tokens: Initial token list
        metadata: Opaque structured metadata
    """

    name: str
    children: list[str] = field(default_factory=list)
    tokens: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_graph_node(self) -> GraphNode:
        """Convert into a GraphNode, copying the token list and metadata."""
        return GraphNode(
            name=self.name,
            tokens=tuple(self.tokens),
            metadata=dict(self.metadata),
        )
