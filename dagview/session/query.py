"""
Query Session for dagview

A GraphSession owns the state one client walks through: the original graph,
the most recently requested graph and the mutation log. Each query moves to
a version, extracts a bounded view and reports what changed in the step just
taken.

Query Flow:
    1. Validate depth and version (nothing changes on rejection)
    2. Collect queried nodes: the given names plus holders of the token
       before and after the move
    3. Navigate with go_to and diff the step with diff_between
    4. Without filters: depth view from the roots, every log index, full diff
       With filters:    neighborhood of the queried nodes, the log indices
                        touching on-screen or queried nodes or the token, and
                        the diff narrowed to those nodes
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

import networkx as nx

from dagview.config import DEFAULT_CONFIG, EngineConfig
from dagview.diff.revert import (
    diff_between,
    filter_multi_mutation_by_nodes,
    find_relevant_mutations,
    mutation_indices_of_token,
)
from dagview.errors import InvalidRequestError
from dagview.graph.builder import NODE_ATTR, DataGraph
from dagview.loader.reader import multi_mutation_to_dict
from dagview.models import MultiMutation, MutationList
from dagview.navigation.navigator import go_to
from dagview.views.extractor import max_depth_view, neighborhood_view, node_names_in

logger = logging.getLogger(__name__)

MESSAGE_NOT_FOUND = "The searched node/token does not exist anywhere in this graph or in mutations"
MESSAGE_MUTATED_ELSEWHERE = (
    "The searched node/token does not exist in this graph, so nothing is shown. "
    "However, it is mutated at some other step."
)
MESSAGE_NOT_MUTATED_HERE = (
    "The searched node/token exists in this graph. However, it is not mutated in this graph."
)
MESSAGE_HIDDEN_BY_RADIUS = (
    "The desired set of nodes is mutated in this graph but other parameters "
    "(for eg. radius) limit the display of the mutations."
)


@dataclass
class ViewPayload:
    """
    Rendering payload for one query.

    Attributes:
        view: The extracted subgraph (NetworkX DiGraph)
        diff: Mutations of the step just taken, None if there was no step
        relevant_indices: Sorted log indices relevant to the query
        total_versions: Length of the mutation log
        version: Version number of the graph shown
        message: Informational notice about the query, if any
    """

    view: nx.DiGraph
    diff: Optional[MultiMutation]
    relevant_indices: list[int]
    total_versions: int
    version: int
    message: Optional[str] = None

    @property
    def nodes(self) -> list[str]:
        return sorted(self.view.nodes)

    @property
    def edges(self) -> list[tuple[str, str]]:
        return sorted(self.view.edges)

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-safe rendering of the payload."""
        nodes = []
        for name in self.nodes:
            node = self.view.nodes[name].get(NODE_ATTR)
            nodes.append(
                {
                    "name": name,
                    "tokens": list(node.tokens) if node else [],
                    "metadata": dict(node.metadata) if node else {},
                }
            )
        return {
            "nodes": nodes,
            "edges": [list(edge) for edge in self.edges],
            "mutationDiff": multi_mutation_to_dict(self.diff) if self.diff is not None else None,
            "reason": self.diff.reason if self.diff is not None else "",
            "relevantIndices": list(self.relevant_indices),
            "totalMutations": self.total_versions,
            "version": self.version,
            "message": self.message,
        }


@dataclass
class GraphSession:
    """
    Explicit per-client navigation state.

    Attributes:
        original: The graph before any log entry (never modified)
        log: The mutation log (trimmed token changes are written back)
        config: Engine policy
        current: The most recently requested graph
    """

    original: DataGraph
    log: MutationList
    config: EngineConfig = DEFAULT_CONFIG
    current: DataGraph = field(init=False)
    _node_indices: dict[str, list[int]] = field(init=False, default_factory=dict)
    _token_indices: dict[str, set[int]] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        self.current = self.original.copy()

    @property
    def total_versions(self) -> int:
        return len(self.log)

    def token_indices(self, token: str) -> set[int]:
        """Log indices where ``token`` changes (memoised)."""
        if token not in self._token_indices:
            self._token_indices[token] = mutation_indices_of_token(token, self.log)
        return self._token_indices[token]

    def relevant_indices(self, names: Iterable[str]) -> set[int]:
        """Log indices touching any of ``names`` (memoised per name)."""
        return find_relevant_mutations(names, self.log, self._node_indices)

    def query(
        self,
        depth: int,
        version: int,
        node_names: Iterable[str] = (),
        token: str = "",
    ) -> ViewPayload:
        """
        Move to ``version`` and extract the view for the query.

        Args:
            depth: Radius of the view (from the roots, or from the queried nodes)
            version: Target version, clamped to the end of the log
            node_names: Nodes to center the view on
            token: Center the view on the nodes holding this token

        Returns:
            The payload describing the new view

        Raises:
            InvalidRequestError: For a negative depth or a version below -1
            MutationError: If the log cannot be replayed
        """
        if depth < 0:
            raise InvalidRequestError(f"Depth must be >= 0, got {depth}")
        if version < -1:
            raise InvalidRequestError(f"Version must be >= -1, got {version}")

        names = [name.strip() for name in node_names if name and name.strip()]
        token = (token or "").strip()

        queried: set[str] = set(names)
        queried_next: set[str] = set(names)
        if token:
            queried |= self.current.holders_of(token)

        previous = self.current.version_number
        self.current = go_to(self.original, self.current, version, self.log, self.config)
        reached = self.current.version_number
        diff = diff_between(self.log, previous + 1, reached + 1)
        logger.debug("Moved from version %d to %d", previous, reached)

        if token:
            holders = self.current.holders_of(token)
            queried |= holders
            queried_next |= holders

        shortest = self.config.shortest_path_depth

        if not names and not token:
            view = max_depth_view(self.current, depth, shortest_paths=shortest)
            if _is_whole(view, self.current):
                relevant = list(range(len(self.log)))
            else:
                on_screen = node_names_in(view)
                relevant = sorted(self.relevant_indices(on_screen))
                diff = filter_multi_mutation_by_nodes(diff, on_screen)
            return ViewPayload(
                view=view,
                diff=diff,
                relevant_indices=relevant,
                total_versions=len(self.log),
                version=reached,
            )

        if queried:
            view = neighborhood_view(self.current, queried, depth, shortest_paths=shortest)
        else:
            view = nx.DiGraph()

        if queried_next == queried:
            view_next = view
        elif queried_next:
            view_next = neighborhood_view(
                self.current, queried_next, depth, shortest_paths=shortest
            )
        else:
            view_next = nx.DiGraph()

        indices = self.relevant_indices(node_names_in(view_next) | set(names))
        indices |= self.token_indices(token)
        relevant = sorted(indices)

        filtered_diff = filter_multi_mutation_by_nodes(diff, node_names_in(view) | queried)

        return ViewPayload(
            view=view,
            diff=filtered_diff,
            relevant_indices=relevant,
            total_versions=len(self.log),
            version=reached,
            message=_notice(view, relevant, filtered_diff, reached),
        )


def _is_whole(view: nx.DiGraph, data_graph: DataGraph) -> bool:
    return (
        view.number_of_nodes() == data_graph.node_count
        and view.number_of_edges() == data_graph.edge_count
    )


def _notice(
    view: nx.DiGraph,
    relevant: list[int],
    diff: Optional[MultiMutation],
    version: int,
) -> Optional[str]:
    """
    Pick the informational message for a filtered query, if any.

    The conditions can overlap; the later ones in this list take precedence:
    not found, mutated elsewhere, not mutated here, hidden by radius.
    """
    empty_view = view.number_of_nodes() == 0
    empty_diff = diff is None or len(diff) == 0

    if version in relevant and diff is not None and len(diff) == 0:
        return MESSAGE_HIDDEN_BY_RADIUS
    if not empty_view and version not in relevant:
        return MESSAGE_NOT_MUTATED_HERE
    if empty_view and relevant and empty_diff:
        return MESSAGE_MUTATED_ELSEWHERE
    if empty_view and not relevant:
        return MESSAGE_NOT_FOUND
    return None
