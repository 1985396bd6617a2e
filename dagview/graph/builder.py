"""
Graph Builder for dagview

This module constructs and manages the NetworkX-based DAG holding the
graph entities, together with the bookkeeping the rest of the engine relies
on: a name index, the root set and a token index.

Design Decisions:
    - Uses NetworkX DiGraph keyed by node name; edges point parent -> child
    - Stores GraphNode values as node attributes and in a name map
    - Roots and token index are maintained incrementally, never recomputed
    - Copies share GraphNode values (they are immutable) but own containers

Graph Properties:
    - Directed and acyclic
    - roots == names of nodes with in-degree 0
    - token_index[t] == names of nodes holding token t (no empty entries)
    - version_number counts applied log entries, -1 for none
"""

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Iterator, Optional, Union

import networkx as nx

from dagview.config import DEFAULT_CONFIG, EngineConfig
from dagview.errors import StructuralError
from dagview.models import GraphNode, NodeRecord

logger = logging.getLogger(__name__)

NODE_ATTR = "node"

RecordLike = Union[NodeRecord, Mapping[str, Any]]


class DataGraph:
    """
    The versioned graph state.

    Wraps a NetworkX DiGraph to provide a clean interface for:
    - Adding, replacing and removing nodes and edges
    - Keeping roots and the token index consistent with the graph
    - Taking structural copies for point-in-time snapshots

    Attributes:
        graph: The underlying NetworkX DiGraph (nodes keyed by name)
        nodes_map: Mapping from node names to GraphNode values
        roots: Names of nodes without incoming edges
        token_index: Mapping from token to the names of nodes holding it
        version_number: Number of log entries applied, -1 for none

    Usage:
        data_graph = build_graph_from_records(records)
        data_graph.roots
        data_graph.token_index["parser.py"]
    """

    def __init__(self, version_number: int = -1) -> None:
        """Initialize an empty data graph."""
        self._graph: nx.DiGraph = nx.DiGraph()
        self._nodes: dict[str, GraphNode] = {}
        self._roots: set[str] = set()
        self._token_index: dict[str, set[str]] = {}
        self.version_number = version_number

    @property
    def graph(self) -> nx.DiGraph:
        """Access the underlying NetworkX graph."""
        return self._graph

    @property
    def nodes_map(self) -> dict[str, GraphNode]:
        """Access the name -> GraphNode map."""
        return self._nodes

    @property
    def roots(self) -> set[str]:
        """Access the set of root names."""
        return self._roots

    @property
    def token_index(self) -> dict[str, set[str]]:
        """Access the token -> node names index."""
        return self._token_index

    @property
    def node_count(self) -> int:
        """Return the number of nodes in the graph."""
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        """Return the number of edges in the graph."""
        return self._graph.number_of_edges()

    def __repr__(self) -> str:
        return (
            f"DataGraph(nodes={self.node_count}, edges={self.edge_count}, "
            f"roots={len(self._roots)}, version={self.version_number})"
        )

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def has_node(self, name: str) -> bool:
        return name in self._nodes

    def get_node(self, name: str) -> Optional[GraphNode]:
        """
        Retrieve a GraphNode by its name.

        Args:
            name: The unique name of the node

        Returns:
            The GraphNode if found, None otherwise
        """
        return self._nodes.get(name)

    def nodes(self) -> Iterator[GraphNode]:
        """Iterate over all GraphNodes (in insertion order)."""
        yield from self._nodes.values()

    def add_node(self, node: GraphNode, as_root: bool = True) -> None:
        """
        Add a GraphNode to the graph and index its tokens.

        Args:
            node: The node to add; must not already be present
            as_root: Whether to record the node as a root
        """
        self._graph.add_node(node.name, **{NODE_ATTR: node})
        self._nodes[node.name] = node
        if as_root:
            self._roots.add(node.name)
        self._index_tokens(node.name, node.tokens)

    def replace_node(self, node: GraphNode) -> None:
        """
        Swap the stored value of an existing node, keeping its edges.

        The token index is updated for the tokens that differ between the old
        and the new value.
        """
        old = self._nodes[node.name]
        removed = [t for t in old.tokens if t not in node.tokens]
        added = [t for t in node.tokens if t not in old.tokens]
        self._graph.nodes[node.name][NODE_ATTR] = node
        self._nodes[node.name] = node
        self._unindex_tokens(node.name, removed)
        self._index_tokens(node.name, added)

    def remove_node(self, name: str) -> None:
        """
        Remove a node, all its incident edges and its index entries.

        Successors left without parents become roots.
        """
        node = self._nodes[name]
        for child in list(self._graph.successors(name)):
            if self._graph.in_degree(child) == 1:
                self._roots.add(child)
        self._roots.discard(name)
        self._graph.remove_node(name)
        del self._nodes[name]
        self._unindex_tokens(name, node.tokens)

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def has_edge(self, start: str, end: str) -> bool:
        return self._graph.has_edge(start, end)

    def edges(self) -> Iterator[tuple[str, str]]:
        """Iterate over all edges as (parent, child) name pairs."""
        yield from self._graph.edges()

    def add_edge(self, start: str, end: str) -> None:
        """Add the edge start -> end; ``end`` stops being a root."""
        self._roots.discard(end)
        self._graph.add_edge(start, end)

    def remove_edge(self, start: str, end: str) -> None:
        """Remove the edge start -> end if present; orphaned ``end`` becomes a root."""
        if not self._graph.has_edge(start, end):
            return
        if self._graph.in_degree(end) == 1:
            self._roots.add(end)
        self._graph.remove_edge(start, end)

    def successors(self, name: str) -> Iterator[str]:
        """Names of the children of ``name``."""
        if name in self._graph:
            yield from self._graph.successors(name)

    def predecessors(self, name: str) -> Iterator[str]:
        """Names of the parents of ``name``."""
        if name in self._graph:
            yield from self._graph.predecessors(name)

    def in_degree(self, name: str) -> int:
        return self._graph.in_degree(name)

    # ------------------------------------------------------------------
    # Token index
    # ------------------------------------------------------------------

    def holders_of(self, token: str) -> set[str]:
        """Names of the nodes currently holding ``token`` (a new set)."""
        return set(self._token_index.get(token, ()))

    def _index_tokens(self, name: str, tokens) -> None:
        for token in tokens:
            self._token_index.setdefault(token, set()).add(name)

    def _unindex_tokens(self, name: str, tokens) -> None:
        for token in tokens:
            holders = self._token_index.get(token)
            if holders is None:
                continue
            holders.discard(name)
            if not holders:
                del self._token_index[token]

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def copy(self) -> "DataGraph":
        """
        Return a structural copy of this data graph.

        The graph, name map, root set and token index are new containers;
        the GraphNode values are shared since they are immutable.
        """
        duplicate = DataGraph(version_number=self.version_number)
        duplicate._graph = self._graph.copy()
        duplicate._nodes = dict(self._nodes)
        duplicate._roots = set(self._roots)
        duplicate._token_index = {
            token: set(names) for token, names in self._token_index.items()
        }
        return duplicate

    def with_version(self, version_number: int) -> "DataGraph":
        """Set the version number and return self (for chaining)."""
        self.version_number = version_number
        return self

    def check_invariants(self) -> None:
        """
        Verify the structural invariants of the data graph.

        Raises:
            StructuralError: describing the first violated invariant
        """
        if not nx.is_directed_acyclic_graph(self._graph):
            cycle = [u for u, _ in nx.find_cycle(self._graph)]
            raise StructuralError(f"Graph contains a cycle: {' -> '.join(cycle)}", cycle)

        if set(self._nodes) != set(self._graph.nodes):
            stray = set(self._nodes) ^ set(self._graph.nodes)
            raise StructuralError(
                f"Node map and graph disagree on {sorted(stray)}", sorted(stray)
            )

        expected_roots = {n for n, degree in self._graph.in_degree() if degree == 0}
        if expected_roots != self._roots:
            stale = expected_roots ^ self._roots
            raise StructuralError(f"Stale root set for {sorted(stale)}", sorted(stale))

        expected_index: dict[str, set[str]] = {}
        for node in self._nodes.values():
            for token in node.tokens:
                expected_index.setdefault(token, set()).add(node.name)
        if expected_index != self._token_index:
            tokens = set(expected_index) ^ set(self._token_index)
            tokens |= {
                t for t in expected_index.keys() & self._token_index.keys()
                if expected_index[t] != self._token_index[t]
            }
            raise StructuralError(f"Stale token index for tokens {sorted(tokens)}")


def _as_record(name: str, record: Optional[RecordLike]) -> NodeRecord:
    """
    Normalize a record (NodeRecord, mapping or missing) into a NodeRecord.

    The mapping key always names the node; a differing ``name`` field in the
    record is ignored.
    """
    if record is None:
        return NodeRecord(name=name)
    declared = record.name if isinstance(record, NodeRecord) else record.get("name", name)
    if declared != name:
        logger.warning("Record keyed '%s' names itself '%s'; using the key", name, declared)
    if isinstance(record, NodeRecord):
        return record if declared == name else replace(record, name=name)
    return NodeRecord(
        name=name,
        children=list(record.get("children", [])),
        tokens=list(record.get("tokens", [])),
        metadata=dict(record.get("metadata", {})),
    )


def graph_from_records(
    data_graph: DataGraph,
    records: Mapping[str, RecordLike],
) -> bool:
    """
    Populate an empty DataGraph from input records, in record order.

    Every record's node is added (tentatively as a root) the first time it is
    seen. Every child loses its root status, is added if new, and gets an
    edge from the current node. If the reverse edge child -> current already
    exists the input is not a DAG.

    This check only catches two-node cycles formed with already processed
    edges; ``build_graph_from_records`` adds a full check on top.

    Args:
        data_graph: An empty DataGraph to fill in place
        records: Mapping from node name to its record

    Returns:
        False if a cycle was detected (the graph is then partial and must be
        discarded), True otherwise
    """
    for name, raw in records.items():
        record = _as_record(name, raw)

        if not data_graph.has_node(name):
            data_graph.add_node(record.to_graph_node(), as_root=True)

        for child in record.children:
            # The child has an in-edge now, so it can no longer be a root
            data_graph.roots.discard(child)
            if not data_graph.has_node(child):
                child_record = _as_record(child, records.get(child))
                data_graph.add_node(child_record.to_graph_node(), as_root=False)
            elif data_graph.has_edge(child, name):
                logger.debug("Back edge %s -> %s found while building", child, name)
                return False
            data_graph.graph.add_edge(name, child)

    return True


def build_graph_from_records(
    records: Mapping[str, RecordLike],
    config: EngineConfig = DEFAULT_CONFIG,
) -> DataGraph:
    """
    Build a DataGraph from a mapping of named input records.

    Args:
        records: Mapping from node name to a NodeRecord or a dict with
            ``children``, ``tokens`` and ``metadata`` keys
        config: Engine policy; ``strict_dag`` enables the full cycle check

    Returns:
        The populated DataGraph with version number -1

    Raises:
        StructuralError: If the records do not describe a DAG

    Example:
        >>> graph = build_graph_from_records({"A": {"children": ["B"]}, "B": {}})
        >>> sorted(graph.roots)
        ['A']
    """
    data_graph = DataGraph()

    if not graph_from_records(data_graph, records):
        raise StructuralError("Input graph is not a DAG: two-node cycle detected")

    if config.strict_dag and not nx.is_directed_acyclic_graph(data_graph.graph):
        cycle = [u for u, _ in nx.find_cycle(data_graph.graph)]
        raise StructuralError(
            f"Input graph is not a DAG: cycle {' -> '.join(cycle)}", cycle
        )

    logger.debug(
        "Built graph with %d nodes, %d edges, %d roots",
        data_graph.node_count,
        data_graph.edge_count,
        len(data_graph.roots),
    )
    return data_graph
