"""
Depth-Bounded View Extraction for dagview

Produces induced subgraphs of a DataGraph for display:

    max_depth_view:     nodes within ``max_depth`` steps of a root
    reachable_view:     nodes within ``radius`` undirected hops of one node
    neighborhood_view:  the same from several nodes at once

All views are new NetworkX DiGraphs (node attribute ``node`` holds the
GraphNode); the source graph is never modified.

Depth Semantics:
    The default root walk is depth-first and a node keeps the depth budget of
    the first path that reaches it, which is not always its shortest path.
    ``shortest_paths=True`` switches to a breadth-first walk from all roots
    at once, giving every node its minimum depth.
"""

from collections import deque
from collections.abc import Iterable

import networkx as nx

from dagview.graph.builder import DataGraph


def _induced(data_graph: DataGraph, names: Iterable[str]) -> nx.DiGraph:
    """Copy of the subgraph induced by ``names``."""
    return data_graph.graph.subgraph(names).copy()


def node_names_in(graph: nx.DiGraph) -> set[str]:
    """Names of the nodes of an extracted view."""
    return set(graph.nodes)


def _ordered_roots(data_graph: DataGraph) -> list[str]:
    """Roots in graph insertion order, so walks are deterministic."""
    return [name for name in data_graph.graph.nodes if name in data_graph.roots]


def _dfs_from_roots(data_graph: DataGraph, max_depth: int) -> set[str]:
    graph = data_graph.graph
    visited: set[str] = set()

    for root in _ordered_roots(data_graph):
        if root in visited:
            continue
        visited.add(root)
        # Each frame: (iterator over children, depth left for those children)
        stack = [(iter(graph.successors(root)), max_depth - 1)]
        while stack:
            children, depth_left = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                continue
            if child in visited or depth_left < 0:
                continue
            visited.add(child)
            stack.append((iter(graph.successors(child)), depth_left - 1))

    return visited


def _bfs_from_roots(data_graph: DataGraph, max_depth: int) -> set[str]:
    graph = data_graph.graph
    depth = {root: 0 for root in _ordered_roots(data_graph)}
    queue = deque(depth)

    while queue:
        name = queue.popleft()
        if depth[name] == max_depth:
            continue
        for child in graph.successors(name):
            if child not in depth:
                depth[child] = depth[name] + 1
                queue.append(child)

    return set(depth)


def max_depth_view(
    data_graph: DataGraph,
    max_depth: int,
    *,
    shortest_paths: bool = False,
) -> nx.DiGraph:
    """
    Subgraph of the nodes at most ``max_depth`` steps below a root.

    Args:
        data_graph: The graph to extract from
        max_depth: Maximum distance from a root; negative gives an empty graph
        shortest_paths: Use a breadth-first walk (minimum depths) instead of
            the first-visit-wins depth-first walk

    Returns:
        The induced subgraph over the visited nodes

    Example:
        With edges A -> B, A -> C, B -> C, depth 0 gives {A} and depth 1
        gives all three nodes and all three edges.
    """
    if max_depth < 0:
        return nx.DiGraph()

    if shortest_paths:
        visited = _bfs_from_roots(data_graph, max_depth)
    else:
        visited = _dfs_from_roots(data_graph, max_depth)
    return _induced(data_graph, visited)


def _bounded_bfs(data_graph: DataGraph, sources: Iterable[str], radius: int) -> set[str]:
    """Nodes within ``radius`` hops of ``sources``, following edges both ways."""
    distance = {name: 0 for name in sources}
    queue = deque(distance)

    while queue:
        name = queue.popleft()
        if distance[name] == radius:
            continue
        neighbors = list(data_graph.successors(name)) + list(data_graph.predecessors(name))
        for neighbor in neighbors:
            if neighbor not in distance:
                distance[neighbor] = distance[name] + 1
                queue.append(neighbor)

    return set(distance)


def reachable_view(data_graph: DataGraph, node_name: str, radius: int) -> nx.DiGraph:
    """
    Subgraph of the nodes within ``radius`` hops of ``node_name``.

    Parents and children both count as neighbors. A negative radius or an
    unknown node gives an empty graph.

    Example:
        On A -> B -> C, ``reachable_view(g, "C", 1)`` holds B and C with the
        edge B -> C only.
    """
    if radius < 0 or not data_graph.has_node(node_name):
        return nx.DiGraph()
    return _induced(data_graph, _bounded_bfs(data_graph, [node_name], radius))


def neighborhood_view(
    data_graph: DataGraph,
    node_names: Iterable[str],
    radius: int,
    *,
    shortest_paths: bool = False,
) -> nx.DiGraph:
    """
    Subgraph of the nodes within ``radius`` hops of any of ``node_names``.

    Blank and unknown names are ignored. When no non-blank name is given the
    view falls back to ``max_depth_view(data_graph, radius)``.
    """
    names = [name.strip() for name in node_names if name and name.strip()]
    if not names:
        return max_depth_view(data_graph, radius, shortest_paths=shortest_paths)
    if radius < 0:
        return nx.DiGraph()

    sources = [name for name in names if data_graph.has_node(name)]
    return _induced(data_graph, _bounded_bfs(data_graph, sources, radius))
