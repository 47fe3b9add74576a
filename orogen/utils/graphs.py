"""Import graph helpers.

The project keeps a directed graph of "importer -> imported" edges. Nodes are
labelled "project:<name>" / "typekit:<name>" so a name may be both a project
and a typekit without the two colliding.
"""

import networkx as nx


def project_node(name: str) -> str:
    return f"project:{name}"


def typekit_node(name: str) -> str:
    return f"typekit:{name}"


def node_name(node: str) -> str:
    """Strip the kind prefix from a graph node."""
    return node.split(":", 1)[1] if ":" in node else node


def describe_cycle(graph: nx.DiGraph, start: str) -> list[str]:
    """Return the names along a cycle through start, closed on start.

    Falls back to [start, start] when the graph holds no such cycle yet (the
    closing edge is being added by the caller).
    """
    try:
        edges = nx.find_cycle(graph, source=start)
    except nx.NetworkXNoCycle:
        return [node_name(start), node_name(start)]
    path = [node_name(edges[0][0])]
    path.extend(node_name(target) for _, target in edges)
    return path


def reachable(graph: nx.DiGraph, start: str) -> set[str]:
    """All nodes reachable from start, start excluded."""
    if start not in graph:
        return set()
    return set(nx.descendants(graph, start))
