"""
Topology construction for the stabilization engine.

Uses NetworkX only for graph construction; all outputs are plain tuples of
neighbor indices.  Convention: ``neighbors[i]`` is the sorted tuple of
positions adjacent to node i.  The relation is fixed once built and is never
recomputed during a run.
"""

from __future__ import annotations

import networkx as nx

from .errors import InvalidSize


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

Neighbors = tuple[tuple[int, ...], ...]


# ---------------------------------------------------------------------------
# Schema constants
# ---------------------------------------------------------------------------

TOPOLOGY_TYPES = {"line", "ring"}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _check_size(n: int) -> int:
    n = int(n)
    if n < 1:
        raise InvalidSize(f"System size must be >= 1; got {n}.")
    return n


def _graph_to_neighbors(G: nx.Graph, n: int) -> Neighbors:
    """Convert an undirected NetworkX graph to neighbor-index tuples.

    Parameters
    ----------
    G : nx.Graph
        Undirected graph with integer node labels 0..n-1.
    n : int
        Expected number of nodes.

    Returns
    -------
    Neighbors
        ``n`` tuples, the i-th holding the sorted neighbors of node i.
        Self-loops are dropped.
    """
    return tuple(
        tuple(sorted(j for j in G.neighbors(i) if j != i))
        for i in range(n)
    )


# ---------------------------------------------------------------------------
# Public generators
# ---------------------------------------------------------------------------


def generate_line(n: int) -> Neighbors:
    """Build the list topology: node i is adjacent to i-1 and i+1.

    Boundary nodes have one neighbor; a single node has none.

    Raises
    ------
    InvalidSize
        If ``n < 1``.
    """
    n = _check_size(n)
    return _graph_to_neighbors(nx.path_graph(n), n)


def generate_ring(n: int) -> Neighbors:
    """Build a ring: the line topology with node n-1 joined back to node 0.

    Every node has exactly two neighbors, so ``n`` must be at least 3.

    Raises
    ------
    InvalidSize
        If ``n < 1``.
    ValueError
        If ``1 <= n < 3``.
    """
    n = _check_size(n)
    if n < 3:
        raise ValueError(f"A ring topology needs at least 3 nodes; got {n}.")
    return _graph_to_neighbors(nx.cycle_graph(n), n)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def topology_from_config(topo_cfg: dict | None, n: int) -> Neighbors:
    """Build a neighbor relation from a topology config sub-dict.

    Parameters
    ----------
    topo_cfg : dict or None
        Must contain ``type`` (``line`` or ``ring``).  ``None`` selects
        the line topology.
    n : int
        Number of nodes.

    Raises
    ------
    ValueError
        For unsupported topology types.
    """
    ttype = "line" if topo_cfg is None else topo_cfg.get("type", "line")

    if ttype == "line":
        return generate_line(n)
    if ttype == "ring":
        return generate_ring(n)

    raise ValueError(f"Unsupported topology type: {ttype!r}")
