"""
Core stabilization rules.

One call to ``step`` activates a single node and applies exactly one rule,
chosen by comparing the node's primary with those of its present neighbors:

    all neighbors disagree   ->  Rule 3   flip primary
    all neighbors agree      ->  no-op    (includes a node with no neighbors)
    some, not all, disagree  ->  Rule 2a  local leader: flip primary,
                                          secondary += max(neighbor secondary) + M
                             ->  Rule 2b  otherwise: secondary += 1

A node is a local leader when its secondary is >= every neighbor's
secondary (ties count as leadership).

The classification is expressed once over the variable-length set of
present neighbors, so boundary nodes, interior nodes and ring nodes share
the same code path.  Secondary values only ever grow.
"""

from __future__ import annotations

from .store import NodeStore


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

M: int = 20

RULE_NONE: int = 0
RULE_FORCED_FLIP: int = 3
RULE_LEADER_FLIP: int = 2
RULE_CONTAIN: int = 1

RULE_NAMES: dict[int, str] = {
    RULE_NONE: "none",
    RULE_CONTAIN: "contain",
    RULE_LEADER_FLIP: "leader_flip",
    RULE_FORCED_FLIP: "forced_flip",
}


# ---------------------------------------------------------------------------
# Neighborhood queries
# ---------------------------------------------------------------------------


def is_leader(store: NodeStore, index: int) -> bool:
    """True iff node ``index`` has secondary >= every neighbor's secondary.

    Vacuously true for a node without neighbors.
    """
    own = store.secondary(index)
    return all(own >= store.secondary(j) for j in store.neighbors(index))


def max_neighbor_secondary(store: NodeStore, index: int) -> int:
    """Largest secondary value among the neighbors of node ``index``.

    Raises
    ------
    ValueError
        If the node has no neighbors.  ``step`` never asks for it in that
        case because an empty neighborhood always classifies as a no-op.
    """
    adj = store.neighbors(index)
    if not adj:
        raise ValueError(f"Node {index} has no neighbors.")
    return max(store.secondary(j) for j in adj)


def classify(store: NodeStore, index: int) -> int:
    """Return the rule that ``step`` would apply to node ``index``.

    Parameters
    ----------
    store : NodeStore
        Current system state.
    index : int
        Selected node.

    Returns
    -------
    int
        One of ``RULE_FORCED_FLIP``, ``RULE_NONE``, ``RULE_LEADER_FLIP``,
        ``RULE_CONTAIN``.

    Notes
    -----
    With ``t`` present neighbors of which ``k`` disagree:

        t > 0 and k == t  ->  RULE_FORCED_FLIP
        k == 0            ->  RULE_NONE
        otherwise         ->  RULE_LEADER_FLIP if leader else RULE_CONTAIN

    The mixed case needs at least two neighbors, so it is unreachable for
    boundary and isolated nodes.
    """
    own = store.primary(index)
    adj = store.neighbors(index)
    total = len(adj)
    disagreeing = sum(1 for j in adj if store.primary(j) != own)

    if total > 0 and disagreeing == total:
        return RULE_FORCED_FLIP
    if disagreeing == 0:
        return RULE_NONE
    return RULE_LEADER_FLIP if is_leader(store, index) else RULE_CONTAIN


# ---------------------------------------------------------------------------
# Single activation
# ---------------------------------------------------------------------------


def step(store: NodeStore, index: int, m: int = M) -> int:
    """Activate node ``index`` and apply the matching rule in place.

    Parameters
    ----------
    store : NodeStore
        System state, mutated in place.
    index : int
        Node selected by the scheduler.
    m : int, optional
        Positive constant added to the leader's secondary increment
        (default ``M`` = 20).

    Returns
    -------
    int
        The rule identifier that was applied.

    Raises
    ------
    IndexOutOfRange
        If ``index`` is not a valid node position.
    """
    index = store.check_index(index)
    rule = classify(store, index)

    if rule == RULE_FORCED_FLIP:
        store.flip(index)
    elif rule == RULE_LEADER_FLIP:
        # Increment uses the largest neighbor secondary, not necessarily the
        # one belonging to the disagreeing neighbor.
        increment = max_neighbor_secondary(store, index) + m
        store.flip(index)
        store.raise_secondary(index, increment)
    elif rule == RULE_CONTAIN:
        store.raise_secondary(index, 1)

    return rule


def flips_primary(rule: int) -> bool:
    """True for the rules that change the activated node's primary."""
    return rule in (RULE_FORCED_FLIP, RULE_LEADER_FLIP)
