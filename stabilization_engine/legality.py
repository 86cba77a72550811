"""
Legality checks.

A configuration is legal when every node's primary equals node 0's primary.
``is_legal`` rescans the store in O(N).  ``LegalityTracker`` keeps a running
count of nodes that disagree with node 0 so the convergence loop can test
legality in O(1) after each step.
"""

from __future__ import annotations

import numpy as np

from .store import NodeStore


REFERENCE_NODE: int = 0


def disagreement_count(store: NodeStore) -> int:
    """Number of nodes whose primary differs from the reference node's."""
    p = store.primary_array()
    return int(np.sum(p != p[REFERENCE_NODE]))


def is_legal(store: NodeStore) -> bool:
    """True iff all primaries equal the reference node's primary.

    Vacuously true for a single-node system.
    """
    return disagreement_count(store) == 0


class LegalityTracker:
    """Incrementally maintained legality predicate for one store.

    Call ``update(index, flipped)`` after every step that touched node
    ``index``.  Only a flip of the reference node forces a full recount.
    """

    def __init__(self, store: NodeStore) -> None:
        self.store = store
        self.disagreeing = disagreement_count(store)

    def update(self, index: int, flipped: bool) -> None:
        if not flipped:
            return
        if index == REFERENCE_NODE:
            self.disagreeing = disagreement_count(self.store)
        elif self.store.primary(index) == self.store.primary(REFERENCE_NODE):
            self.disagreeing -= 1
        else:
            self.disagreeing += 1

    def is_legal(self) -> bool:
        return self.disagreeing == 0
