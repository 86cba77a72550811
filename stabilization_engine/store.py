"""
Node state storage for the stabilization engine.

All node state lives in two contiguous numpy arrays addressed by position:

    primary   : int8,  values in {0, 1}
    secondary : int64, non-negative, monotonically non-decreasing

Neighbors are stored as tuples of indices into those arrays (see
``topology.py``), never as references to other node objects.  State changes
only through ``flip`` and ``raise_secondary``.
"""

from __future__ import annotations

import operator
from typing import Sequence

import numpy as np

from .errors import (
    IndexOutOfRange,
    InvalidFaultCount,
    InvalidSize,
    MonotonicityViolation,
)
from .topology import Neighbors, generate_line


# ---------------------------------------------------------------------------
# Initial state constants
# ---------------------------------------------------------------------------

INITIAL_PRIMARY: int = 0
INITIAL_SECONDARY: int = 5

MAX_NEIGHBORS: int = 2


__all__ = [
    "NodeStore",
    "INITIAL_PRIMARY",
    "INITIAL_SECONDARY",
    "InvalidSize",
    "InvalidFaultCount",
    "IndexOutOfRange",
    "MonotonicityViolation",
]


class NodeStore:
    """Owns every node's primary and secondary value plus the neighbor relation.

    Parameters
    ----------
    n : int
        Number of nodes (>= 1).
    neighbors : Neighbors or None, optional
        Fixed neighbor relation.  Defaults to the line topology over ``n``.

    Raises
    ------
    InvalidSize
        If ``n < 1``.  Nothing is allocated in that case.
    ValueError
        If ``neighbors`` does not describe exactly ``n`` nodes, refers to
        positions outside ``[0, n)``, lists a neighbor twice, gives a node
        more than two neighbors, or is not symmetric.
    """

    def __init__(self, n: int, neighbors: Neighbors | None = None) -> None:
        n = int(n)
        if n < 1:
            raise InvalidSize(f"System size must be >= 1; got {n}.")
        if neighbors is None:
            neighbors = generate_line(n)
        _validate_neighbors(neighbors, n)

        self._neighbors: Neighbors = neighbors
        self._primary = np.full(n, INITIAL_PRIMARY, dtype=np.int8)
        self._secondary = np.full(n, INITIAL_SECONDARY, dtype=np.int64)

    @classmethod
    def from_state(
        cls,
        primary: Sequence[int],
        secondary: Sequence[int] | None = None,
        neighbors: Neighbors | None = None,
    ) -> "NodeStore":
        """Build a store in an arbitrary starting configuration.

        Parameters
        ----------
        primary : sequence of int
            Primary value per node, each in {0, 1}.
        secondary : sequence of int or None, optional
            Secondary value per node, each >= 0.  Defaults to
            ``INITIAL_SECONDARY`` everywhere.
        neighbors : Neighbors or None, optional
            Neighbor relation; defaults to the line topology.

        Raises
        ------
        InvalidSize
            If ``primary`` is empty.
        ValueError
            If values are out of domain or lengths disagree.
        """
        p = np.asarray(primary)
        if p.ndim != 1:
            raise ValueError(f"primary must be one-dimensional; got shape {p.shape}.")
        n = p.shape[0]
        if n < 1:
            raise InvalidSize("System size must be >= 1; got 0.")
        if not _is_integral(p):
            raise ValueError(f"primary values must be integers; got dtype {p.dtype}.")
        if not np.all((p == 0) | (p == 1)):
            raise ValueError(f"primary values must be 0 or 1; got {p.tolist()}.")

        if secondary is None:
            s = np.full(n, INITIAL_SECONDARY, dtype=np.int64)
        else:
            s = np.asarray(secondary)
            if s.shape != (n,):
                raise ValueError(f"secondary must have shape ({n},); got {s.shape}.")
            if not _is_integral(s):
                raise ValueError(f"secondary values must be integers; got dtype {s.dtype}.")
            if np.any(s < 0):
                raise ValueError(f"secondary values must be >= 0; got {s.tolist()}.")

        store = cls(n, neighbors)
        store._primary = p.astype(np.int8)
        store._secondary = s.astype(np.int64)
        return store

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return int(self._primary.shape[0])

    def __len__(self) -> int:
        return self.size

    def check_index(self, index: int) -> int:
        """Return ``index`` as an int.

        Raises
        ------
        TypeError
            If ``index`` is not integral (e.g. a float).
        IndexOutOfRange
            If ``index`` is outside ``[0, size)``.
        """
        i = operator.index(index)
        if not (0 <= i < self.size):
            raise IndexOutOfRange(f"Node index {i} out of range [0, {self.size - 1}].")
        return i

    def neighbors(self, index: int) -> tuple[int, ...]:
        return self._neighbors[self.check_index(index)]

    @property
    def topology(self) -> Neighbors:
        return self._neighbors

    def primary(self, index: int) -> int:
        return int(self._primary[self.check_index(index)])

    def secondary(self, index: int) -> int:
        return int(self._secondary[self.check_index(index)])

    def snapshot(self) -> tuple[int, ...]:
        """Ordered sequence of primaries, node 0 first."""
        return tuple(int(v) for v in self._primary)

    def secondaries(self) -> tuple[int, ...]:
        return tuple(int(v) for v in self._secondary)

    def primary_array(self) -> np.ndarray:
        """Copy of the primary vector as a numpy array."""
        return self._primary.copy()

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def flip(self, index: int) -> None:
        """Flip the primary value of node ``index`` (0 <-> 1)."""
        i = self.check_index(index)
        self._primary[i] = 1 - self._primary[i]

    def raise_secondary(self, index: int, amount: int) -> None:
        """Increase the secondary value of node ``index`` by ``amount``.

        Raises
        ------
        MonotonicityViolation
            If ``amount`` is negative.
        """
        i = self.check_index(index)
        amount = int(amount)
        if amount < 0:
            raise MonotonicityViolation(
                f"Secondary of node {i} cannot decrease (requested {amount:+d})."
            )
        self._secondary[i] += amount

    def __repr__(self) -> str:
        return (
            f"NodeStore(size={self.size}, primary={list(self.snapshot())}, "
            f"secondary={list(self.secondaries())})"
        )


def _is_integral(a: np.ndarray) -> bool:
    return np.issubdtype(a.dtype, np.integer) or np.issubdtype(a.dtype, np.bool_)


def _validate_neighbors(neighbors: Neighbors, n: int) -> None:
    if len(neighbors) != n:
        raise ValueError(
            f"Neighbor relation describes {len(neighbors)} nodes; expected {n}."
        )
    for i, adj in enumerate(neighbors):
        if len(adj) > MAX_NEIGHBORS:
            raise ValueError(
                f"Node {i} has {len(adj)} neighbors; at most {MAX_NEIGHBORS} allowed."
            )
        if len(set(adj)) != len(adj):
            raise ValueError(f"Node {i} lists a neighbor more than once: {adj}.")
        for j in adj:
            if not (0 <= j < n) or j == i:
                raise ValueError(
                    f"Node {i} has invalid neighbor {j}; must be in [0, {n - 1}] "
                    f"and distinct from the node itself."
                )
    for i, adj in enumerate(neighbors):
        for j in adj:
            if i not in neighbors[j]:
                raise ValueError(
                    f"Neighbor relation is not symmetric: {j} is a neighbor of {i} "
                    f"but {i} is not a neighbor of {j}."
                )
