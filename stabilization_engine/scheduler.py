"""
Random node selection: the scheduler and the transient-fault injector.

Both draw indices through the same primitive, ``draw_index``, from a numpy
``Generator`` supplied by the caller.  Nothing here touches the global numpy
RNG or seeds itself from the clock.

The scheduler models the distributed daemon only approximately: every step
activates one node chosen uniformly at random.  A true adversarial
(worst-case) scheduler is not implemented.
"""

from __future__ import annotations

from numpy.random import Generator

from .errors import IndexOutOfRange, InvalidFaultCount
from .store import NodeStore


# ---------------------------------------------------------------------------
# Selection primitive
# ---------------------------------------------------------------------------


def draw_index(rng: Generator, n: int) -> int:
    """Draw one index uniformly from ``[0, n)``.

    Raises
    ------
    IndexOutOfRange
        If the draw lands outside ``[0, n)``.  Unreachable for ``n >= 1``
        but checked so that a bad ``n`` never reaches the store silently.
    """
    i = int(rng.integers(0, n)) if n > 0 else -1
    if not (0 <= i < n):
        raise IndexOutOfRange(f"Selected index {i} out of range for system size {n}.")
    return i


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class Scheduler:
    """Uniform random activation order over ``n`` nodes."""

    def __init__(self, n: int, rng: Generator) -> None:
        self.n = int(n)
        self.rng = rng

    def select(self) -> int:
        return draw_index(self.rng, self.n)


# ---------------------------------------------------------------------------
# Fault injection
# ---------------------------------------------------------------------------


class FaultInjector:
    """Flips the primary value of one uniformly chosen node per injection.

    Secondary values are never touched.  Faults are a perturbation applied
    before the convergence loop starts.
    """

    def __init__(self, rng: Generator) -> None:
        self.rng = rng

    def inject(self, store: NodeStore) -> int:
        """Corrupt one node of ``store``; return its index."""
        i = draw_index(self.rng, store.size)
        store.flip(i)
        return i


def inject_faults(
    store: NodeStore,
    count: int,
    injector: FaultInjector,
) -> list[tuple[int, ...]]:
    """Apply ``count`` transient faults.

    Returns
    -------
    list of tuple of int
        The primary snapshot taken after each injection, in order.

    Raises
    ------
    InvalidFaultCount
        If ``count < 0``.  The store is left untouched.
    """
    count = int(count)
    if count < 0:
        raise InvalidFaultCount(f"Fault count must be >= 0; got {count}.")

    snapshots: list[tuple[int, ...]] = []
    for _ in range(count):
        injector.inject(store)
        snapshots.append(store.snapshot())
    return snapshots
