"""
Convergence loop.

Repeatedly asks the scheduler for a node, applies one stabilization step
and stops as soon as the configuration is legal.  The loop either reports
``CONVERGED`` with the number of steps taken, or ``BOUND_EXCEEDED`` when a
finite ``max_steps`` cap runs out first.  Passing ``max_steps=None`` runs
without a cap; nothing proves termination for every fault pattern, so tests
should always pass a finite cap.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field

import numpy as np

from .engine import M, RULE_NAMES, flips_primary, step
from .errors import MonotonicityViolation
from .legality import LegalityTracker
from .scheduler import Scheduler
from .store import NodeStore


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------

CONVERGED: str = "converged"
BOUND_EXCEEDED: str = "bound_exceeded"


@dataclass(frozen=True)
class ConvergenceResult:
    """Outcome of ``run_until_legal``.

    Attributes
    ----------
    status : str
        ``CONVERGED`` or ``BOUND_EXCEEDED``.
    steps : int
        Engine steps applied (0 if the start state was already legal).
    final_state : tuple of int
        Primary sequence when the loop stopped.
    rule_counts : dict of str to int
        How many times each rule fired, keyed by rule name.
    history : np.ndarray or None
        Shape (steps + 1, n) primary history with the initial state at
        row 0, or ``None`` when history was not recorded.
    """
    status: str
    steps: int
    final_state: tuple[int, ...]
    rule_counts: dict[str, int] = field(default_factory=dict)
    history: np.ndarray | None = None

    @property
    def converged(self) -> bool:
        return self.status == CONVERGED

    def summary_dict(self) -> dict:
        """Return a JSON-serialisable summary (no arrays)."""
        return {
            "status": self.status,
            "steps": self.steps,
            "final_state": list(self.final_state),
            "rule_counts": dict(self.rule_counts),
        }


# ---------------------------------------------------------------------------
# Loop
# ---------------------------------------------------------------------------


def run_until_legal(
    store: NodeStore,
    scheduler: Scheduler,
    max_steps: int | None = None,
    m: int = M,
    record_history: bool = False,
) -> ConvergenceResult:
    """Run stabilization steps until the store is legal or the cap is hit.

    Parameters
    ----------
    store : NodeStore
        System state, mutated in place.
    scheduler : Scheduler
        Source of node activations.
    max_steps : int or None, optional
        Maximum number of engine steps.  ``None`` (default) means unbounded.
    m : int, optional
        Leader increment constant passed to ``step`` (default 20).
    record_history : bool, optional
        Keep a snapshot of the primaries after every step.

    Returns
    -------
    ConvergenceResult

    Raises
    ------
    ValueError
        If ``max_steps`` is negative, ``m`` is not positive, or the
        scheduler covers a different number of nodes than the store.
    MonotonicityViolation
        If a step ever lowers the activated node's secondary.
    """
    if max_steps is not None and max_steps < 0:
        raise ValueError(f"max_steps must be >= 0 or None; got {max_steps}.")
    if m <= 0:
        raise ValueError(f"m must be a positive integer; got {m}.")
    if scheduler.n != store.size:
        raise ValueError(
            f"Scheduler covers {scheduler.n} nodes but the store has {store.size}."
        )

    tracker = LegalityTracker(store)
    counts = {name: 0 for name in RULE_NAMES.values()}
    history: list[np.ndarray] = [store.primary_array()] if record_history else []

    steps = 0
    while not tracker.is_legal():
        if max_steps is not None and steps >= max_steps:
            warnings.warn(
                f"run_until_legal: max_steps={max_steps} reached without reaching "
                "a legal configuration. Returning partial result.",
                RuntimeWarning,
                stacklevel=2,
            )
            return _result(BOUND_EXCEEDED, steps, store, counts, history, record_history)

        i = scheduler.select()
        before = store.secondary(i)
        rule = step(store, i, m=m)
        if store.secondary(i) < before:
            raise MonotonicityViolation(
                f"Secondary of node {i} decreased at step {steps + 1} "
                f"({before} -> {store.secondary(i)})."
            )

        tracker.update(i, flips_primary(rule))
        counts[RULE_NAMES[rule]] += 1
        steps += 1
        if record_history:
            history.append(store.primary_array())

    return _result(CONVERGED, steps, store, counts, history, record_history)


def _result(status, steps, store, counts, history, record_history) -> ConvergenceResult:
    return ConvergenceResult(
        status=status,
        steps=steps,
        final_state=store.snapshot(),
        rule_counts=counts,
        history=np.array(history, dtype=np.int8) if record_history else None,
    )
