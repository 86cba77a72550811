"""
Single-run entry point: build a system, corrupt it, stabilize it.

Size and fault count are validated before any node is allocated.  One
numpy ``Generator`` feeds both the fault injector and the scheduler (fault
draws first), so a seed reproduces a whole run.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.random import Generator, default_rng

from .convergence import ConvergenceResult, run_until_legal
from .engine import M
from .errors import InvalidFaultCount, InvalidSize
from .scheduler import FaultInjector, Scheduler, inject_faults
from .store import NodeStore
from .topology import topology_from_config


@dataclass(frozen=True)
class SimulationResult:
    """Fault snapshots and convergence outcome of one run."""
    size: int
    faults: int
    seed: int | None
    fault_snapshots: list[tuple[int, ...]]
    convergence: ConvergenceResult

    def summary_dict(self) -> dict:
        return {
            "size": self.size,
            "faults": self.faults,
            "seed": self.seed,
            "fault_snapshots": [list(s) for s in self.fault_snapshots],
            **self.convergence.summary_dict(),
        }


def build_system(
    size: int,
    faults: int,
    rng: Generator,
    topology: dict | str | None = None,
) -> tuple[NodeStore, list[tuple[int, ...]]]:
    """Construct a store and apply ``faults`` transient faults to it.

    Raises
    ------
    InvalidSize
        If ``size < 1``.
    InvalidFaultCount
        If ``faults < 0``.
    """
    size, faults = int(size), int(faults)
    if size < 1:
        raise InvalidSize(f"System size must be >= 1; got {size}.")
    if faults < 0:
        raise InvalidFaultCount(f"Fault count must be >= 0; got {faults}.")

    if isinstance(topology, str):
        topology = {"type": topology}
    store = NodeStore(size, topology_from_config(topology, size))
    snapshots = inject_faults(store, faults, FaultInjector(rng))
    return store, snapshots


def run_simulation(
    size: int,
    faults: int,
    seed: int | None = None,
    max_steps: int | None = None,
    m: int = M,
    topology: dict | str | None = None,
    record_history: bool = False,
    rng: Generator | None = None,
) -> SimulationResult:
    """Build, corrupt and stabilize one system.

    Parameters
    ----------
    size : int
        Number of nodes (>= 1).
    faults : int
        Number of transient faults injected before stabilization (>= 0).
    seed : int or None, optional
        Seed for the shared Generator.  ``None`` draws fresh OS entropy.
    max_steps : int or None, optional
        Step cap for the convergence loop; ``None`` means unbounded.
    m : int, optional
        Leader increment constant.
    topology : dict, str or None, optional
        Topology config (``{"type": "line"}``) or bare type name.
    record_history : bool, optional
        Forwarded to ``run_until_legal``.
    rng : Generator or None, optional
        Pre-built Generator; overrides ``seed`` when given, in which case
        the result records ``seed=None``.

    Returns
    -------
    SimulationResult
    """
    if rng is None:
        rng = default_rng(seed)
    else:
        seed = None

    store, snapshots = build_system(size, faults, rng, topology)
    result = run_until_legal(
        store,
        Scheduler(store.size, rng),
        max_steps=max_steps,
        m=m,
        record_history=record_history,
    )
    return SimulationResult(
        size=store.size,
        faults=int(faults),
        seed=seed,
        fault_snapshots=snapshots,
        convergence=result,
    )
