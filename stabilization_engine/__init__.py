"""
stabilization_engine — Probabilistic Fault-Containing Self-Stabilization
=========================================================================

Simulates a line (or ring) of nodes, each holding a binary ``primary`` value
and a non-negative ``secondary`` priority.  Starting from a configuration
corrupted by transient faults, randomly scheduled local repair steps drive
the system to a legal configuration where every primary is equal.

  Rule 3   all neighbors disagree         ->  flip primary
  Rule 2a  mixed view, local leader       ->  flip, secondary += max + M
  Rule 2b  mixed view, not local leader   ->  secondary += 1

Quick start
-----------
>>> from stabilization_engine import run_simulation
>>> result = run_simulation(size=3, faults=1, seed=42, max_steps=10_000)
>>> result.convergence.converged
True
"""

from .errors import (
    InvalidSize,
    InvalidFaultCount,
    IndexOutOfRange,
    MonotonicityViolation,
)
from .store import NodeStore, INITIAL_PRIMARY, INITIAL_SECONDARY
from .topology import generate_line, generate_ring, topology_from_config
from .scheduler import Scheduler, FaultInjector, draw_index, inject_faults
from .legality import is_legal, disagreement_count, LegalityTracker
from .engine import (
    M,
    step,
    classify,
    is_leader,
    max_neighbor_secondary,
    RULE_NONE,
    RULE_FORCED_FLIP,
    RULE_LEADER_FLIP,
    RULE_CONTAIN,
)
from .convergence import run_until_legal, ConvergenceResult, CONVERGED, BOUND_EXCEEDED
from .simulation import run_simulation, build_system, SimulationResult
from .monte_carlo import run_monte_carlo, MonteCarloResult
from .utils import confidence_interval, make_trial_rngs

__all__ = [
    # errors
    "InvalidSize", "InvalidFaultCount", "IndexOutOfRange", "MonotonicityViolation",
    # store / topology
    "NodeStore", "INITIAL_PRIMARY", "INITIAL_SECONDARY",
    "generate_line", "generate_ring", "topology_from_config",
    # scheduling and faults
    "Scheduler", "FaultInjector", "draw_index", "inject_faults",
    # legality
    "is_legal", "disagreement_count", "LegalityTracker",
    # engine
    "M", "step", "classify", "is_leader", "max_neighbor_secondary",
    "RULE_NONE", "RULE_FORCED_FLIP", "RULE_LEADER_FLIP", "RULE_CONTAIN",
    # convergence
    "run_until_legal", "ConvergenceResult", "CONVERGED", "BOUND_EXCEEDED",
    # simulation / monte carlo
    "run_simulation", "build_system", "SimulationResult",
    "run_monte_carlo", "MonteCarloResult",
    # utils
    "confidence_interval", "make_trial_rngs",
]
