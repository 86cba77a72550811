"""
Monte Carlo harness for the stabilization engine.

Repeats the fault-then-stabilize experiment with independent per-trial
Generators and returns the distribution of steps to convergence.

Design principles
-----------------
* No global RNG state: every trial gets its own Generator, spawned from a
  master ``SeedSequence`` (see ``utils.make_trial_rngs``).
* Trials that hit the step cap are kept in the raw arrays but excluded from
  the steps statistics.
* Confidence intervals use scipy.stats.t (t-distribution, two-tailed).
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass

import numpy as np

from .engine import M
from .simulation import run_simulation
from .utils import confidence_interval, make_trial_rngs


@dataclass(frozen=True)
class MonteCarloResult:
    """Immutable container for Monte Carlo experiment results.

    Attributes
    ----------
    steps : np.ndarray, shape (trials,), dtype int
        Engine steps per trial (the cap value for unconverged trials).
    converged : np.ndarray, shape (trials,), dtype bool
        Whether each trial reached a legal configuration.
    mean_steps : float
        Mean steps over converged trials (NaN if none converged).
    variance_steps : float
        Sample variance of steps over converged trials (NaN if fewer than two).
    ci_low, ci_high : float
        95% confidence interval for the mean steps (NaN if fewer than two
        trials converged).
    convergence_rate : float
        Fraction of trials that converged.
    trials, size, faults, seed, m : int
        Experiment parameters.
    """
    steps: np.ndarray
    converged: np.ndarray
    mean_steps: float
    variance_steps: float
    ci_low: float
    ci_high: float
    convergence_rate: float
    trials: int
    size: int
    faults: int
    seed: int
    m: int

    def summary_dict(self) -> dict:
        """Return a JSON-serialisable summary (no arrays)."""
        done = self.steps[self.converged]
        return {
            "trials": self.trials,
            "size": self.size,
            "faults": self.faults,
            "seed": self.seed,
            "m": self.m,
            "convergence_rate": self.convergence_rate,
            "mean_steps": self.mean_steps,
            "variance_steps": self.variance_steps,
            "ci_95_low": self.ci_low,
            "ci_95_high": self.ci_high,
            "min_steps": int(np.min(done)) if done.size else None,
            "max_steps": int(np.max(done)) if done.size else None,
            "median_steps": float(np.median(done)) if done.size else None,
        }


def run_monte_carlo(
    size: int,
    faults: int,
    trials: int,
    seed: int,
    max_steps: int | None = None,
    m: int = M,
    topology: dict | str | None = None,
) -> MonteCarloResult:
    """Run ``trials`` independent fault-then-stabilize experiments.

    Parameters
    ----------
    size : int
        Number of nodes.
    faults : int
        Transient faults injected per trial.
    trials : int
        Number of independent trials (>= 2).
    seed : int
        Master seed; per-trial Generators are spawned from it.
    max_steps : int or None, optional
        Step cap per trial.
    m : int, optional
        Leader increment constant.
    topology : dict, str or None, optional
        Topology config or type name.

    Raises
    ------
    ValueError
        If ``trials < 2``.
    """
    if trials < 2:
        raise ValueError(f"trials must be >= 2 for CI computation; got {trials}.")

    steps = np.empty(trials, dtype=np.int64)
    converged = np.empty(trials, dtype=bool)

    for trial, trial_rng in enumerate(make_trial_rngs(seed, trials)):
        # Per-trial cap warnings are folded into one summary warning below.
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", RuntimeWarning)
            result = run_simulation(
                size, faults,
                max_steps=max_steps,
                m=m,
                topology=topology,
                rng=trial_rng,
            )
        steps[trial] = result.convergence.steps
        converged[trial] = result.convergence.converged

    n_stuck = int(np.sum(~converged))
    if n_stuck:
        warnings.warn(
            f"run_monte_carlo: {n_stuck} of {trials} trial(s) reached "
            f"max_steps={max_steps} without a legal configuration. They are "
            "excluded from the steps statistics.",
            RuntimeWarning,
            stacklevel=2,
        )

    done = steps[converged].astype(np.float64)
    mean_steps = float(np.mean(done)) if done.size else float("nan")
    if done.size >= 2:
        variance_steps = float(np.var(done, ddof=1))
        ci_low, ci_high = confidence_interval(done)
    else:
        variance_steps = ci_low = ci_high = float("nan")

    return MonteCarloResult(
        steps=steps,
        converged=converged,
        mean_steps=mean_steps,
        variance_steps=variance_steps,
        ci_low=ci_low,
        ci_high=ci_high,
        convergence_rate=float(np.mean(converged)),
        trials=trials,
        size=int(size),
        faults=int(faults),
        seed=seed,
        m=m,
    )
