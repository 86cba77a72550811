"""
Shared utilities for the stabilization engine.

Currently provides:
  - confidence_interval()  : t-distribution CI for a sample mean
  - make_trial_rngs()      : SeedSequence-based per-trial Generators

All functions are pure (no global state).
"""

from __future__ import annotations

import numpy as np
from numpy.random import Generator, SeedSequence, default_rng
import scipy.stats as stats


# ---------------------------------------------------------------------------
# Confidence interval
# ---------------------------------------------------------------------------


def confidence_interval(
    samples: np.ndarray,
    confidence: float = 0.95,
) -> tuple[float, float]:
    """Compute a confidence interval for the population mean via t-distribution.

    Parameters
    ----------
    samples : np.ndarray, shape (m,)
        Sample array with m >= 2.
    confidence : float, optional
        Confidence level in (0, 1).  Default 0.95.

    Returns
    -------
    (ci_low, ci_high) : tuple of float
        Lower and upper bounds.

    Raises
    ------
    ValueError
        If m < 2 or confidence is not in (0, 1).
    """
    m = len(samples)
    if m < 2:
        raise ValueError("Need at least 2 samples for CI computation.")
    if not (0 < confidence < 1):
        raise ValueError(f"confidence must be in (0, 1); got {confidence}.")
    mean = float(np.mean(samples))
    se = float(stats.sem(samples))
    if se == 0.0:
        return mean, mean
    interval = stats.t.interval(confidence, df=m - 1, loc=mean, scale=se)
    return float(interval[0]), float(interval[1])


# ---------------------------------------------------------------------------
# SeedSequence-based RNG spawning
# ---------------------------------------------------------------------------


def make_trial_rngs(master_seed: int, n_trials: int) -> list[Generator]:
    """Spawn *n_trials* statistically-independent Generators from a master seed.

    Child seeds come from ``numpy.random.SeedSequence.spawn()``, so streams
    do not overlap the way ``default_rng(seed + i)`` offsets can.  The same
    master seed always yields the same list of Generators.
    """
    ss = SeedSequence(master_seed)
    return [default_rng(child) for child in ss.spawn(n_trials)]
