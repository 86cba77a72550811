"""Unit tests for the Monte Carlo harness and shared statistics helpers."""

from __future__ import annotations
import math, sys, unittest
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from stabilization_engine.monte_carlo import run_monte_carlo
from stabilization_engine.utils import confidence_interval, make_trial_rngs


class TestMonteCarlo(unittest.TestCase):

    def test_reproducible(self):
        a = run_monte_carlo(4, 2, trials=10, seed=0, max_steps=10_000)
        b = run_monte_carlo(4, 2, trials=10, seed=0, max_steps=10_000)
        np.testing.assert_array_equal(a.steps, b.steps)
        np.testing.assert_array_equal(a.converged, b.converged)

    def test_small_line_always_converges(self):
        mc = run_monte_carlo(4, 2, trials=20, seed=1, max_steps=10_000)
        self.assertEqual(mc.convergence_rate, 1.0)
        self.assertEqual(mc.steps.shape, (20,))
        self.assertAlmostEqual(mc.mean_steps, float(np.mean(mc.steps)))
        self.assertLessEqual(mc.ci_low, mc.mean_steps)
        self.assertGreaterEqual(mc.ci_high, mc.mean_steps)

    def test_trials_below_two_raises(self):
        with self.assertRaises(ValueError):
            run_monte_carlo(4, 1, trials=1, seed=0, max_steps=100)

    def test_all_trials_capped(self):
        # One fault on two or more nodes is never legal; a zero cap stops at once.
        with self.assertWarns(RuntimeWarning):
            mc = run_monte_carlo(4, 1, trials=5, seed=0, max_steps=0)
        self.assertEqual(mc.convergence_rate, 0.0)
        self.assertTrue(math.isnan(mc.mean_steps))
        self.assertTrue(math.isnan(mc.ci_low))
        summary = mc.summary_dict()
        self.assertIsNone(summary["min_steps"])
        self.assertIsNone(summary["median_steps"])

    def test_summary_dict_keys(self):
        summary = run_monte_carlo(3, 1, trials=5, seed=2, max_steps=10_000).summary_dict()
        for key in ("trials", "size", "faults", "seed", "m", "convergence_rate",
                    "mean_steps", "ci_95_low", "ci_95_high", "min_steps", "max_steps"):
            self.assertIn(key, summary)


class TestUtils(unittest.TestCase):

    def test_ci_contains_mean(self):
        samples = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        lo, hi = confidence_interval(samples)
        self.assertLess(lo, 3.0)
        self.assertGreater(hi, 3.0)

    def test_ci_zero_variance(self):
        self.assertEqual(confidence_interval(np.array([2.0, 2.0, 2.0])), (2.0, 2.0))

    def test_ci_needs_two_samples(self):
        with self.assertRaises(ValueError):
            confidence_interval(np.array([1.0]))

    def test_ci_bad_confidence(self):
        with self.assertRaises(ValueError):
            confidence_interval(np.array([1.0, 2.0]), confidence=1.5)

    def test_trial_rngs_reproducible_and_distinct(self):
        a = [g.integers(0, 1_000_000) for g in make_trial_rngs(42, 4)]
        b = [g.integers(0, 1_000_000) for g in make_trial_rngs(42, 4)]
        self.assertEqual(a, b)
        self.assertEqual(len(set(a)), 4)


if __name__ == "__main__":
    unittest.main()
