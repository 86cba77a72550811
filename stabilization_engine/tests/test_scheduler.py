"""Unit tests for the scheduler and fault injector."""

from __future__ import annotations
import sys, unittest
from pathlib import Path

import numpy as np
from numpy.random import default_rng

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from stabilization_engine.errors import IndexOutOfRange, InvalidFaultCount
from stabilization_engine.scheduler import (
    FaultInjector, Scheduler, draw_index, inject_faults,
)
from stabilization_engine.store import NodeStore


class TestScheduler(unittest.TestCase):

    def test_select_in_range(self):
        sched = Scheduler(7, default_rng(0))
        for _ in range(500):
            i = sched.select()
            self.assertTrue(0 <= i < 7)

    def test_same_seed_same_sequence(self):
        a = Scheduler(10, default_rng(42))
        b = Scheduler(10, default_rng(42))
        self.assertEqual([a.select() for _ in range(50)], [b.select() for _ in range(50)])

    def test_roughly_uniform(self):
        sched = Scheduler(5, default_rng(1))
        counts = np.bincount([sched.select() for _ in range(10_000)], minlength=5)
        self.assertTrue(np.all(counts > 1600))
        self.assertTrue(np.all(counts < 2400))

    def test_single_node_always_zero(self):
        sched = Scheduler(1, default_rng(3))
        self.assertEqual({sched.select() for _ in range(20)}, {0})

    def test_draw_index_empty_range_raises(self):
        with self.assertRaises(IndexOutOfRange):
            draw_index(default_rng(0), 0)


class TestFaultInjector(unittest.TestCase):

    def test_inject_flips_exactly_one_primary(self):
        store = NodeStore(6)
        i = FaultInjector(default_rng(5)).inject(store)
        snap = store.snapshot()
        self.assertEqual(sum(snap), 1)
        self.assertEqual(snap[i], 1)

    def test_inject_leaves_secondary(self):
        store = NodeStore(6)
        inj = FaultInjector(default_rng(5))
        for _ in range(10):
            inj.inject(store)
        self.assertEqual(store.secondaries(), (5,) * 6)

    def test_inject_faults_returns_snapshot_per_fault(self):
        store = NodeStore(5)
        snaps = inject_faults(store, 4, FaultInjector(default_rng(9)))
        self.assertEqual(len(snaps), 4)
        self.assertEqual(snaps[-1], store.snapshot())
        for before, after in zip([(0,) * 5] + snaps[:-1], snaps):
            changed = sum(a != b for a, b in zip(before, after))
            self.assertEqual(changed, 1)

    def test_zero_faults(self):
        store = NodeStore(3)
        self.assertEqual(inject_faults(store, 0, FaultInjector(default_rng(0))), [])
        self.assertEqual(store.snapshot(), (0, 0, 0))

    def test_negative_fault_count_raises_without_touching_store(self):
        store = NodeStore(3)
        with self.assertRaises(InvalidFaultCount):
            inject_faults(store, -1, FaultInjector(default_rng(0)))
        self.assertEqual(store.snapshot(), (0, 0, 0))

    def test_injection_reproducible(self):
        s1, s2 = NodeStore(8), NodeStore(8)
        inject_faults(s1, 5, FaultInjector(default_rng(11)))
        inject_faults(s2, 5, FaultInjector(default_rng(11)))
        self.assertEqual(s1.snapshot(), s2.snapshot())


if __name__ == "__main__":
    unittest.main()
