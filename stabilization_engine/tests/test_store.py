"""Unit tests for NodeStore."""

from __future__ import annotations
import sys, unittest
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from stabilization_engine.errors import (
    IndexOutOfRange, InvalidSize, MonotonicityViolation,
)
from stabilization_engine.store import (
    INITIAL_PRIMARY, INITIAL_SECONDARY, NodeStore,
)
from stabilization_engine.topology import generate_ring


class TestConstruction(unittest.TestCase):

    def test_initial_values(self):
        store = NodeStore(4)
        self.assertEqual(store.size, 4)
        self.assertEqual(store.snapshot(), (INITIAL_PRIMARY,) * 4)
        self.assertEqual(store.secondaries(), (INITIAL_SECONDARY,) * 4)
        self.assertEqual(INITIAL_PRIMARY, 0)
        self.assertEqual(INITIAL_SECONDARY, 5)

    def test_default_topology_is_line(self):
        store = NodeStore(3)
        self.assertEqual(store.neighbors(0), (1,))
        self.assertEqual(store.neighbors(1), (0, 2))
        self.assertEqual(store.neighbors(2), (1,))

    def test_single_node(self):
        store = NodeStore(1)
        self.assertEqual(store.neighbors(0), ())

    def test_invalid_size(self):
        for n in (0, -5):
            with self.assertRaises(InvalidSize):
                NodeStore(n)

    def test_explicit_topology(self):
        store = NodeStore(4, generate_ring(4))
        self.assertEqual(store.neighbors(0), (1, 3))

    def test_mismatched_topology_raises(self):
        with self.assertRaises(ValueError):
            NodeStore(3, generate_ring(4))

    def test_self_loop_rejected(self):
        with self.assertRaises(ValueError):
            NodeStore(2, ((0,), (0,)))

    def test_more_than_two_neighbors_rejected(self):
        with self.assertRaises(ValueError):
            NodeStore(4, ((1, 2, 3), (0,), (0,), (0,)))

    def test_duplicate_neighbor_rejected(self):
        with self.assertRaises(ValueError):
            NodeStore(2, ((1, 1), (0,)))

    def test_asymmetric_neighbors_rejected(self):
        with self.assertRaises(ValueError):
            NodeStore(2, ((1,), ()))
        with self.assertRaises(ValueError):
            NodeStore(3, ((1,), (0, 2), (0,)))


class TestFromState(unittest.TestCase):

    def test_custom_state(self):
        store = NodeStore.from_state([0, 1, 1], [5, 10, 3])
        self.assertEqual(store.snapshot(), (0, 1, 1))
        self.assertEqual(store.secondaries(), (5, 10, 3))

    def test_default_secondary(self):
        store = NodeStore.from_state([1, 0])
        self.assertEqual(store.secondaries(), (5, 5))

    def test_non_binary_primary_rejected(self):
        with self.assertRaises(ValueError):
            NodeStore.from_state([0, 2, 1])

    def test_negative_secondary_rejected(self):
        with self.assertRaises(ValueError):
            NodeStore.from_state([0, 1], [5, -1])

    def test_length_mismatch_rejected(self):
        with self.assertRaises(ValueError):
            NodeStore.from_state([0, 1, 0], [5, 5])

    def test_empty_rejected(self):
        with self.assertRaises(InvalidSize):
            NodeStore.from_state([])

    def test_fractional_primary_rejected(self):
        with self.assertRaises(ValueError):
            NodeStore.from_state([0.5, 1.0])
        with self.assertRaises(ValueError):
            NodeStore.from_state([0.0, 1.0])

    def test_fractional_secondary_rejected(self):
        with self.assertRaises(ValueError):
            NodeStore.from_state([0, 1], [5.0, 6.5])

    def test_numpy_integer_and_bool_inputs_accepted(self):
        store = NodeStore.from_state(np.array([True, False]), np.array([7, 9], dtype=np.int32))
        self.assertEqual(store.snapshot(), (1, 0))
        self.assertEqual(store.secondaries(), (7, 9))


class TestMutators(unittest.TestCase):

    def test_flip_toggles(self):
        store = NodeStore(3)
        store.flip(1)
        self.assertEqual(store.snapshot(), (0, 1, 0))
        store.flip(1)
        self.assertEqual(store.snapshot(), (0, 0, 0))

    def test_flip_leaves_secondary(self):
        store = NodeStore(3)
        store.flip(2)
        self.assertEqual(store.secondaries(), (5, 5, 5))

    def test_raise_secondary(self):
        store = NodeStore(2)
        store.raise_secondary(0, 7)
        store.raise_secondary(0, 0)
        self.assertEqual(store.secondaries(), (12, 5))

    def test_negative_raise_is_monotonicity_violation(self):
        store = NodeStore(2)
        with self.assertRaises(MonotonicityViolation):
            store.raise_secondary(1, -1)
        self.assertEqual(store.secondary(1), 5)

    def test_out_of_range_index(self):
        store = NodeStore(3)
        for i in (-1, 3, 100):
            with self.assertRaises(IndexOutOfRange):
                store.flip(i)
            with self.assertRaises(IndexOutOfRange):
                store.neighbors(i)

    def test_float_index_rejected(self):
        store = NodeStore(3)
        with self.assertRaises(TypeError):
            store.flip(1.9)
        with self.assertRaises(TypeError):
            store.raise_secondary(1.0, 3)
        self.assertEqual(store.snapshot(), (0, 0, 0))
        self.assertEqual(store.secondaries(), (5, 5, 5))

    def test_numpy_integer_index_accepted(self):
        store = NodeStore(3)
        store.flip(np.int64(2))
        self.assertEqual(store.snapshot(), (0, 0, 1))

    def test_snapshot_is_a_copy(self):
        store = NodeStore(2)
        snap = store.snapshot()
        arr = store.primary_array()
        arr[0] = 1
        store.flip(1)
        self.assertEqual(snap, (0, 0))
        self.assertEqual(store.snapshot(), (0, 1))


if __name__ == "__main__":
    unittest.main()
