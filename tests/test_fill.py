from __future__ import annotations

import unittest

from dayslots.fill import OutOfRangeError, slot_indices, split_depth_for, start_now
from dayslots.schema import LevelSchema, build_root_schedule, parse_clock
from dayslots.tree import Leaf, PartitionTree, Subdivided

DAY_START = parse_clock("7:30")


def _tree() -> PartitionTree:
    schema = LevelSchema()
    return PartitionTree(schema, build_root_schedule(schema))


class IndexDecompositionTests(unittest.TestCase):
    def test_offsets_decompose_per_level(self) -> None:
        schema = LevelSchema()
        self.assertEqual(slot_indices(schema, 0), [0, 0, 0])
        self.assertEqual(slot_indices(schema, 600 + 120 + 30), [1, 2, 3])
        self.assertEqual(slot_indices(schema, 1799), [2, 9, 5])

    def test_split_depth_is_deepest_nonzero_level(self) -> None:
        self.assertEqual(split_depth_for([0, 0, 0]), 0)
        self.assertEqual(split_depth_for([2, 0, 0]), 1)
        self.assertEqual(split_depth_for([0, 3, 0]), 2)
        self.assertEqual(split_depth_for([1, 0, 4]), 3)


class StartNowTests(unittest.TestCase):
    def test_exact_root_boundary_needs_no_split(self) -> None:
        tree = _tree()
        address = start_now(tree, "A", DAY_START + 1800)
        self.assertEqual(address, (1,))
        self.assertEqual(len(tree.leaves()), 32)
        self.assertEqual(
            [tree.value_at((index,)) for index in range(4)],
            [None, "A", "A", None],
        )

    def test_one_unit_into_a_slot_splits_to_finest_level(self) -> None:
        tree = _tree()
        address = start_now(tree, "A", DAY_START + 10)
        self.assertEqual(address, (0, 0, 0, 1))
        self.assertIsNone(tree.value_at((0, 0, 0, 0)))
        self.assertEqual([tree.value_at((0, 0, 0, i)) for i in range(1, 6)], ["A"] * 5)
        for minute in range(1, 10):
            self.assertEqual(tree.node_at((0, 0, minute)), Leaf("A"))
        self.assertEqual(tree.node_at((0, 1)), Leaf("A"))
        self.assertEqual(tree.node_at((0, 2)), Leaf("A"))
        self.assertEqual(tree.value_at((1,)), "A")
        self.assertIsNone(tree.value_at((2,)))

    def test_splits_only_as_deep_as_needed(self) -> None:
        tree = _tree()
        address = start_now(tree, "A", DAY_START + 600 + 120)
        self.assertEqual(address, (0, 1, 2))
        self.assertIsInstance(tree.node_at((0,)), Subdivided)
        self.assertIsInstance(tree.node_at((0, 1)), Subdivided)
        self.assertIsInstance(tree.node_at((0, 0)), Leaf)
        self.assertIsInstance(tree.node_at((0, 2)), Leaf)
        for minute in range(10):
            self.assertIsInstance(tree.node_at((0, 1, minute)), Leaf)
        self.assertIsNone(tree.value_at((0, 0)))
        self.assertEqual(
            [tree.value_at((0, 1, minute)) for minute in range(10)],
            [None, None] + ["A"] * 8,
        )
        self.assertEqual(tree.value_at((0, 2)), "A")

    def test_split_carries_existing_value_down(self) -> None:
        tree = _tree()
        tree.assign([(0,)], "B")
        start_now(tree, "A", DAY_START + 600)
        self.assertEqual([tree.value_at((0, i)) for i in range(3)], ["B", "A", "A"])

    def test_fill_keeps_existing_structure_ahead(self) -> None:
        tree = _tree()
        tree.split((2,))
        tree.assign([(2, 1)], "B")
        start_now(tree, "A", DAY_START + 1800)
        node = tree.node_at((2,))
        self.assertIsInstance(node, Subdivided)
        self.assertEqual([child.value for child in node.children], ["A", "A", "A"])

    def test_sweep_fills_straddling_slot_in_full(self) -> None:
        tree = _tree()
        start_now(tree, "A", DAY_START + 1200)
        self.assertEqual(tree.value_at((1,)), "A")
        self.assertIsNone(tree.value_at((2,)))
        self.assertEqual(tree.value_at((0, 2)), "A")
        self.assertIsNone(tree.value_at((0, 1)))

    def test_last_slot_of_day(self) -> None:
        tree = _tree()
        address = start_now(tree, "A", parse_clock("23:20"))
        self.assertEqual(address, (31, 2))
        self.assertEqual(tree.value_at((31, 2)), "A")
        self.assertIsNone(tree.value_at((30,)))

    def test_outside_the_day_is_reported_without_mutation(self) -> None:
        tree = _tree()
        for moment in (parse_clock("7:00"), parse_clock("23:30"), 0):
            with self.subTest(moment=moment):
                with self.assertRaises(OutOfRangeError):
                    start_now(tree, "A", moment)
        self.assertEqual(len(tree.leaves()), 32)
        self.assertTrue(all(tree.value_at(address) is None for address in tree.leaves()))


if __name__ == "__main__":
    unittest.main()
