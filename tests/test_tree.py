from __future__ import annotations

import unittest

from dayslots.schema import LevelSchema, build_root_schedule
from dayslots.tree import Leaf, MergeOutcome, PartitionTree, Subdivided


def _tree() -> PartitionTree:
    schema = LevelSchema()
    return PartitionTree(schema, build_root_schedule(schema))


def _never(codes: frozenset) -> bool:
    raise AssertionError(f"confirmation should not be requested for {sorted(codes)}")


class LinearizationTests(unittest.TestCase):
    def test_blank_day_has_one_leaf_per_root(self) -> None:
        tree = _tree()
        self.assertEqual(tree.leaves(), [(index,) for index in range(32)])

    def test_splitting_a_root_to_depth_two_adds_its_intervals(self) -> None:
        tree = _tree()
        tree.split((4,))
        for child in range(3):
            tree.split((4, child))
        self.assertEqual(len(tree.leaves()), 32 + (3 * 10) - 1)

    def test_leaves_are_in_time_order(self) -> None:
        tree = _tree()
        tree.split((0,))
        tree.split((0, 1))
        leaves = tree.leaves()
        self.assertEqual(leaves[:3], [(0, 0), (0, 1, 0), (0, 1, 1)])
        self.assertEqual(leaves, sorted(leaves))
        starts = [tree.span(address)[0] for address in leaves]
        self.assertEqual(starts, sorted(starts))

    def test_columns_split_roots_in_half(self) -> None:
        tree = _tree()
        tree.split((20,))
        left, right = tree.columns()
        self.assertEqual(len(left), 16)
        self.assertEqual(left[0], (0,))
        self.assertEqual(right[0], (16,))
        self.assertIn((20, 2), right)

    def test_leaf_at_time_and_labels(self) -> None:
        tree = _tree()
        tree.split((0,))
        self.assertEqual(tree.leaf_at_time(27000 + 650), (0, 1))
        self.assertEqual(tree.label((0, 1)), "7:40")
        tree.split((0, 1))
        tree.split((0, 1, 0))
        self.assertEqual(tree.leaf_at_time(27000 + 630), (0, 1, 0, 3))
        self.assertEqual(tree.label((0, 1, 0, 3)), "7:40:30")
        self.assertEqual(tree.span((0, 1, 0, 3)), (27630, 27640))
        self.assertIsNone(tree.leaf_at_time(0))


class SplitTests(unittest.TestCase):
    def test_split_pushes_value_one_level_down(self) -> None:
        tree = _tree()
        tree.assign([(0,)], "HMTB1")
        self.assertTrue(tree.split((0,)))
        node = tree.node_at((0,))
        self.assertIsInstance(node, Subdivided)
        self.assertEqual([child.value for child in node.children], ["HMTB1"] * 3)
        self.assertTrue(all(isinstance(child, Leaf) for child in node.children))

    def test_split_is_noop_when_preconditions_fail(self) -> None:
        tree = _tree()
        self.assertFalse(tree.split((0, 1)))
        tree.split((0,))
        self.assertFalse(tree.split((0,)))
        tree.split((0, 0))
        tree.split((0, 0, 0))
        self.assertFalse(tree.split((0, 0, 0, 0)))
        self.assertFalse(tree.split((99,)))
        self.assertFalse(tree.split(()))


class MergeTests(unittest.TestCase):
    def test_split_then_merge_restores_value(self) -> None:
        tree = _tree()
        tree.assign([(3,)], "HMTB2")
        tree.split((3,))
        self.assertIs(tree.merge((3, 1), 0, _never), MergeOutcome.MERGED)
        self.assertEqual(tree.node_at((3,)), Leaf("HMTB2"))

    def test_conflicting_merge_confirmed_clears(self) -> None:
        tree = _tree()
        tree.assign([(3,)], "A")
        tree.split((3,))
        tree.assign([(3, 1)], "B")
        seen: list[frozenset] = []

        def confirm(codes: frozenset) -> bool:
            seen.append(codes)
            return True

        self.assertIs(tree.merge((3, 2), 0, confirm), MergeOutcome.CLEARED)
        self.assertEqual(seen, [frozenset({"A", "B"})])
        self.assertEqual(tree.node_at((3,)), Leaf(None))

    def test_conflicting_merge_declined_leaves_tree_alone(self) -> None:
        tree = _tree()
        tree.assign([(3,)], "A")
        tree.split((3,))
        tree.assign([(3, 1)], "B")
        self.assertIs(tree.merge((3, 0), 0, lambda codes: False), MergeOutcome.ABORTED)
        self.assertIs(tree.merge((3, 0), 0), MergeOutcome.ABORTED)
        node = tree.node_at((3,))
        self.assertIsInstance(node, Subdivided)
        self.assertEqual([child.value for child in node.children], ["A", "B", "A"])

    def test_empty_leaves_do_not_conflict(self) -> None:
        tree = _tree()
        tree.split((5,))
        tree.assign([(5, 0)], "A")
        self.assertIs(tree.merge((5, 0), 0, _never), MergeOutcome.MERGED)
        self.assertEqual(tree.value_at((5,)), "A")

    def test_merge_collects_values_through_deeper_splits(self) -> None:
        tree = _tree()
        tree.split((5,))
        tree.split((5, 1))
        tree.assign([(5, 1, 4)], "B")
        self.assertIs(tree.merge((5, 1, 4), 1, _never), MergeOutcome.MERGED)
        self.assertEqual(tree.node_at((5, 1)), Leaf("B"))
        self.assertIsInstance(tree.node_at((5,)), Subdivided)

    def test_merge_discards_nested_structure(self) -> None:
        tree = _tree()
        tree.split((5,))
        tree.split((5, 0))
        tree.split((5, 0, 0))
        tree.merge((5, 0, 0, 2), 0, _never)
        self.assertEqual(tree.leaves()[5], (5,))
        tree.split((5,))
        node = tree.node_at((5,))
        self.assertEqual(node.children, [Leaf(), Leaf(), Leaf()])

    def test_merge_of_unsplit_root_is_noop(self) -> None:
        tree = _tree()
        self.assertIs(tree.merge((0,), 0, _never), MergeOutcome.NOOP)
        self.assertIs(tree.merge((0,), 1, _never), MergeOutcome.NOOP)
        self.assertIs(tree.merge((99, 1), 0, _never), MergeOutcome.NOOP)


class AssignTests(unittest.TestCase):
    def test_assign_overwrites_and_clears(self) -> None:
        tree = _tree()
        self.assertEqual(tree.assign([(0,), (1,)], "A"), 2)
        self.assertEqual(tree.assign([(1,)], "B"), 1)
        self.assertEqual(tree.value_at((1,)), "B")
        tree.assign([(0,), (1,)], None)
        self.assertIsNone(tree.value_at((0,)))
        self.assertIsNone(tree.value_at((1,)))

    def test_assign_skips_addresses_that_are_not_visible_leaves(self) -> None:
        tree = _tree()
        tree.split((2,))
        self.assertEqual(tree.assign([(0, 1), (2,), (2, 1)], "A"), 1)
        self.assertEqual(tree.value_at((2, 1)), "A")
        self.assertIsInstance(tree.node_at((2,)), Subdivided)


if __name__ == "__main__":
    unittest.main()
