from __future__ import annotations

from typing import AbstractSet, Sequence

from .models import Address
from .tree import PartitionTree

DIRECTIONS = ("up", "down", "left", "right")


def resolve_range(tree: PartitionTree, anchor: Sequence[int], target: Sequence[int]) -> list[Address]:
    ordered = tree.leaves()
    positions = {address: position for position, address in enumerate(ordered)}
    start = positions.get(tuple(anchor))
    end = positions.get(tuple(target))
    if start is None or end is None:
        return []
    low, high = min(start, end), max(start, end)
    return ordered[low : high + 1]


def replace_selection(address: Sequence[int]) -> set[Address]:
    return {tuple(address)}


def add_to_selection(selection: AbstractSet[Address], address: Sequence[int]) -> set[Address]:
    return set(selection) | {tuple(address)}


def extend_selection(
    tree: PartitionTree,
    selection: AbstractSet[Address],
    anchor: Sequence[int],
    target: Sequence[int],
) -> set[Address]:
    return set(selection) | set(resolve_range(tree, anchor, target))


def prune_selection(tree: PartitionTree, selection: AbstractSet[Address]) -> set[Address]:
    return {address for address in selection if tree.is_leaf_address(address)}


def navigate(tree: PartitionTree, address: Sequence[int], direction: str) -> Address | None:
    """Move a cursor one step through the two-column layout.

    ``up``/``down`` walk the leaves of the cursor's column and stop at its
    ends. ``left``/``right`` jump to the same row of the other column, or its
    last leaf when that column is shorter.
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown direction: {direction}")
    address = tuple(address)
    columns = tree.columns()
    for column_index, column in enumerate(columns):
        if address not in column:
            continue
        row = column.index(address)
        if direction == "up":
            return column[max(0, row - 1)]
        if direction == "down":
            return column[min(len(column) - 1, row + 1)]
        other = columns[1 - column_index]
        wanted = 1 if direction == "right" else 0
        if column_index == wanted or not other:
            return address
        return other[min(row, len(other) - 1)]
    return None
