from __future__ import annotations

import logging

from .models import Address
from .schema import LevelSchema, format_clock_label
from .tree import Leaf, PartitionTree, Subdivided, deep_assign

logger = logging.getLogger(__name__)


class OutOfRangeError(ValueError):
    """The requested instant is outside every root slot of the day."""


def slot_indices(schema: LevelSchema, offset: int) -> list[int]:
    """Child index at each depth 1..D for ``offset`` seconds into a root slot."""
    indices = []
    remainder = int(offset)
    for depth in range(1, schema.max_depth + 1):
        index, remainder = divmod(remainder, schema.duration(depth))
        indices.append(index)
    return indices


def split_depth_for(indices: list[int]) -> int:
    for depth in range(len(indices), 0, -1):
        if indices[depth - 1]:
            return depth
    return 0


def start_now(tree: PartitionTree, code: str, now_seconds: int) -> Address:
    """Tag from ``now_seconds`` forward for one root-slot horizon.

    The slot containing the instant is split only as deep as needed to
    start exactly on it; the rest of that slot and the following slots up
    to and including the one straddling ``now + root duration`` are filled
    whole. Returns the visible leaf holding the instant afterwards.
    """
    now_seconds = int(now_seconds)
    schema = tree.schema
    root_index = tree.root_index_at(now_seconds)
    if root_index is None:
        raise OutOfRangeError(f"{format_clock_label(now_seconds)} is outside the tracked day.")

    root_address = (root_index,)
    indices = slot_indices(schema, now_seconds - tree.roots[root_index].start)
    split_depth = split_depth_for(indices)

    if split_depth == 0:
        deep_assign(tree.node_at(root_address), code)
    else:
        path = root_address
        for depth in range(1, split_depth + 1):
            if isinstance(tree.node_at(path), Leaf):
                tree.split(path)
            path = path + (indices[depth - 1],)

        parent = _subdivided_at(tree, root_address + tuple(indices[: split_depth - 1]))
        for child in parent.children[indices[split_depth - 1] :]:
            deep_assign(child, code)

        for depth in range(split_depth - 1, 0, -1):
            parent = _subdivided_at(tree, root_address + tuple(indices[: depth - 1]))
            for child in parent.children[indices[depth - 1] + 1 :]:
                deep_assign(child, code)

    horizon = now_seconds + schema.root_duration
    for root in tree.roots[root_index + 1 :]:
        deep_assign(tree.node_at((root.index,)), code)
        if horizon < root.start + schema.root_duration:
            break

    logger.debug(
        "Started %s at %s (split depth %d)", code, format_clock_label(now_seconds), split_depth
    )
    return tree.leaf_at_time(now_seconds)


def _subdivided_at(tree: PartitionTree, address: Address) -> Subdivided:
    node = tree.node_at(address)
    if not isinstance(node, Subdivided):
        raise RuntimeError(f"Expected a subdivided slot at {address}")
    return node
