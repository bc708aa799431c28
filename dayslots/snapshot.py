from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any

from .database import SlotStore
from .schema import LevelSchema
from .tree import Leaf, Node, PartitionTree, Subdivided

logger = logging.getLogger(__name__)


def encode_tree(tree: PartitionTree) -> list[dict[str, Any]]:
    return [_encode_node(node) for node in tree.root_nodes]


def restore_tree(tree: PartitionTree, data: Any) -> bool:
    """Merge a decoded snapshot into ``tree``.

    Returns False and leaves ``tree`` untouched when the stored day has a
    different number of root slots. Malformed records raise ``ValueError``
    or ``TypeError`` before anything is replaced.
    """
    if not isinstance(data, list):
        raise TypeError("Snapshot must be a list of root records.")
    if len(data) != tree.root_count:
        logger.info(
            "Discarding snapshot with %d root slots (expected %d)", len(data), tree.root_count
        )
        return False
    tree.replace_roots([_decode_node(record, tree.schema, 0) for record in data])
    return True


def load_snapshot(store: SlotStore, tree: PartitionTree) -> bool:
    try:
        raw = store.read_snapshot()
        if raw is None:
            return False
        restored = restore_tree(tree, json.loads(raw))
        if not restored:
            tree.reset()
        return restored
    except (sqlite3.Error, OSError, ValueError, TypeError) as exc:
        # json.JSONDecodeError is a ValueError.
        logger.warning("Ignoring unreadable snapshot: %s", exc)
        tree.reset()
        return False


def save_snapshot(store: SlotStore, tree: PartitionTree) -> bool:
    try:
        store.write_snapshot(json.dumps(encode_tree(tree), separators=(",", ":")))
    except (sqlite3.Error, OSError) as exc:
        logger.warning("Could not save snapshot: %s", exc)
        return False
    return True


def _encode_node(node: Node) -> dict[str, Any]:
    if isinstance(node, Subdivided):
        return {
            "value": None,
            "subdivided": True,
            "children": [_encode_node(child) for child in node.children],
        }
    return {"value": node.value, "subdivided": False, "children": []}


def _decode_node(record: Any, schema: LevelSchema, depth: int) -> Node:
    if not isinstance(record, dict):
        raise TypeError(f"Slot record must be an object, got {type(record).__name__}")
    value = record.get("value")
    if value is not None and not isinstance(value, str):
        raise ValueError(f"Slot value must be a string or null, got {value!r}")

    subdivided = record.get("subdivided", False)
    if not isinstance(subdivided, bool):
        raise TypeError(f"Slot subdivided flag must be a boolean, got {subdivided!r}")
    if not subdivided or depth >= schema.max_depth:
        return Leaf(value or None)

    children: list[Node] = [Leaf() for _ in range(schema.branching(depth))]
    stored = record.get("children") or []
    if not isinstance(stored, list):
        raise TypeError("Slot children must be a list.")
    for index in range(min(len(stored), len(children))):
        children[index] = _decode_node(stored[index], schema, depth + 1)
    return Subdivided(children)
