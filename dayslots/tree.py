from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Sequence, Union

from .models import Address, RootSlot
from .schema import LevelSchema, format_clock_label

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[frozenset], bool]


@dataclass
class Leaf:
    value: str | None = None


@dataclass
class Subdivided:
    children: list = field(default_factory=list)


Node = Union[Leaf, Subdivided]


class MergeOutcome(enum.Enum):
    NOOP = "noop"
    MERGED = "merged"
    CLEARED = "cleared"
    ABORTED = "aborted"


class PartitionTree:
    """Forest of root slots, each a tree of leaves and subdivided nodes.

    Addresses are tuples ``(root_index, child_index, ...)``. Only leaves
    reachable through subdivided ancestors are visible; everything that
    selects, assigns or totals works on those.
    """

    def __init__(self, schema: LevelSchema, roots: Sequence[RootSlot]):
        if not roots:
            raise ValueError("A day needs at least one root slot.")
        self.schema = schema
        self.roots = list(roots)
        self._nodes: list[Node] = [Leaf() for _ in self.roots]

    @property
    def root_count(self) -> int:
        return len(self.roots)

    @property
    def root_nodes(self) -> list[Node]:
        return list(self._nodes)

    def replace_roots(self, nodes: Sequence[Node]) -> None:
        if len(nodes) != len(self.roots):
            raise ValueError(
                f"Expected {len(self.roots)} root nodes, got {len(nodes)}."
            )
        self._nodes = list(nodes)

    def reset(self) -> None:
        self._nodes = [Leaf() for _ in self.roots]

    # Lookup

    def node_at(self, address: Sequence[int]) -> Node | None:
        if not address:
            return None
        root_index = address[0]
        if not 0 <= root_index < len(self._nodes):
            return None
        node = self._nodes[root_index]
        for index in address[1:]:
            if not isinstance(node, Subdivided) or not 0 <= index < len(node.children):
                return None
            node = node.children[index]
        return node

    def is_leaf_address(self, address: Sequence[int]) -> bool:
        return isinstance(self.node_at(address), Leaf)

    def value_at(self, address: Sequence[int]) -> str | None:
        node = self.node_at(address)
        return node.value if isinstance(node, Leaf) else None

    def span(self, address: Sequence[int]) -> tuple[int, int]:
        """Start and end of ``address`` in seconds since midnight."""
        start = self.roots[address[0]].start
        for depth, index in enumerate(address[1:], start=1):
            start += index * self.schema.duration(depth)
        return start, start + self.schema.duration(len(address) - 1)

    def label(self, address: Sequence[int]) -> str:
        return format_clock_label(self.span(address)[0])

    def root_index_at(self, seconds: int) -> int | None:
        step = self.schema.root_duration
        for root in self.roots:
            if root.start <= seconds < root.start + step:
                return root.index
        return None

    def leaf_at_time(self, seconds: int) -> Address | None:
        root_index = self.root_index_at(seconds)
        if root_index is None:
            return None
        address = [root_index]
        offset = seconds - self.roots[root_index].start
        node = self._nodes[root_index]
        depth = 0
        while isinstance(node, Subdivided):
            depth += 1
            index, offset = divmod(offset, self.schema.duration(depth))
            address.append(index)
            node = node.children[index]
        return tuple(address)

    # Linearization

    def leaves(self, root_indices: Iterable[int] | None = None) -> list[Address]:
        if root_indices is None:
            root_indices = range(len(self._nodes))
        ordered: list[Address] = []
        for root_index in root_indices:
            for address, _depth, _leaf in _walk(self._nodes[root_index], (root_index,), 0):
                ordered.append(address)
        return ordered

    def columns(self) -> tuple[list[Address], list[Address]]:
        half = (len(self._nodes) + 1) // 2
        return (
            self.leaves(range(0, half)),
            self.leaves(range(half, len(self._nodes))),
        )

    def visible_leaves(self) -> Iterator[tuple[Address, int, Leaf]]:
        for root_index, node in enumerate(self._nodes):
            yield from _walk(node, (root_index,), 0)

    # Structural mutation

    def split(self, address: Sequence[int]) -> bool:
        address = tuple(address)
        node = self.node_at(address)
        depth = len(address) - 1
        if not isinstance(node, Leaf) or depth >= self.schema.max_depth:
            return False
        branching = self.schema.branching(depth)
        self._set_node(address, Subdivided([Leaf(node.value) for _ in range(branching)]))
        logger.debug("Split %s into %d children", self.label(address), branching)
        return True

    def merge(
        self,
        address: Sequence[int],
        target_depth: int,
        confirm: ConfirmCallback | None = None,
    ) -> MergeOutcome:
        """Collapse the ancestor of ``address`` at ``target_depth`` into one leaf.

        A single distinct code among the visible leaves below survives the
        merge. Two or more is a conflict: ``confirm`` receives the codes and
        must return true for the merge to go ahead, which clears the value.
        """
        address = tuple(address)
        if not 0 <= target_depth < len(address):
            return MergeOutcome.NOOP
        target = address[: target_depth + 1]
        node = self.node_at(target)
        if not isinstance(node, Subdivided):
            return MergeOutcome.NOOP

        codes = frozenset(
            leaf.value for _address, _depth, leaf in _walk(node, target, target_depth)
            if leaf.value is not None
        )
        if len(codes) > 1:
            if confirm is None or not confirm(codes):
                logger.debug("Merge of %s declined over %s", self.label(target), sorted(codes))
                return MergeOutcome.ABORTED
            value = None
            outcome = MergeOutcome.CLEARED
        else:
            value = next(iter(codes), None)
            outcome = MergeOutcome.MERGED

        self._set_node(target, Leaf(value))
        logger.debug("Merged %s (%s)", self.label(target), outcome.value)
        return outcome

    def assign(self, addresses: Iterable[Sequence[int]], value: str | None) -> int:
        written = 0
        for address in addresses:
            node = self.node_at(tuple(address))
            if isinstance(node, Leaf):
                node.value = value
                written += 1
        return written

    def _set_node(self, address: Address, node: Node) -> None:
        if len(address) == 1:
            self._nodes[address[0]] = node
            return
        parent = self.node_at(address[:-1])
        if not isinstance(parent, Subdivided):
            raise ValueError(f"No subdivided parent at {address[:-1]}")
        parent.children[address[-1]] = node


def deep_assign(node: Node, value: str | None) -> None:
    """Write ``value`` to every leaf under ``node`` without touching structure."""
    if isinstance(node, Subdivided):
        for child in node.children:
            deep_assign(child, value)
    else:
        node.value = value


def _walk(node: Node, address: Address, depth: int) -> Iterator[tuple[Address, int, Leaf]]:
    if isinstance(node, Subdivided):
        for index, child in enumerate(node.children):
            yield from _walk(child, address + (index,), depth + 1)
    else:
        yield address, depth, node
