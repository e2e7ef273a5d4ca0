"""Traversal state handed to rules by the tree walker."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

TreeNode = dict[str, Any]


@dataclass(frozen=True, slots=True)
class TraversalState:
    """Position of the walker: the chain of nodes from the root to the current node."""

    path: tuple[TreeNode, ...]

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("TraversalState needs at least one node")

    @classmethod
    def from_types(cls, types: Iterable[str]) -> TraversalState:
        """Build a synthetic state whose nodes only carry a ``type``."""
        return cls(tuple({"type": node_type} for node_type in types))

    @property
    def depth(self) -> int:
        return len(self.path) - 1

    def current_node(self) -> TreeNode:
        return self.path[-1]

    def parent(self) -> TreeNode | None:
        if len(self.path) < 2:
            return None
        return self.path[-2]

    def ancestors(self) -> list[TreeNode]:
        """Return the ancestors of the current node, root first."""
        return list(self.path[:-1])


def node_type(node: TreeNode) -> str | None:
    value = node.get("type")
    return value if isinstance(value, str) else None
