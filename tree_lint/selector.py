"""Node selectors matched against the current traversal position.

A selector is a chain of node types joined by combinators::

    text                 any node of type "text"
    list list            a list nested anywhere inside another list
    paragraph > text     a text node whose parent is a paragraph
    heading *            any node below a heading
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from tree_lint.tree import TraversalState, TreeNode, node_type

DESCENDANT = " "
CHILD = ">"

_TOKEN_RE = re.compile(r"(\s*)(>|[A-Za-z_][\w-]*|\*)(\s*)")


class SelectorError(ValueError):
    """Raised when a selector query cannot be parsed."""


@dataclass(frozen=True, slots=True)
class _Step:
    node_type: str | None  # None matches any node
    combinator: str | None  # relation to the step on the left; None for the first step

    def accepts(self, node: TreeNode) -> bool:
        return self.node_type is None or node_type(node) == self.node_type


class Selector:
    """Compiled selector query."""

    def __init__(self, query: str, steps: tuple[_Step, ...]) -> None:
        self._query = query
        self._steps = steps

    @property
    def query(self) -> str:
        return self._query

    @classmethod
    def parse(cls, query: str) -> Selector:
        """Compile a query string into a selector."""
        if not isinstance(query, str) or not query.strip():
            raise SelectorError("Selector query must be a non-empty string")

        steps: list[_Step] = []
        pending: str | None = None
        separated = True
        position = 0
        while position < len(query):
            token_match = _TOKEN_RE.match(query, position)
            if token_match is None or token_match.end() == position:
                raise SelectorError(f"Invalid selector {query!r} at offset {position}")
            token = token_match.group(2)
            separated = separated or bool(token_match.group(1))
            position = token_match.end()

            if token == CHILD:
                if not steps or pending == CHILD:
                    raise SelectorError(f"Misplaced '>' in selector {query!r}")
                pending = CHILD
                separated = True
                continue

            if steps and pending is None and not separated:
                raise SelectorError(
                    f"Selector {query!r} needs whitespace or '>' between node types"
                )
            combinator = None
            if steps:
                combinator = pending or DESCENDANT
            steps.append(_Step(node_type=None if token == "*" else token, combinator=combinator))
            pending = None
            separated = bool(token_match.group(3))

        if pending is not None:
            raise SelectorError(f"Selector {query!r} ends with a combinator")
        return cls(query, tuple(steps))

    def match(self, state: TraversalState) -> list[TreeNode] | None:
        """Return the matched nodes, outermost first, or None.

        The last element of a successful match is always the current node.
        """
        current = state.current_node()
        last = self._steps[-1]
        if not last.accepts(current):
            return None
        ancestors = state.ancestors()
        matched = self._match_ancestors(len(self._steps) - 2, ancestors, len(ancestors), last)
        if matched is None:
            return None
        return [*matched, current]

    def _match_ancestors(
        self,
        step_index: int,
        ancestors: list[TreeNode],
        limit: int,
        right: _Step,
    ) -> list[TreeNode] | None:
        # Match steps[0..step_index] against ancestors[0..limit), where `right`
        # is the already matched step sitting at position `limit`.
        if step_index < 0:
            return []
        step = self._steps[step_index]
        if right.combinator == CHILD:
            candidates = range(limit - 1, limit - 2, -1)
        else:
            candidates = range(limit - 1, -1, -1)

        for position in candidates:
            if position < 0:
                break
            if not step.accepts(ancestors[position]):
                continue
            rest = self._match_ancestors(step_index - 1, ancestors, position, step)
            if rest is not None:
                return [*rest, ancestors[position]]
        return None

    def __repr__(self) -> str:
        return f"Selector({self._query!r})"


def parse(query: str) -> Selector:
    """Module-level alias of :meth:`Selector.parse`."""
    return Selector.parse(query)
