"""Lint rules evaluated once per node during a tree traversal.

A rule combines a name, a selector, an optional pattern and a lint function.
``Rule.check()`` takes the same ``(node, state, content)`` arguments as a
traversal callback and uses them as follows:

- The selector is matched against the traversal state. If it does not match,
  the rule does not apply to this node and ``check()`` returns None.

- The node's content string is searched with the pattern. If the rule has a
  pattern and it does not match, ``check()`` returns None. A rule without a
  pattern treats the whole content string as matched.

- The lint function is called with the traversal state, the content string,
  the nodes returned by the selector and the pattern match. It returns None
  when there is nothing to report, a message string when the whole content is
  at fault, or a mapping with ``message``, ``start`` and ``end`` keys that
  pinpoints the offending span of the content string.

Either the selector or the pattern may be omitted, but not both. Without a
selector, the rule applies to ``text`` nodes. Passing a message string
instead of a function gives a rule that reports the message for the span the
pattern matched, which is enough for rules described in TOML or JSON files.
See :meth:`Rule.from_description`.
"""

from __future__ import annotations

import functools
import logging
import re
import traceback
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from tree_lint.rules.base import (
    Diagnosis,
    Lint,
    LintFunction,
    NoViolation,
    PatternMatch,
    SpanViolation,
    WholeContentViolation,
    to_diagnosis,
)
from tree_lint.rules.pattern import compile_pattern
from tree_lint.selector import Selector
from tree_lint.tree import TraversalState, TreeNode

logger = logging.getLogger(__name__)

UNNAMED_RULE = "unnamed rule"
LINT_RULE_FAILURE = "lint-rule-failure"
DEFAULT_SELECTOR_QUERY = "text"


class RuleDefinitionError(ValueError):
    """Raised when a rule definition cannot produce a usable rule."""


@functools.cache
def default_selector() -> Selector:
    """Return the shared selector used by rules defined without one."""
    return Selector.parse(DEFAULT_SELECTOR_QUERY)


@dataclass(frozen=True, slots=True)
class LintFunctionSpec:
    function: Callable[..., Any]


@dataclass(frozen=True, slots=True)
class StaticMessage:
    text: str | None


DiagnosisSpec: TypeAlias = LintFunctionSpec | StaticMessage


def diagnosis_spec(value: Any) -> DiagnosisSpec:
    """Classify the lint argument of a rule: a function, or a static message."""
    if isinstance(value, (LintFunctionSpec, StaticMessage)):
        return value
    if callable(value):
        return LintFunctionSpec(value)
    if value is not None and not isinstance(value, str):
        raise RuleDefinitionError(
            f"lint must be a function or a message string, got {type(value).__name__}"
        )
    return StaticMessage(value)


class Rule:
    """A lint rule. See the module docstring for how rules are evaluated."""

    __slots__ = ("_name", "_selector", "_pattern", "_lint", "_message")

    def __init__(
        self,
        name: str | None = None,
        selector: Selector | None = None,
        pattern: re.Pattern[str] | None = None,
        lint: LintFunction | str | None = None,
    ) -> None:
        if selector is None and pattern is None:
            raise RuleDefinitionError("Lint rules must have a selector or pattern")

        self._name = name or UNNAMED_RULE
        self._selector = selector if selector is not None else default_selector()
        self._pattern = pattern

        spec = diagnosis_spec(lint)
        if isinstance(spec, LintFunctionSpec):
            self._lint: Callable[..., Any] = spec.function
            self._message: str | None = None
        else:
            self._lint = self._default_lint
            self._message = spec.text

    @classmethod
    def from_description(cls, description: Mapping[str, Any]) -> Rule:
        """Build a rule from a plain mapping, e.g. one entry of a rule file.

        Recognized keys are ``name``, ``selector`` (a query string),
        ``pattern`` (a string such as ``"foo"`` or ``"/foo/i"``, or a compiled
        regex), ``message`` and ``lint`` (a function, used instead of
        ``message`` when present).
        """
        selector_query = description.get("selector")
        return cls(
            description.get("name"),
            Selector.parse(selector_query) if selector_query else None,
            compile_pattern(description.get("pattern")),
            description.get("lint") or description.get("message"),
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def selector(self) -> Selector:
        return self._selector

    @property
    def pattern(self) -> re.Pattern[str] | None:
        return self._pattern

    @property
    def message(self) -> str | None:
        return self._message

    @property
    def lint(self) -> Callable[..., Any]:
        return self._lint

    def check(self, node: TreeNode, state: TraversalState, content: str) -> Lint | None:
        """Check the current node against this rule; return a Lint or None."""
        selector_match = self._selector.match(state)
        if not selector_match:
            return None

        if self._pattern is None:
            pattern_match = PatternMatch.whole(content)
        else:
            found = self._pattern.search(content)
            if found is None:
                return None
            pattern_match = PatternMatch.from_match(found)

        try:
            diagnosis = to_diagnosis(self._lint(state, content, selector_match, pattern_match))
            return self._to_lint(diagnosis, content)
        except Exception as exc:
            # Failures inside the lint function never escape check().
            logger.warning("Lint rule %s raised %s: %s", self._name, type(exc).__name__, exc)
            return Lint(
                rule=LINT_RULE_FAILURE,
                message=(
                    f"Exception in rule {self._name}: {exc}\n"
                    f"Stack trace:\n{traceback.format_exc()}"
                ),
                start=0,
                end=len(content),
            )

    def _to_lint(self, diagnosis: Diagnosis, content: str) -> Lint | None:
        if isinstance(diagnosis, NoViolation):
            return None
        if isinstance(diagnosis, WholeContentViolation):
            return Lint(rule=self._name, message=diagnosis.message, start=0, end=len(content))
        if not _within(diagnosis.start, diagnosis.end, len(content)):
            logger.debug(
                "Rule %s reported span [%s, %s) outside content of length %d",
                self._name,
                diagnosis.start,
                diagnosis.end,
                len(content),
            )
        return Lint(
            rule=self._name,
            message=diagnosis.message,
            start=diagnosis.start,
            end=diagnosis.end,
        )

    def _default_lint(
        self,
        state: TraversalState,
        content: str,
        selector_match: list[TreeNode],
        pattern_match: PatternMatch,
    ) -> SpanViolation:
        # Used when the rule was given a message instead of a function: the
        # selector and pattern matching is the whole test.
        return SpanViolation(
            message=self._message or "",
            start=pattern_match.index,
            end=pattern_match.index + len(pattern_match.text),
        )

    def __repr__(self) -> str:
        pattern = self._pattern.pattern if self._pattern is not None else None
        return f"Rule(name={self._name!r}, selector={self._selector.query!r}, pattern={pattern!r})"


def _within(start: Any, end: Any, length: int) -> bool:
    if not isinstance(start, int) or not isinstance(end, int):
        return False
    return 0 <= start <= end <= length
