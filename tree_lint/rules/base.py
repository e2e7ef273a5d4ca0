"""Lint result model and diagnosis-result variants."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from tree_lint.tree import TraversalState, TreeNode


@dataclass(frozen=True, slots=True)
class Lint:
    """A single lint reported by a rule for one node.

    ``start`` and ``end`` delimit the offending span within the content string
    of the node that was checked, not within the whole source document.
    """

    rule: str
    message: str
    start: int
    end: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule": self.rule,
            "message": self.message,
            "start": self.start,
            "end": self.end,
        }


@dataclass(frozen=True, slots=True)
class PatternMatch:
    """Pattern match handed to diagnosis functions.

    ``groups[0]`` is the matched substring and the remaining items are the
    capture groups. Rules without a pattern receive a match that covers the
    whole content string.
    """

    groups: tuple[str | None, ...]
    index: int
    input: str

    @classmethod
    def from_match(cls, match: re.Match[str]) -> PatternMatch:
        return cls(
            groups=(match.group(0), *match.groups()),
            index=match.start(),
            input=match.string,
        )

    @classmethod
    def whole(cls, content: str) -> PatternMatch:
        return cls(groups=(content,), index=0, input=content)

    @property
    def text(self) -> str:
        return self.groups[0] or ""

    @property
    def start(self) -> int:
        return self.index

    @property
    def end(self) -> int:
        return self.index + len(self.text)

    def group(self, number: int = 0) -> str | None:
        return self.groups[number]

    def __getitem__(self, number: int) -> str | None:
        return self.groups[number]

    def __len__(self) -> int:
        return len(self.groups)


@dataclass(frozen=True, slots=True)
class NoViolation:
    """The diagnosis function found nothing to report."""


@dataclass(frozen=True, slots=True)
class WholeContentViolation:
    """A violation spanning the whole content string."""

    message: str


@dataclass(frozen=True, slots=True)
class SpanViolation:
    """A violation spanning ``[start, end)`` of the content string."""

    message: str
    start: int
    end: int


NO_VIOLATION = NoViolation()

Diagnosis: TypeAlias = NoViolation | WholeContentViolation | SpanViolation

LintFunction: TypeAlias = Callable[
    [TraversalState, str, list[TreeNode], PatternMatch],
    "Diagnosis | str | Mapping[str, Any] | None",
]


def to_diagnosis(value: Any) -> Diagnosis:
    """Convert whatever a diagnosis function returned into a Diagnosis.

    Accepted shapes are a falsy value, a message string, a mapping with
    ``message``/``start``/``end`` keys, or one of the Diagnosis variants.
    """
    if isinstance(value, (NoViolation, WholeContentViolation, SpanViolation)):
        return value
    if not value:
        return NO_VIOLATION
    if isinstance(value, str):
        return WholeContentViolation(value)
    if isinstance(value, Mapping):
        return SpanViolation(
            message=value.get("message") or "",
            start=value["start"],
            end=value["end"],
        )
    raise TypeError(
        "Lint functions must return None, a message string, or a mapping "
        f"with message/start/end keys; got {type(value).__name__}"
    )
