"""Conversion of loosely typed pattern specs into compiled regular expressions.

Rule files cannot hold regex literals, so patterns are written as strings.
A string only needs ``/`` delimiters when it carries flags:

    ""        -> no pattern
    "foo"     -> re.compile("foo")
    "/foo/i"  -> re.compile("foo", re.IGNORECASE)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, TypeAlias

DELIMITER = "/"

FLAGS: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    # str patterns are already Unicode-aware, and only the first match is used.
    "u": re.NOFLAG,
    "g": re.NOFLAG,
}


class PatternError(ValueError):
    """Raised when a pattern spec cannot be compiled."""


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    pattern: re.Pattern[str]


@dataclass(frozen=True, slots=True)
class PatternSource:
    source: str
    flags: str = ""


PatternSpec: TypeAlias = CompiledPattern | PatternSource


def pattern_spec(value: Any) -> PatternSpec | None:
    """Classify a raw pattern value; falsy values mean "no pattern"."""
    if not value:
        return None
    if isinstance(value, (CompiledPattern, PatternSource)):
        return value
    if isinstance(value, re.Pattern):
        return CompiledPattern(value)
    if not isinstance(value, str):
        raise PatternError(f"pattern must be a string or compiled regex, got {type(value).__name__}")
    if value.startswith(DELIMITER):
        last = value.rindex(DELIMITER)
        return PatternSource(source=value[1:last], flags=value[last + 1 :])
    return PatternSource(source=value)


def compile_pattern(value: Any) -> re.Pattern[str] | None:
    """Return a compiled pattern for ``value``, or None when it is empty."""
    spec = pattern_spec(value)
    if spec is None:
        return None
    if isinstance(spec, CompiledPattern):
        return spec.pattern
    try:
        return re.compile(spec.source, _parse_flags(spec.flags))
    except re.error as exc:
        raise PatternError(f"Invalid pattern {spec.source!r}: {exc}") from exc


def _parse_flags(flags: str) -> re.RegexFlag:
    resolved = re.NOFLAG
    seen: set[str] = set()
    for letter in flags:
        if letter not in FLAGS:
            choices = ", ".join(sorted(FLAGS))
            raise PatternError(f"Unsupported pattern flag {letter!r}; expected one of: {choices}")
        if letter in seen:
            raise PatternError(f"Duplicate pattern flag {letter!r}")
        seen.add(letter)
        resolved |= FLAGS[letter]
    return resolved
