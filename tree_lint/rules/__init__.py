"""Rules package."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from tree_lint.rules.base import (
    Lint,
    LintFunction,
    NoViolation,
    PatternMatch,
    SpanViolation,
    WholeContentViolation,
)
from tree_lint.rules.pattern import PatternError, compile_pattern
from tree_lint.rules.rule import (
    LINT_RULE_FAILURE,
    Rule,
    RuleDefinitionError,
    default_selector,
)

__all__ = [
    "LINT_RULE_FAILURE",
    "Lint",
    "LintFunction",
    "NoViolation",
    "PatternError",
    "PatternMatch",
    "Rule",
    "RuleDefinitionError",
    "RuleInfo",
    "SpanViolation",
    "WholeContentViolation",
    "build_rules",
    "compile_pattern",
    "default_selector",
    "list_rule_info",
]


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    name: str
    selector: str | None
    pattern: str | None
    message: str | None
    code_defined: bool
    enabled: bool


def build_rules(
    descriptions: Sequence[Mapping[str, Any]],
    *,
    enabled_rule_names: list[str] | None = None,
    disabled_rule_names: list[str] | None = None,
) -> list[Rule]:
    """Build rule instances from descriptions, applying enable/disable filters."""
    names = _rule_names(descriptions)
    active = _active_names(names, enabled_rule_names, disabled_rule_names)
    return [
        Rule.from_description(description)
        for description, name in zip(descriptions, names, strict=True)
        if name in active
    ]


def list_rule_info(
    descriptions: Sequence[Mapping[str, Any]],
    *,
    enabled_rule_names: list[str] | None = None,
    disabled_rule_names: list[str] | None = None,
) -> list[RuleInfo]:
    """Describe every rule, marking which ones the filters leave enabled."""
    names = _rule_names(descriptions)
    active = _active_names(names, enabled_rule_names, disabled_rule_names)
    infos: list[RuleInfo] = []
    for description, name in zip(descriptions, names, strict=True):
        pattern = description.get("pattern")
        if pattern is not None and not isinstance(pattern, str):
            pattern = getattr(pattern, "pattern", str(pattern))
        infos.append(
            RuleInfo(
                name=name,
                selector=description.get("selector") or None,
                pattern=pattern or None,
                message=description.get("message"),
                code_defined=description.get("lint") is not None,
                enabled=name in active,
            )
        )
    return infos


def _rule_names(descriptions: Sequence[Mapping[str, Any]]) -> list[str]:
    names = [str(description.get("name") or "") for description in descriptions]
    missing = [index for index, name in enumerate(names) if not name]
    if missing:
        joined = ", ".join(str(index) for index in missing)
        raise ValueError(f"Rules at positions {joined} have no name")

    seen: set[str] = set()
    duplicates: list[str] = []
    for name in names:
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)
    if duplicates:
        raise ValueError(f"Duplicate rule names: {', '.join(sorted(duplicates))}")
    return names


def _active_names(
    names: list[str],
    enabled_rule_names: list[str] | None,
    disabled_rule_names: list[str] | None,
) -> set[str]:
    known = set(names)
    requested = set(enabled_rule_names or []) | set(disabled_rule_names or [])
    unknown = [name for name in requested if name not in known]
    if unknown:
        raise ValueError(f"Unknown rule names: {', '.join(sorted(unknown))}")

    disabled = set(disabled_rule_names or [])
    if enabled_rule_names is not None:
        return {name for name in enabled_rule_names if name not in disabled}
    return known - disabled
