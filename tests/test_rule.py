"""Tests for lint rule construction and evaluation."""

from __future__ import annotations

import logging
import re
from typing import Any

import pytest

from tree_lint.rules import (
    LINT_RULE_FAILURE,
    Lint,
    NoViolation,
    PatternMatch,
    Rule,
    RuleDefinitionError,
    SpanViolation,
    WholeContentViolation,
    default_selector,
)
from tree_lint.rules.base import to_diagnosis
from tree_lint.selector import Selector
from tree_lint.tree import TraversalState


def _state(*types: str) -> TraversalState:
    return TraversalState.from_types(types)


def _check(rule: Rule, state: TraversalState, content: str) -> Lint | None:
    return rule.check(state.current_node(), state, content)


def test_rule_requires_selector_or_pattern() -> None:
    with pytest.raises(RuleDefinitionError):
        Rule("empty", None, None, "message")
    with pytest.raises(ValueError):
        Rule.from_description({"name": "empty", "message": "nothing to match"})


def test_rule_defaults() -> None:
    rule = Rule(pattern=re.compile("x"), lint="found x")
    assert rule.name == "unnamed rule"
    assert rule.selector is default_selector()
    assert rule.message == "found x"


def test_default_selector_is_a_shared_text_selector() -> None:
    selector = default_selector()
    assert selector is default_selector()
    assert selector.match(_state("paragraph", "text")) is not None
    assert selector.match(_state("paragraph")) is None
    assert selector.match(_state("text", "emphasis")) is None


def test_function_lint_leaves_message_unset() -> None:
    def lint(*_: Any) -> str:
        return "bad"

    rule = Rule("fn", Selector.parse("paragraph"), None, lint)
    assert rule.lint is lint
    assert rule.message is None


def test_rule_attributes_are_read_only() -> None:
    rule = Rule("fixed", Selector.parse("text"), None, "msg")
    with pytest.raises(AttributeError):
        rule.name = "changed"  # type: ignore[misc]


def test_check_returns_none_when_selector_does_not_match() -> None:
    calls: list[str] = []

    def lint(*_: Any) -> str:
        calls.append("called")
        return "always"

    rule = Rule("para", Selector.parse("paragraph"), re.compile(".*"), lint)
    assert _check(rule, _state("heading", "text"), "anything") is None
    assert calls == []


def test_check_returns_none_when_pattern_does_not_match() -> None:
    rule = Rule("digits", Selector.parse("text"), re.compile(r"\d+"), "has digits")
    assert _check(rule, _state("paragraph", "text"), "no numbers here") is None


def test_rule_without_selector_only_applies_to_text_nodes() -> None:
    rule = Rule("digits", None, re.compile(r"\d+"), "has digits")
    assert _check(rule, _state("paragraph"), "abc 123") is None
    lint = _check(rule, _state("paragraph", "text"), "abc 123")
    assert lint == Lint(rule="digits", message="has digits", start=4, end=7)


def test_string_result_covers_whole_content() -> None:
    content = "seventeen chars!!"
    assert len(content) == 17
    rule = Rule("whole", Selector.parse("text"), None, lambda *_: "bad")
    assert _check(rule, _state("text"), content) == Lint(
        rule="whole", message="bad", start=0, end=17
    )


def test_mapping_result_is_passed_through() -> None:
    rule = Rule(
        "span",
        Selector.parse("text"),
        None,
        lambda *_: {"message": "bad span", "start": 5, "end": 8},
    )
    assert _check(rule, _state("text"), "some text content") == Lint(
        rule="span", message="bad span", start=5, end=8
    )


def test_out_of_range_span_is_not_clamped(caplog: pytest.LogCaptureFixture) -> None:
    rule = Rule(
        "wide",
        Selector.parse("text"),
        None,
        lambda *_: SpanViolation(message="too far", start=2, end=40),
    )
    with caplog.at_level(logging.DEBUG, logger="tree_lint.rules.rule"):
        lint = _check(rule, _state("text"), "short")
    assert lint == Lint(rule="wide", message="too far", start=2, end=40)
    assert "outside content" in caplog.text


@pytest.mark.parametrize("result", [None, "", 0, {}, NoViolation()])
def test_falsy_result_means_no_lint(result: Any) -> None:
    rule = Rule("quiet", Selector.parse("text"), None, lambda *_: result)
    assert _check(rule, _state("text"), "content") is None


def test_variant_results_are_normalized() -> None:
    whole = Rule("whole", Selector.parse("text"), None, lambda *_: WholeContentViolation("w"))
    assert _check(whole, _state("text"), "abc") == Lint(rule="whole", message="w", start=0, end=3)


def test_failing_lint_function_becomes_rule_failure_lint(
    caplog: pytest.LogCaptureFixture,
) -> None:
    def broken(*_: Any) -> str:
        raise RuntimeError("kaboom")

    rule = Rule("fragile", Selector.parse("text"), None, broken)
    content = "some content"
    with caplog.at_level(logging.WARNING, logger="tree_lint.rules.rule"):
        lint = _check(rule, _state("text"), content)

    assert lint is not None
    assert lint.rule == LINT_RULE_FAILURE
    assert "fragile" in lint.message
    assert "kaboom" in lint.message
    assert "Traceback" in lint.message
    assert (lint.start, lint.end) == (0, len(content))
    assert "fragile" in caplog.text


def test_unsupported_result_type_becomes_rule_failure_lint() -> None:
    rule = Rule("odd", Selector.parse("text"), None, lambda *_: 42)
    lint = _check(rule, _state("text"), "xyz")
    assert lint is not None
    assert lint.rule == LINT_RULE_FAILURE
    assert "odd" in lint.message


def test_static_message_reports_pattern_span() -> None:
    rule = Rule("too-long", Selector.parse("text"), re.compile(r".{10,}"), "too long")
    content = "xxxxxxxxxxxxxxx"
    assert _check(rule, _state("text"), content) == Lint(
        rule="too-long", message="too long", start=0, end=15
    )


def test_static_message_span_follows_match_position() -> None:
    rule = Rule("shout", None, re.compile(r"[A-Z]{3,}"), "no shouting")
    lint = _check(rule, _state("text"), "well HELLO there")
    assert lint == Lint(rule="shout", message="no shouting", start=5, end=10)


def test_lint_function_receives_all_match_data() -> None:
    seen: dict[str, Any] = {}

    def lint(
        state: TraversalState,
        content: str,
        selector_match: list[dict[str, Any]],
        pattern_match: PatternMatch,
    ) -> None:
        seen.update(
            state=state,
            content=content,
            selector_match=selector_match,
            pattern_match=pattern_match,
        )

    state = _state("list", "listItem", "list")
    rule = Rule("inspect", Selector.parse("list list"), re.compile(r"(\w+)@(\w+)"), lint)
    assert _check(rule, state, "mail bob@example now") is None

    assert seen["state"] is state
    assert seen["content"] == "mail bob@example now"
    assert [node["type"] for node in seen["selector_match"]] == ["list", "list"]
    match = seen["pattern_match"]
    assert match[0] == "bob@example"
    assert match.group(1) == "bob"
    assert match[2] == "example"
    assert (match.index, match.end) == (5, 16)
    assert match.input == "mail bob@example now"


def test_rule_without_pattern_gets_whole_content_match() -> None:
    captured: list[PatternMatch] = []
    rule = Rule("all", Selector.parse("text"), None, lambda *args: captured.append(args[3]))
    _check(rule, _state("text"), "entire")
    assert captured == [PatternMatch(groups=("entire",), index=0, input="entire")]


def test_rule_is_reusable_across_nodes() -> None:
    rule = Rule.from_description({"name": "digits", "pattern": r"\d+", "message": "digits"})
    first = _check(rule, _state("text"), "a1")
    second = _check(rule, _state("text"), "bb22")
    assert first == Lint(rule="digits", message="digits", start=1, end=2)
    assert second == Lint(rule="digits", message="digits", start=2, end=4)


def test_description_rule_without_message_or_lint() -> None:
    rule = Rule.from_description({"name": "nested-lists", "selector": "list list"})
    state = _state("list", "listItem", "list")
    assert _check(rule, state, "a") == Lint(rule="nested-lists", message="", start=0, end=1)


def test_description_rule_with_lint_function() -> None:
    def too_long(
        state: TraversalState,
        content: str,
        selector_match: Any,
        pattern_match: Any,
    ) -> str:
        return f"too long: {len(content)}"

    rule = Rule.from_description(
        {
            "name": "long-paragraph",
            "selector": "paragraph",
            "pattern": "/^.{5,}/",
            "lint": too_long,
        }
    )
    assert rule.message is None
    assert _check(rule, _state("root", "paragraph"), "abcdef") == Lint(
        rule="long-paragraph", message="too long: 6", start=0, end=6
    )
    assert _check(rule, _state("root", "paragraph"), "abc") is None


def test_description_lint_takes_precedence_over_message() -> None:
    rule = Rule.from_description(
        {"name": "both", "selector": "text", "message": "static", "lint": lambda *_: "dynamic"}
    )
    lint = _check(rule, _state("text"), "x")
    assert lint is not None
    assert lint.message == "dynamic"


def test_description_accepts_compiled_pattern() -> None:
    pattern = re.compile("b+")
    rule = Rule.from_description({"name": "bees", "pattern": pattern, "message": "bees"})
    assert rule.pattern is pattern


def test_non_string_message_is_rejected() -> None:
    with pytest.raises(RuleDefinitionError):
        Rule("bad", Selector.parse("text"), None, 12)  # type: ignore[arg-type]


def test_to_diagnosis_requires_span_keys() -> None:
    with pytest.raises(KeyError):
        to_diagnosis({"message": "no span"})
    assert to_diagnosis({"start": 1, "end": 2}) == SpanViolation(message="", start=1, end=2)


@pytest.mark.parametrize(
    ("start", "end"),
    [(None, None), ("5", "8"), (1.5, 3)],
)
def test_non_integer_span_is_passed_through(start: Any, end: Any) -> None:
    rule = Rule(
        "loose",
        Selector.parse("text"),
        None,
        lambda *_: {"message": "m", "start": start, "end": end},
    )
    lint = _check(rule, _state("text"), "content")
    assert lint == Lint(rule="loose", message="m", start=start, end=end)
