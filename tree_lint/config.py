"""Configuration loading for tree-lint."""

from __future__ import annotations

import importlib
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_FILENAMES = (".tree-lint.toml", "tree-lint.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("tree_lint", "tree-lint")
RULE_KEYS = {"name", "selector", "pattern", "message", "lint"}


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    fail_on_lint: bool = False
    rule_enable: list[str] | None = None
    rule_disable: list[str] = field(default_factory=list)
    rules: list[dict[str, Any]] = field(default_factory=list)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "fail_on_lint": self.fail_on_lint,
            "rules": {
                "enable": list(self.rule_enable) if self.rule_enable is not None else None,
                "disable": list(self.rule_disable),
            },
            "rule": [_describe_rule(item) for item in self.rules],
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template with a couple of example rules."""
    return "\n".join(
        [
            'format = "human"',
            "fail_on_lint = true",
            "",
            "[rules]",
            "# enable = [\"nested-lists\"]",
            "disable = []",
            "",
            "[[rule]]",
            'name = "nested-lists"',
            'selector = "list list"',
            'message = "Nested lists are hard to read on mobile devices; avoid extra indentation."',
            "",
            "[[rule]]",
            'name = "double-spacing"',
            'selector = "text"',
            'pattern = "\\\\s\\\\s+"',
            'message = "Use a single space between words."',
            "",
            "[[rule]]",
            'name = "todo-marker"',
            'pattern = "/\\\\btodo\\\\b/i"',
            'message = "Remove TODO markers before publishing."',
            "",
            "# Rules needing custom logic can point at a Python function:",
            "# [[rule]]",
            '# name = "long-paragraph"',
            '# selector = "paragraph"',
            '# pattern = "/^.{501,}/s"',
            '# lint = "my_project.lint:long_paragraph"',
            "",
        ]
    )


def resolve_lint_reference(reference: str, field_name: str = "rule.lint") -> Any:
    """Import the callable named by a ``module:attribute`` reference."""
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"{field_name} must look like 'module:function', got {reference!r}")
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"{field_name}: cannot import module {module_name!r}: {exc}") from exc
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ValueError(f"{field_name}: {reference!r} does not exist") from exc
    if not callable(target):
        raise ValueError(f"{field_name}: {reference!r} is not callable")
    return target


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    rules_mapping = _as_table(mapping.get("rules"), "rules")

    raw_format = mapping.get("format", "human")
    format_value = str(raw_format).lower()
    if format_value not in {"human", "json"}:
        format_value = "human"

    return AppConfig(
        format=format_value,
        fail_on_lint=_as_bool(mapping.get("fail_on_lint", False), "fail_on_lint"),
        rule_enable=_as_str_list_or_none(rules_mapping.get("enable")),
        rule_disable=_as_str_list(rules_mapping.get("disable")),
        rules=_parse_rule_list(mapping.get("rule"), "rule"),
        source=source,
    )


def _parse_rule_list(value: Any, field_name: str) -> list[dict[str, Any]]:
    items = _as_table_list(value, field_name)
    parsed: list[dict[str, Any]] = []
    for index, item in enumerate(items):
        item_field = f"{field_name}[{index}]"
        unknown = sorted(set(item) - RULE_KEYS)
        if unknown:
            raise ValueError(f"{item_field} has unknown keys: {', '.join(unknown)}")
        description: dict[str, Any] = {"name": _as_str(item.get("name"), f"{item_field}.name")}
        for key in ("selector", "pattern", "message"):
            if key in item:
                description[key] = _as_str(item[key], f"{item_field}.{key}")
        if "lint" in item:
            reference = _as_str(item["lint"], f"{item_field}.lint")
            description["lint"] = resolve_lint_reference(reference, f"{item_field}.lint")
            description["lint_ref"] = reference
        if not description.get("selector") and not description.get("pattern"):
            raise ValueError(f"{item_field} needs a selector or a pattern")
        parsed.append(description)
    return parsed


def _describe_rule(description: dict[str, Any]) -> dict[str, Any]:
    output = {
        key: description[key]
        for key in ("name", "selector", "pattern", "message")
        if key in description
    }
    if "lint_ref" in description:
        output["lint"] = description["lint_ref"]
    return output


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_table_list(value: Any, field_name: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of tables")
    output: list[dict[str, Any]] = []
    for item in value:
        if not isinstance(item, dict):
            raise ValueError(f"{field_name} must be a list of tables")
        output.append(item)
    return output


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("Expected a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError("Expected a list of strings")
        items.append(item)
    return items


def _as_str_list_or_none(value: Any) -> list[str] | None:
    if value is None:
        return None
    return _as_str_list(value)


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a boolean")
    return raw
