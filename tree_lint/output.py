"""Output rendering."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import click

from tree_lint import __version__
from tree_lint.rules import LINT_RULE_FAILURE, Lint


def render_human(lints: list[Lint], content: str) -> str:
    """Render a compact colorized summary with the offending text of each lint."""
    if not lints:
        return click.style("No lint found.", fg="green", bold=True)

    noun = "lint" if len(lints) == 1 else "lints"
    lines: list[str] = [click.style(f"Found {len(lints)} {noun}:", fg="red", bold=True)]
    for index, lint in enumerate(lints, start=1):
        color = "magenta" if lint.rule == LINT_RULE_FAILURE else "yellow"
        header, _, details = lint.message.partition("\n")
        lines.append(
            f"{index}. {click.style(f'[{lint.rule}]', fg=color)} "
            f"{header} ({lint.start}-{lint.end})"
        )
        excerpt = _excerpt(content, lint.start, lint.end)
        if excerpt:
            lines.append(f"   text: {excerpt}")
        for detail in details.splitlines():
            if detail.strip():
                lines.append(f"   {detail}")
    return "\n".join(lines)


def render_json(
    lints: list[Lint],
    *,
    node_path: list[str],
    input_source: str,
    config_source: str | None,
) -> str:
    """Render stable JSON output for CI and automation."""
    payload = build_json_payload(
        lints,
        node_path=node_path,
        input_source=input_source,
        config_source=config_source,
    )
    return json.dumps(payload, sort_keys=True)


def build_json_payload(
    lints: list[Lint],
    *,
    node_path: list[str],
    input_source: str,
    config_source: str | None,
) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    meta: dict[str, Any] = {
        "generated_at": datetime.now(tz=UTC)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z"),
        "node_path": list(node_path),
        "input_source": input_source,
        "config_source": config_source,
        "version": __version__,
    }
    return {
        "lints": [lint.to_dict() for lint in lints],
        "meta": meta,
    }


def _excerpt(content: str, start: int, end: int, max_len: int = 60) -> str:
    if not isinstance(start, int) or not isinstance(end, int):
        return ""
    lo = max(0, min(start, len(content)))
    hi = max(lo, min(end, len(content)))
    text = content[lo:hi].replace("\n", "\\n")
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
