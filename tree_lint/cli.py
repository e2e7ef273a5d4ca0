"""CLI entrypoint for tree-lint."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated

import typer

from tree_lint import __version__
from tree_lint.config import AppConfig, default_config_template, load_app_config
from tree_lint.output import render_human, render_json
from tree_lint.rules import Lint, Rule, build_rules, list_rule_info
from tree_lint.tree import TraversalState

app = typer.Typer(
    name="tree-lint",
    no_args_is_help=True,
    help="Evaluate declarative lint rules against document tree nodes.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("check")
def check_command(
    path: Annotated[
        str,
        typer.Option(help="Node types from the root to the checked node, e.g. 'list list'."),
    ] = "text",
    content: Annotated[str | None, typer.Option(help="Content string of the node.")] = None,
    content_file: Annotated[
        Path | None, typer.Option(help="Read the node content from a file.")
    ] = None,
    stdin: Annotated[bool, typer.Option(help="Read the node content from stdin.")] = False,
    repo: Annotated[Path, typer.Option(help="Project path.")] = Path("."),
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    fail_on_lint: Annotated[
        bool | None,
        typer.Option("--fail-on-lint/--no-fail-on-lint", help="Exit nonzero when lint is found."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Check one node against every configured rule."""
    app_config = _load_config_or_raise(repo, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    node_path = path.split()
    if not node_path:
        raise typer.BadParameter("path must name at least one node type", param_hint="--path")

    text, input_source = _resolve_content(content=content, content_file=content_file, stdin=stdin)
    rules = _build_configured_rules_or_raise(app_config)
    lints = check_node(rules, TraversalState.from_types(node_path), text)

    if output_format == "json":
        typer.echo(
            render_json(
                lints,
                node_path=node_path,
                input_source=input_source,
                config_source=app_config.source,
            )
        )
    else:
        typer.echo(render_human(lints, text))

    should_fail = fail_on_lint if fail_on_lint is not None else app_config.fail_on_lint
    if should_fail and lints:
        raise typer.Exit(code=1)
    raise typer.Exit(code=0)


@app.command("rules")
def rules_command(
    repo: Annotated[Path, typer.Option(help="Project path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List configured lint rules."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    try:
        rule_info = list_rule_info(
            app_config.rules,
            enabled_rule_names=app_config.rule_enable,
            disabled_rule_names=app_config.rule_disable,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc

    if output_format == "json":
        payload = {
            "rules": [
                {
                    "name": item.name,
                    "selector": item.selector,
                    "pattern": item.pattern,
                    "message": item.message,
                    "code_defined": item.code_defined,
                    "enabled": item.enabled,
                }
                for item in rule_info
            ],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    if not rule_info:
        typer.echo("No rules configured.")
        return
    lines = ["Configured rules:"]
    for item in rule_info:
        status = "enabled" if item.enabled else "disabled"
        match_desc = " ".join(
            part
            for part in (
                f"selector={item.selector!r}" if item.selector else "",
                f"pattern={item.pattern!r}" if item.pattern else "",
            )
            if part
        )
        lines.append(f"- {item.name} [{status}] {match_desc}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Project path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    active_rules = _build_configured_rules_or_raise(app_config)
    payload = app_config.to_dict()
    payload["active_rule_names"] = [rule.name for rule in active_rules]

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- fail_on_lint: {payload['fail_on_lint']}",
        f"- rules.enable: {payload['rules']['enable']}",
        f"- rules.disable: {payload['rules']['disable']}",
        f"- active_rule_names: {payload['active_rule_names']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".tree-lint.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter config file with example rules."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    repo: Annotated[Path, typer.Option(help="Project path.")] = Path("."),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".tree-lint.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file, compiling every selector and pattern."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    active_rules = _build_configured_rules_or_raise(app_config)
    payload = {
        "ok": True,
        "source": app_config.source,
        "active_rule_names": [rule.name for rule in active_rules],
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- active_rule_names: {payload['active_rule_names']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def check_node(rules: list[Rule], state: TraversalState, content: str) -> list[Lint]:
    """Run every rule once against the current node, in rule order."""
    node = state.current_node()
    lints: list[Lint] = []
    for rule in rules:
        lint = rule.check(node, state, content)
        if lint is not None:
            lints.append(lint)
    return lints


def _resolve_content(
    *,
    content: str | None,
    content_file: Path | None,
    stdin: bool,
) -> tuple[str, str]:
    provided = sum(1 for item in (content is not None, content_file is not None, stdin) if item)
    if provided != 1:
        raise typer.BadParameter("Provide exactly one of --content, --content-file or --stdin.")
    if content is not None:
        return (content, "option")
    if content_file is not None:
        try:
            return (content_file.read_text(encoding="utf-8"), f"content_file:{content_file}")
        except (OSError, UnicodeDecodeError) as exc:
            raise typer.BadParameter(str(exc), param_hint="--content-file") from exc
    return (sys.stdin.read(), "stdin")


def _load_config_or_raise(repo: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_configured_rules_or_raise(app_config: AppConfig) -> list[Rule]:
    # Selector, pattern and rule definition errors are all ValueErrors.
    try:
        return build_rules(
            app_config.rules,
            enabled_rule_names=app_config.rule_enable,
            disabled_rule_names=app_config.rule_disable,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rule") from exc
