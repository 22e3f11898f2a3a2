"""aspectlint CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from aspectlint import __version__


@click.group()
@click.version_option(version=__version__, prog_name="aspectlint")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """aspectlint - validate aspect models against the SAMM meta-model rules."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("model", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("focus", nargs=-1)
@click.option(
    "--meta-model-version",
    "version",
    default=None,
    help="Meta-model version to validate against (default: from aspectlint.yml or latest).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich on a TTY, porcelain otherwise).",
)
@click.option("--strict", is_flag=True, default=False, help="Exit with 1 when violations are found.")
@click.option(
    "--rules",
    "rules_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Rules file replacing the packaged rules.",
)
@click.option(
    "--messages",
    "messages_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Message templates replacing the packaged ones.",
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root holding aspectlint.yml (default: current directory).",
)
def validate(
    model: Path,
    focus: tuple[str, ...],
    *,
    version: str | None,
    fmt: str | None,
    strict: bool,
    rules_path: Path | None,
    messages_path: Path | None,
    project: Path | None,
) -> None:
    """Validate MODEL, or only the FOCUS node URIs in it.

    Exit codes: 0 = clean or violations without --strict,
    1 = violations with --strict, 2 = configuration or input error.
    """
    from aspectlint.config import load_config
    from aspectlint.linter import LintError, format_json, format_porcelain, format_rich, lint

    config = load_config(project or Path.cwd())

    # Explicit flag > config file > TTY detection.
    fmt = fmt or config.fmt
    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        result = lint(
            model,
            version=version or config.meta_model_version,
            focus=focus,
            rules_path=rules_path or config.rules_path,
            messages_path=messages_path or config.messages_path,
        )
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    formatters = {
        "rich": format_rich,
        "json": format_json,
        "porcelain": format_porcelain,
    }
    output = formatters[fmt](result)
    if output:
        click.echo(output)

    if (strict or config.strict) and result.violations:
        sys.exit(1)


@main.command()
@click.option(
    "--meta-model-version",
    "version",
    default=None,
    help="Only show rules active for this version.",
)
@click.option(
    "--kind",
    type=click.Choice(["characteristic", "entity", "property"]),
    default=None,
    help="Only show rules for this node kind.",
)
@click.option(
    "--rules",
    "rules_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Rules file replacing the packaged rules.",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def rules(
    *, version: str | None, kind: str | None, rules_path: Path | None, output_json: bool
) -> None:
    """List the rules of the catalog and the versions they are active in."""
    from aspectlint.graph.accessor import NodeKind
    from aspectlint.rules.catalog import RuleCatalogError, default_catalog, load_catalog
    from aspectlint.rules.dispatcher import VersionDispatcher
    from aspectlint.versions import UnsupportedVersionError, parse_version

    try:
        catalog = load_catalog(rules_path) if rules_path is not None else default_catalog()
        parsed = parse_version(version) if version is not None else None
    except (RuleCatalogError, UnsupportedVersionError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    selected = list(catalog.active_rules(parsed) if parsed is not None else catalog.rules)
    if kind is not None:
        selected = [r for r in selected if r.applies_to(NodeKind(kind))]

    dispatcher = VersionDispatcher(catalog)

    def _messages(rule_name: str) -> str:
        if parsed is not None:
            return dispatcher.message_for(rule_name, parsed)
        return ", ".join(m.key for m in catalog.get(rule_name).messages)

    if output_json:
        data = [
            {
                "name": r.name,
                "check": r.check,
                "kinds": [k.value for k in r.kinds],
                "versions": r.versions.describe(),
                "message": _messages(r.name),
                "description": r.description,
            }
            for r in selected
        ]
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    title = f"Rules (meta model {parsed})" if parsed is not None else "Rules"
    table = Table(title=title)
    table.add_column("rule", style="cyan")
    table.add_column("kinds")
    table.add_column("versions")
    table.add_column("message")
    for r in selected:
        table.add_row(
            r.name, ", ".join(k.value for k in r.kinds), r.versions.describe(), _messages(r.name)
        )
    Console().print(table)


@main.command()
def versions() -> None:
    """List the meta-model versions aspectlint can validate against."""
    from aspectlint.versions import KNOWN_VERSIONS, LATEST_VERSION

    for version in KNOWN_VERSIONS:
        marker = " (latest)" if version == LATEST_VERSION else ""
        click.echo(f"{version}{marker}")
