"""Linter orchestrator: load the model and catalogs, validate nodes, format results."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rdflib import URIRef

from aspectlint.engine import Engine
from aspectlint.graph.accessor import GraphAccessError, GraphAccessor
from aspectlint.graph.loader import load_model
from aspectlint.messages import MessageCatalogError, default_messages, load_messages
from aspectlint.rules.catalog import RuleCatalogError, default_catalog, load_catalog
from aspectlint.versions import parse_version
from aspectlint.vocab import vocabulary

if TYPE_CHECKING:
    from pathlib import Path

    from aspectlint.reporter import ViolationRecord
    from aspectlint.versions import MetaModelVersion


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LintError(Exception):
    """Raised when lint encounters a configuration or input error."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class LintResult:
    """Result of a lint run."""

    version: str = ""
    violations: list[ViolationRecord] = field(default_factory=list)
    nodes_validated: int = 0
    rules_evaluated: int = 0
    elapsed_ms: float = 0.0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def build_engine(
    *, rules_path: Path | None = None, messages_path: Path | None = None
) -> Engine:
    """Create an :class:`Engine` from optional rules/messages files.

    Raises :class:`LintError` when either file is invalid.
    """
    try:
        catalog = load_catalog(rules_path) if rules_path is not None else default_catalog()
        messages = load_messages(messages_path) if messages_path is not None else default_messages()
        return Engine(catalog=catalog, resolver=messages)
    except (RuleCatalogError, MessageCatalogError) as exc:
        msg = f"Invalid rules configuration: {exc}"
        raise LintError(msg) from exc
    except OSError as exc:
        msg = f"Cannot read rules configuration: {exc}"
        raise LintError(msg) from exc


def lint(
    model_path: Path,
    *,
    version: str | MetaModelVersion,
    focus: tuple[str, ...] = (),
    rules_path: Path | None = None,
    messages_path: Path | None = None,
) -> LintResult:
    """Validate nodes of the model in *model_path* and return the results.

    Parameters
    ----------
    model_path:
        Serialized aspect model (Turtle by default).
    version:
        Meta-model version to validate against.
    focus:
        URIs of the nodes to validate.  When empty, every Characteristic,
        Entity and Property described in the model is validated.
    rules_path, messages_path:
        Optional replacements for the packaged rules and message catalogs.

    Raises
    ------
    LintError
        When the model cannot be loaded, the version is unknown, a focus
        node is not described in the model, or a catalog is invalid.
    """
    start = time.monotonic()

    try:
        parsed_version = parse_version(version)
    except ValueError as exc:
        raise LintError(str(exc)) from exc

    engine = build_engine(rules_path=rules_path, messages_path=messages_path)

    try:
        graph = load_model(model_path)
    except GraphAccessError as exc:
        raise LintError(str(exc)) from exc

    accessor = GraphAccessor(graph, vocabulary(parsed_version))
    if focus:
        for uri in focus:
            if not accessor.contains(URIRef(uri)):
                msg = f"Node '{uri}' is not described in {model_path}"
                raise LintError(msg)
        targets = list(focus)
    else:
        targets = [str(node) for node in accessor.validation_targets()]

    violations: list[ViolationRecord] = []
    rules_evaluated: set[str] = set()
    for target in targets:
        run = engine.run_with(accessor, target)
        violations.extend(run.violations)
        rules_evaluated.update(run.rules_evaluated)

    elapsed = (time.monotonic() - start) * 1000
    return LintResult(
        version=parsed_version.to_version_string(),
        violations=violations,
        nodes_validated=len(targets),
        rules_evaluated=len(rules_evaluated),
        elapsed_ms=elapsed,
    )


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_rich(result: LintResult) -> str:
    """Format a LintResult as human-readable text.

    Example output with violations::

        Meta model: 2.1.0
        Nodes: 3 validated, 12 rules evaluated

        x urn:samm:com.example:1.0.0#MyEntity
          samm:properties = urn:samm:com.example:1.0.0#Other
          The property list of ... contains the invalid entry ...

        1 violations found (0.1s)
    """
    lines: list[str] = []

    lines.append(f"Meta model: {result.version}")
    lines.append(f"Nodes: {result.nodes_validated} validated, {result.rules_evaluated} rules evaluated")
    lines.append("")

    elapsed_str = f"{result.elapsed_ms / 1000:.1f}s"

    if result.violations:
        vocab = vocabulary(result.version)
        for v in result.violations:
            lines.append(f"✗ {v.focus_node}")
            location = vocab.shorten(v.result_path)
            if v.value:
                location += f" = {v.value}"
            lines.append(f"  {location}")
            lines.append(f"  {v.message}")
            lines.append("")

        lines.append(f"{len(result.violations)} violations found ({elapsed_str})")
    else:
        lines.append(f"✓ No violations found ({elapsed_str})")

    return "\n".join(lines)


def violation_to_dict(v: ViolationRecord) -> dict[str, str]:
    return {
        "rule_name": v.rule_name,
        "message": v.message,
        "focus_node": v.focus_node,
        "result_path": v.result_path,
        "severity": v.severity.value,
        "value": v.value,
    }


def format_json(result: LintResult) -> str:
    """Format a LintResult as structured JSON with ``violations`` and ``summary``."""
    output: dict[str, object] = {
        "violations": [violation_to_dict(v) for v in result.violations],
        "summary": {
            "meta_model_version": result.version,
            "nodes_validated": result.nodes_validated,
            "rules_evaluated": result.rules_evaluated,
            "violations_count": len(result.violations),
            "elapsed_ms": result.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(result: LintResult) -> str:
    """Format a LintResult as one TAB-separated line per violation.

    Format: ``rule_name<TAB>focus_node<TAB>result_path<TAB>value``.
    Returns an empty string when there are no violations.
    """
    return "\n".join(
        f"{v.rule_name}\t{v.focus_node}\t{v.result_path}\t{v.value}" for v in result.violations
    )
