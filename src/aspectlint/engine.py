"""Engine facade: validate one focal node of a graph against one meta-model version."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rdflib import URIRef

from aspectlint.graph.accessor import GraphAccessor, NodeKind
from aspectlint.messages import MessageCatalog, default_messages
from aspectlint.reporter import Severity, ViolationRecord, report
from aspectlint.rules.catalog import default_catalog
from aspectlint.rules.dispatcher import VersionDispatcher
from aspectlint.rules.evaluators import CHECKS
from aspectlint.versions import KNOWN_VERSIONS, MetaModelVersion, parse_version
from aspectlint.vocab import vocabulary

if TYPE_CHECKING:
    from rdflib import Graph

    from aspectlint.messages import MessageResolver
    from aspectlint.rules.catalog import ConstraintRule, RuleCatalog
    from aspectlint.rules.evaluators import Finding

logger = logging.getLogger(__name__)


class EngineState(enum.Enum):
    IDLE = "idle"
    EVALUATING = "evaluating"
    REPORTED = "reported"


_TRANSITIONS: dict[EngineState, EngineState] = {
    EngineState.IDLE: EngineState.EVALUATING,
    EngineState.EVALUATING: EngineState.REPORTED,
}


@dataclass
class ValidationRun:
    """State of one validation call; never shared between calls."""

    focus: str
    version: MetaModelVersion
    state: EngineState = EngineState.IDLE
    rules_evaluated: list[str] = field(default_factory=list)
    violations: list[ViolationRecord] = field(default_factory=list)

    def advance(self, target: EngineState) -> None:
        if _TRANSITIONS.get(self.state) is not target:
            msg = f"Illegal state transition {self.state.value} -> {target.value}"
            raise RuntimeError(msg)
        logger.debug("%s@%s: %s -> %s", self.focus, self.version, self.state.value, target.value)
        self.state = target


def _check_templates(catalog: RuleCatalog, messages: MessageCatalog) -> None:
    """Resolve every template the catalog can ask for so gaps surface before any run."""
    for rule in catalog:
        for variant in rule.messages:
            for version in KNOWN_VERSIONS:
                if rule.is_active(version) and variant.versions.contains(version):
                    messages.template(variant.key, version)


class Engine:
    """Runs the catalog's active rules for a node and reports the violations, sorted.

    The engine keeps no per-call state, so one instance can serve
    concurrent calls.  Rules and message templates are injected; both
    default to the ones shipped with the package.
    """

    def __init__(
        self,
        catalog: RuleCatalog | None = None,
        resolver: MessageResolver | None = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else default_catalog()
        self.resolver = resolver if resolver is not None else default_messages()
        self.dispatcher = VersionDispatcher(self.catalog)
        if isinstance(self.resolver, MessageCatalog):
            _check_templates(self.catalog, self.resolver)

    def validate(
        self, graph: Graph, focus: str, version: str | MetaModelVersion
    ) -> list[ViolationRecord]:
        """Validate *focus* in *graph* for *version*; an empty list means it conforms."""
        return self.run(graph, focus, version).violations

    def run(self, graph: Graph, focus: str, version: str | MetaModelVersion) -> ValidationRun:
        parsed = parse_version(version)
        accessor = GraphAccessor(graph, vocabulary(parsed))
        return self.run_with(accessor, focus)

    def run_with(self, accessor: GraphAccessor, focus: str) -> ValidationRun:
        """Validate *focus* through an existing accessor (shared read-only between calls)."""
        version = accessor.vocab.version
        run = ValidationRun(focus=focus, version=version)
        run.advance(EngineState.EVALUATING)

        node = accessor.instance(URIRef(focus))
        if not node.kinds:
            logger.debug("%s is not a Characteristic, Entity or Property; nothing to check", focus)

        records: list[ViolationRecord] = []
        seen: set[str] = set()
        for kind in NodeKind:
            if kind not in node.kinds:
                continue
            for rule in self.dispatcher.active_rules(kind, version):
                if rule.name in seen:
                    continue
                seen.add(rule.name)
                run.rules_evaluated.append(rule.name)
                findings = CHECKS[rule.check](node, accessor, rule.params)
                records.extend(self._record(rule, finding, version) for finding in findings)

        run.violations = report(records)
        run.advance(EngineState.REPORTED)
        return run

    def _record(
        self, rule: ConstraintRule, finding: Finding, version: MetaModelVersion
    ) -> ViolationRecord:
        key = self.dispatcher.message_for(rule.name, version)
        message = self.resolver(
            key,
            version,
            focus=finding.focus,
            path=finding.path,
            property=finding.path.rpartition("#")[2],
            value=finding.value,
        )
        return ViolationRecord(
            message=message,
            focus_node=finding.focus,
            result_path=finding.path,
            severity=Severity[rule.severity.upper()],
            value=finding.value,
            rule_name=rule.name,
        )
