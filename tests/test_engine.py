"""Tests for aspectlint.engine: the validation facade and its per-call state."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import pytest

from aspectlint.engine import Engine, EngineState, ValidationRun
from aspectlint.graph.accessor import GraphAccessError
from aspectlint.messages import MessageCatalogError, parse_messages
from aspectlint.rules.catalog import parse_catalog
from aspectlint.versions import KNOWN_VERSIONS, SAMM_1_0_0, SAMM_2_1_0, UnsupportedVersionError

if TYPE_CHECKING:
    from collections.abc import Callable

    from rdflib import Graph

    from aspectlint.versions import MetaModelVersion

    MakeGraph = Callable[[MetaModelVersion, str], Graph]

NS = "urn:samm:org.eclipse.esmf.samm.test:1.0.0#"

MODEL = """
:Broken a samm:Characteristic ;
   samm:preferredName "Broken"@en , "Kaputt"@en ;
   samm:description ""@en ;
   samm:dataType xsd:string , xsd:maxExclusive .

:Valid a samm:Characteristic ;
   samm:name "Valid" ;
   samm:dataType xsd:string .

:Untyped samm:name "Untyped" .
"""


class TestValidationRun:
    def test_transitions(self) -> None:
        run = ValidationRun(focus=NS + "x", version=SAMM_2_1_0)
        assert run.state is EngineState.IDLE
        run.advance(EngineState.EVALUATING)
        run.advance(EngineState.REPORTED)
        assert run.state is EngineState.REPORTED

    def test_illegal_transition(self) -> None:
        run = ValidationRun(focus=NS + "x", version=SAMM_2_1_0)
        with pytest.raises(RuntimeError, match="Illegal state transition idle -> reported"):
            run.advance(EngineState.REPORTED)

    def test_reported_is_final(self) -> None:
        run = ValidationRun(focus=NS + "x", version=SAMM_2_1_0)
        run.advance(EngineState.EVALUATING)
        run.advance(EngineState.REPORTED)
        with pytest.raises(RuntimeError):
            run.advance(EngineState.EVALUATING)


class TestEngine:
    def test_run_ends_reported(self, engine: Engine, make_graph: MakeGraph) -> None:
        graph = make_graph(SAMM_2_1_0, MODEL)
        run = engine.run(graph, NS + "Broken", "2.1.0")
        assert run.state is EngineState.REPORTED
        assert "datatype-unique" in run.rules_evaluated
        assert run.violations == engine.validate(graph, NS + "Broken", SAMM_2_1_0)

    def test_output_is_sorted(self, engine: Engine, make_graph: MakeGraph) -> None:
        graph = make_graph(SAMM_2_1_0, MODEL)
        violations = engine.validate(graph, NS + "Broken", SAMM_2_1_0)
        assert len(violations) == 4
        assert violations == sorted(violations, key=lambda v: v.sort_key())

    def test_idempotent(
        self, engine: Engine, make_graph: MakeGraph, any_version: MetaModelVersion
    ) -> None:
        graph = make_graph(any_version, MODEL)
        first = engine.validate(graph, NS + "Broken", any_version)
        assert all(engine.validate(graph, NS + "Broken", any_version) == first for _ in range(3))

    def test_does_not_mutate_graph(self, engine: Engine, make_graph: MakeGraph) -> None:
        graph = make_graph(SAMM_2_1_0, MODEL)
        before = set(graph)
        engine.validate(graph, NS + "Broken", SAMM_2_1_0)
        assert set(graph) == before

    def test_same_paths_across_versions(self, engine: Engine, make_graph: MakeGraph) -> None:
        paths = []
        for version in KNOWN_VERSIONS:
            graph = make_graph(version, MODEL)
            violations = engine.validate(graph, NS + "Broken", version)
            local = {v.result_path.rpartition("#")[2] for v in violations}
            paths.append(local - {"name"})
        assert all(p == paths[0] for p in paths)

    def test_legacy_adds_name_rule(self, engine: Engine, make_graph: MakeGraph) -> None:
        graph = make_graph(SAMM_1_0_0, MODEL)
        rules = {v.rule_name for v in engine.validate(graph, NS + "Broken", SAMM_1_0_0)}
        assert "name-required" in rules

    def test_unsupported_version_before_evaluation(self, make_graph: MakeGraph) -> None:
        calls: list[str] = []

        def resolver(key: str, version: MetaModelVersion, **args: str) -> str:
            calls.append(key)
            return key

        engine = Engine(resolver=resolver)
        graph = make_graph(SAMM_2_1_0, MODEL)
        with pytest.raises(UnsupportedVersionError):
            engine.validate(graph, NS + "Broken", "1.1.0")
        assert calls == []

    def test_node_without_kind(self, engine: Engine, make_graph: MakeGraph) -> None:
        graph = make_graph(SAMM_2_1_0, MODEL)
        assert engine.validate(graph, NS + "Untyped", SAMM_2_1_0) == []
        assert engine.validate(graph, NS + "Nowhere", SAMM_2_1_0) == []

    def test_graph_access_error_propagates(self, engine: Engine) -> None:
        with pytest.raises(GraphAccessError):
            engine.validate("not a graph", NS + "Broken", SAMM_2_1_0)  # type: ignore[arg-type]

    def test_injected_catalog_and_resolver(self, make_graph: MakeGraph) -> None:
        catalog = parse_catalog(
            {
                "version": 1,
                "rules": [
                    {
                        "name": "needs-name",
                        "applies_to": ["characteristic"],
                        "check": "required",
                        "paths": ["samm:name"],
                        "message": "NEEDS_NAME",
                    }
                ],
            }
        )

        def resolver(key: str, version: MetaModelVersion, **args: str) -> str:
            return f"{key}:{args['property']}@{version}"

        engine = Engine(catalog=catalog, resolver=resolver)
        graph = make_graph(SAMM_2_1_0, MODEL)
        (violation,) = engine.validate(graph, NS + "Broken", SAMM_2_1_0)
        assert violation.message == "NEEDS_NAME:name@2.1.0"
        assert violation.rule_name == "needs-name"
        assert engine.validate(graph, NS + "Valid", SAMM_2_1_0) == []

    def test_missing_template_fails_at_construction(self) -> None:
        messages = parse_messages({"messages": {"ERR_EMPTY_LIST": "empty"}})
        with pytest.raises(MessageCatalogError, match="Unknown message key"):
            Engine(resolver=messages)

    def test_shared_between_threads(self, engine: Engine, make_graph: MakeGraph) -> None:
        graph = make_graph(SAMM_2_1_0, MODEL)
        expected = engine.validate(graph, NS + "Broken", SAMM_2_1_0)
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(
                pool.map(lambda _: engine.validate(graph, NS + "Broken", SAMM_2_1_0), range(8))
            )
        assert all(r == expected for r in results)
