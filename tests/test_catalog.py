"""Tests for aspectlint.rules.catalog: rules.yml parsing and consistency checks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from aspectlint.graph.accessor import NodeKind
from aspectlint.rules.catalog import (
    ConstraintRule,
    MessageVariant,
    RuleCatalog,
    RuleCatalogError,
    default_catalog,
    load_catalog,
    parse_catalog,
)
from aspectlint.rules.evaluators import CHECKS, CheckParams
from aspectlint.versions import KNOWN_VERSIONS, SAMM_1_0_0, SAMM_2_0_0, SAMM_2_2_0, VersionRange

if TYPE_CHECKING:
    from pathlib import Path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _rule(name: str = "name-required", **overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": name,
        "applies_to": ["entity"],
        "check": "required",
        "paths": ["samm:name"],
        "message": "ERR_MISSING_REQUIRED_PROPERTY",
    }
    data.update(overrides)
    return data


def _catalog(*rules: dict[str, Any]) -> dict[str, Any]:
    return {"version": 1, "rules": list(rules)}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParseCatalog:
    def test_minimal_rule(self) -> None:
        catalog = parse_catalog(_catalog(_rule()))
        rule = catalog.get("name-required")
        assert rule.kinds == (NodeKind.ENTITY,)
        assert rule.params == CheckParams(paths=("samm:name",))
        assert rule.messages == (MessageVariant("ERR_MISSING_REQUIRED_PROPERTY"),)
        assert rule.versions == VersionRange()
        assert rule.severity == "violation"

    def test_version_bounds(self) -> None:
        catalog = parse_catalog(_catalog(_rule(since="2.0.0", until="2.1.0")))
        rule = catalog.get("name-required")
        assert not rule.is_active(SAMM_1_0_0)
        assert rule.is_active(SAMM_2_0_0)
        assert not rule.is_active(SAMM_2_2_0)

    def test_message_variants(self) -> None:
        rule_data = _rule(
            messages=[
                {"key": "OLD", "until": "1.0.0"},
                {"key": "NEW", "since": "2.0.0"},
            ]
        )
        del rule_data["message"]
        rule = parse_catalog(_catalog(rule_data)).get("name-required")
        assert [m.key for m in rule.messages] == ["OLD", "NEW"]

    def test_string_applies_to(self) -> None:
        catalog = parse_catalog(_catalog(_rule(applies_to="property")))
        assert catalog.get("name-required").kinds == (NodeKind.PROPERTY,)

    def test_not_a_mapping(self) -> None:
        with pytest.raises(RuleCatalogError, match="must be a YAML mapping"):
            parse_catalog([])

    def test_missing_version(self) -> None:
        with pytest.raises(RuleCatalogError, match="missing required 'version'"):
            parse_catalog({"rules": []})

    def test_unsupported_version(self) -> None:
        with pytest.raises(RuleCatalogError, match="unsupported version 2"):
            parse_catalog({"version": 2, "rules": []})

    def test_missing_name(self) -> None:
        rule = _rule()
        del rule["name"]
        with pytest.raises(RuleCatalogError, match="missing required 'name'"):
            parse_catalog(_catalog(rule))

    def test_missing_check(self) -> None:
        rule = _rule()
        del rule["check"]
        with pytest.raises(RuleCatalogError, match="missing required 'check'"):
            parse_catalog(_catalog(rule))

    def test_invalid_kind(self) -> None:
        with pytest.raises(RuleCatalogError, match="invalid kind 'aspect'"):
            parse_catalog(_catalog(_rule(applies_to=["aspect"])))

    def test_message_and_messages(self) -> None:
        with pytest.raises(RuleCatalogError, match="exactly one of"):
            parse_catalog(_catalog(_rule(messages=[{"key": "X"}])))

    def test_invalid_bound(self) -> None:
        with pytest.raises(RuleCatalogError, match="invalid 'since' bound"):
            parse_catalog(_catalog(_rule(since="1.5.0")))

    def test_negative_max_count(self) -> None:
        with pytest.raises(RuleCatalogError, match="non-negative"):
            parse_catalog(_catalog(_rule(check="max-count", max_count=-1)))


# ---------------------------------------------------------------------------
# Consistency
# ---------------------------------------------------------------------------


class TestCatalogConsistency:
    def test_duplicate_names(self) -> None:
        with pytest.raises(RuleCatalogError, match="Duplicate rule name"):
            parse_catalog(_catalog(_rule(), _rule()))

    def test_unknown_check(self) -> None:
        with pytest.raises(RuleCatalogError, match="unknown check 'magic'"):
            parse_catalog(_catalog(_rule(check="magic")))

    def test_empty_kinds(self) -> None:
        with pytest.raises(RuleCatalogError, match="at least one node kind"):
            parse_catalog(_catalog(_rule(applies_to=[])))

    def test_invalid_severity(self) -> None:
        with pytest.raises(RuleCatalogError, match="invalid severity"):
            parse_catalog(_catalog(_rule(severity="warning")))

    def test_since_after_until(self) -> None:
        with pytest.raises(RuleCatalogError, match="newer than 'until'"):
            parse_catalog(_catalog(_rule(since="2.1.0", until="2.0.0")))

    def test_overlapping_message_variants(self) -> None:
        rule = _rule(messages=[{"key": "A"}, {"key": "B", "since": "2.0.0"}])
        del rule["message"]
        with pytest.raises(RuleCatalogError, match="overlap"):
            parse_catalog(_catalog(rule))

    def test_uncovered_active_version(self) -> None:
        rule = _rule(messages=[{"key": "A", "since": "2.0.0"}])
        del rule["message"]
        with pytest.raises(RuleCatalogError, match="no message variant for active version 1.0.0"):
            parse_catalog(_catalog(rule))

    def test_variants_outside_active_range_are_fine(self) -> None:
        rule = _rule(until="1.0.0", messages=[{"key": "A", "until": "1.0.0"}])
        del rule["message"]
        assert len(parse_catalog(_catalog(rule))) == 1

    def test_direct_construction_is_validated(self) -> None:
        rule = ConstraintRule(
            name="r",
            description="",
            kinds=(NodeKind.ENTITY,),
            check="required",
            params=CheckParams(),
            messages=(),
        )
        with pytest.raises(RuleCatalogError, match="at least one message"):
            RuleCatalog([rule])


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestCatalogQueries:
    def test_declaration_order(self) -> None:
        catalog = parse_catalog(
            _catalog(_rule("b"), _rule("a", applies_to=["property"]), _rule("c"))
        )
        assert [r.name for r in catalog] == ["b", "a", "c"]
        assert [r.name for r in catalog.rules_for(NodeKind.ENTITY, SAMM_2_0_0)] == ["b", "c"]

    def test_rules_for_filters_version(self) -> None:
        catalog = parse_catalog(_catalog(_rule("legacy", until="1.0.0"), _rule("always")))
        assert [r.name for r in catalog.active_rules(SAMM_1_0_0)] == ["legacy", "always"]
        assert [r.name for r in catalog.rules_for(NodeKind.ENTITY, SAMM_2_0_0)] == ["always"]
        assert catalog.rules_for(NodeKind.CHARACTERISTIC, SAMM_1_0_0) == ()

    def test_get_unknown(self) -> None:
        with pytest.raises(KeyError, match="Unknown rule"):
            parse_catalog(_catalog(_rule())).get("missing")


class TestLoadCatalog:
    def test_load_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yml"
        path.write_text(
            "version: 1\n"
            "rules:\n"
            "  - name: characteristic-required\n"
            "    applies_to: [property]\n"
            "    check: required\n"
            "    paths: [samm:characteristic]\n"
            "    message: ERR_MISSING_REQUIRED_PROPERTY\n",
            encoding="utf-8",
        )
        catalog = load_catalog(path)
        assert [r.name for r in catalog] == ["characteristic-required"]

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yml"
        path.write_text("version: [1\n", encoding="utf-8")
        with pytest.raises(RuleCatalogError, match="invalid YAML"):
            load_catalog(path)


class TestDefaultCatalog:
    def test_loads(self) -> None:
        catalog = default_catalog()
        assert len(catalog) > 0
        assert {r.check for r in catalog} <= set(CHECKS)

    def test_every_rule_active_somewhere(self) -> None:
        catalog = default_catalog()
        for rule in catalog:
            assert any(rule.is_active(v) for v in KNOWN_VERSIONS), rule.name

    def test_legacy_only_rules(self) -> None:
        catalog = default_catalog()
        legacy = {r.name for r in catalog.active_rules(SAMM_1_0_0)}
        modern = {r.name for r in catalog.active_rules(SAMM_2_0_0)}
        assert "properties-required" in legacy - modern
        assert "name-required" in legacy - modern
        assert "extends-entity" in modern - legacy
