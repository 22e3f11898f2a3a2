"""Rule catalog: parse rules.yml, validate it, and index rules by node kind and version."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from typing import TYPE_CHECKING

import yaml

from aspectlint.graph.accessor import NodeKind
from aspectlint.rules.evaluators import CHECKS, CheckParams
from aspectlint.versions import (
    KNOWN_VERSIONS,
    MetaModelVersion,
    UnsupportedVersionError,
    VersionRange,
    parse_version,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})
VALID_SEVERITIES: frozenset[str] = frozenset({"violation"})
VALID_KINDS: frozenset[str] = frozenset(kind.value for kind in NodeKind)
DEFAULT_RULES_RESOURCE = "rules.yml"

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RuleCatalogError(ValueError):
    """Raised when a rule catalog is malformed or internally inconsistent."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MessageVariant:
    """A message-template key valid for a range of meta-model versions."""

    key: str
    versions: VersionRange = VersionRange()


@dataclass(frozen=True)
class ConstraintRule:
    """A named constraint: which nodes it applies to, when it is active, what it reports."""

    name: str
    description: str
    kinds: tuple[NodeKind, ...]
    check: str
    params: CheckParams
    messages: tuple[MessageVariant, ...]
    versions: VersionRange = VersionRange()
    severity: str = "violation"

    def is_active(self, version: MetaModelVersion) -> bool:
        return self.versions.contains(version)

    def applies_to(self, kind: NodeKind) -> bool:
        return kind in self.kinds


class RuleCatalog:
    """Immutable, validated collection of :class:`ConstraintRule` in declaration order."""

    def __init__(self, rules: list[ConstraintRule] | tuple[ConstraintRule, ...]) -> None:
        self._rules: tuple[ConstraintRule, ...] = tuple(rules)
        _validate_catalog(self._rules)
        self._by_name: dict[str, ConstraintRule] = {r.name: r for r in self._rules}
        self._by_kind: dict[NodeKind, tuple[ConstraintRule, ...]] = {
            kind: tuple(r for r in self._rules if r.applies_to(kind)) for kind in NodeKind
        }

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[ConstraintRule]:
        return iter(self._rules)

    @property
    def rules(self) -> tuple[ConstraintRule, ...]:
        return self._rules

    def get(self, name: str) -> ConstraintRule:
        """Return the rule called *name*; raises ``KeyError`` if there is none."""
        try:
            return self._by_name[name]
        except KeyError:
            msg = f"Unknown rule '{name}'"
            raise KeyError(msg) from None

    def active_rules(self, version: MetaModelVersion) -> tuple[ConstraintRule, ...]:
        """Return the rules active for *version*, in declaration order."""
        return tuple(r for r in self._rules if r.is_active(version))

    def rules_for(self, kind: NodeKind, version: MetaModelVersion) -> tuple[ConstraintRule, ...]:
        """Return the rules for *kind* active for *version*, in declaration order."""
        return tuple(r for r in self._by_kind[kind] if r.is_active(version))


# ---------------------------------------------------------------------------
# Consistency checks
# ---------------------------------------------------------------------------


def _validate_catalog(rules: tuple[ConstraintRule, ...]) -> None:
    """Fail fast on inconsistent catalogs instead of misbehaving per call."""
    seen: set[str] = set()
    for rule in rules:
        if rule.name in seen:
            msg = f"Duplicate rule name '{rule.name}'"
            raise RuleCatalogError(msg)
        seen.add(rule.name)

        if rule.check not in CHECKS:
            msg = f"Rule '{rule.name}': unknown check '{rule.check}', must be one of {sorted(CHECKS)}"
            raise RuleCatalogError(msg)
        if not rule.kinds:
            msg = f"Rule '{rule.name}': must apply to at least one node kind"
            raise RuleCatalogError(msg)
        if rule.severity not in VALID_SEVERITIES:
            msg = (
                f"Rule '{rule.name}': invalid severity '{rule.severity}', "
                f"must be one of {sorted(VALID_SEVERITIES)}"
            )
            raise RuleCatalogError(msg)

        since, until = rule.versions.since, rule.versions.until
        if since is not None and until is not None and since > until:
            msg = f"Rule '{rule.name}': 'since' {since} is newer than 'until' {until}"
            raise RuleCatalogError(msg)
        active = [v for v in KNOWN_VERSIONS if rule.is_active(v)]
        if not active:
            msg = f"Rule '{rule.name}': not active for any known meta-model version"
            raise RuleCatalogError(msg)

        if not rule.messages:
            msg = f"Rule '{rule.name}': at least one message is required"
            raise RuleCatalogError(msg)
        for i, first in enumerate(rule.messages):
            for second in rule.messages[i + 1 :]:
                if first.versions.overlaps(second.versions):
                    msg = (
                        f"Rule '{rule.name}': message variants '{first.key}' and "
                        f"'{second.key}' overlap ({first.versions.describe()} / "
                        f"{second.versions.describe()})"
                    )
                    raise RuleCatalogError(msg)
        for version in active:
            if not any(m.versions.contains(version) for m in rule.messages):
                msg = f"Rule '{rule.name}': no message variant for active version {version}"
                raise RuleCatalogError(msg)


# ---------------------------------------------------------------------------
# YAML parsing
# ---------------------------------------------------------------------------


def _parse_bound(name: str, data: dict[str, object], key: str) -> MetaModelVersion | None:
    raw = data.get(key)
    if raw is None:
        return None
    try:
        return parse_version(str(raw))
    except UnsupportedVersionError as exc:
        msg = f"Rule '{name}': invalid '{key}' bound: {exc}"
        raise RuleCatalogError(msg) from exc


def _parse_range(name: str, data: dict[str, object]) -> VersionRange:
    return VersionRange(
        since=_parse_bound(name, data, "since"),
        until=_parse_bound(name, data, "until"),
    )


def _parse_str_list(name: str, data: dict[str, object], key: str) -> tuple[str, ...]:
    raw = data.get(key, [])
    if isinstance(raw, str):
        return (raw,)
    if not isinstance(raw, list):
        msg = f"Rule '{name}': '{key}' must be a string or a list"
        raise RuleCatalogError(msg)
    return tuple(str(item) for item in raw)


def _parse_kinds(name: str, data: dict[str, object]) -> tuple[NodeKind, ...]:
    kinds = _parse_str_list(name, data, "applies_to")
    for kind in kinds:
        if kind not in VALID_KINDS:
            msg = f"Rule '{name}': invalid kind '{kind}', must be one of {sorted(VALID_KINDS)}"
            raise RuleCatalogError(msg)
    return tuple(NodeKind(kind) for kind in kinds)


def _parse_messages(name: str, data: dict[str, object]) -> tuple[MessageVariant, ...]:
    """Parse either ``message: KEY`` or a ``messages:`` list of versioned variants."""
    has_message = "message" in data
    has_messages = "messages" in data
    if has_message == has_messages:
        msg = f"Rule '{name}': must have exactly one of 'message' or 'messages'"
        raise RuleCatalogError(msg)

    if has_message:
        return (MessageVariant(key=str(data["message"])),)

    raw = data["messages"]
    if not isinstance(raw, list) or not raw:
        msg = f"Rule '{name}': 'messages' must be a non-empty list"
        raise RuleCatalogError(msg)
    variants: list[MessageVariant] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict) or not item.get("key"):
            msg = f"Rule '{name}': message variant at index {idx} must be a mapping with 'key'"
            raise RuleCatalogError(msg)
        variants.append(MessageVariant(key=str(item["key"]), versions=_parse_range(name, item)))
    return tuple(variants)


def _parse_params(name: str, data: dict[str, object]) -> CheckParams:
    max_count_raw = data.get("max_count", 1)
    try:
        max_count = int(max_count_raw)  # type: ignore[call-overload]
    except (TypeError, ValueError) as exc:
        msg = f"Rule '{name}': 'max_count' must be an integer"
        raise RuleCatalogError(msg) from exc
    if max_count < 0:
        msg = f"Rule '{name}': 'max_count' must be non-negative"
        raise RuleCatalogError(msg)

    return CheckParams(
        paths=_parse_str_list(name, data, "paths"),
        allowed=_parse_str_list(name, data, "allowed"),
        exempt_types=_parse_str_list(name, data, "exempt_types"),
        exempt_if_present=_parse_str_list(name, data, "exempt_if_present"),
        max_count=max_count,
    )


def parse_catalog(data: object, source: str = "rules.yml") -> RuleCatalog:
    """Build a :class:`RuleCatalog` from already-loaded YAML data."""
    if not isinstance(data, dict):
        msg = f"{source} must be a YAML mapping"
        raise RuleCatalogError(msg)

    version = data.get("version")
    if version is None:
        msg = f"{source}: missing required 'version' field"
        raise RuleCatalogError(msg)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"{source}: unsupported version {version}, expected one of {expected}"
        raise RuleCatalogError(msg)

    rules_data = data.get("rules", [])
    if not isinstance(rules_data, list):
        msg = f"{source}: 'rules' must be a list"
        raise RuleCatalogError(msg)

    rules: list[ConstraintRule] = []
    for idx, rule_data in enumerate(rules_data):
        if not isinstance(rule_data, dict):
            msg = f"{source}: rule at index {idx} must be a mapping"
            raise RuleCatalogError(msg)

        name = rule_data.get("name")
        if name is None or not isinstance(name, str) or not name.strip():
            msg = f"{source}: rule at index {idx} missing required 'name' field"
            raise RuleCatalogError(msg)

        check = rule_data.get("check")
        if check is None or not isinstance(check, str):
            msg = f"{source}: rule '{name}' missing required 'check' field"
            raise RuleCatalogError(msg)

        rules.append(
            ConstraintRule(
                name=name,
                description=str(rule_data.get("description", "")),
                kinds=_parse_kinds(name, rule_data),
                check=check,
                params=_parse_params(name, rule_data),
                messages=_parse_messages(name, rule_data),
                versions=_parse_range(name, rule_data),
                severity=str(rule_data.get("severity", "violation")),
            )
        )

    return RuleCatalog(rules)


def load_catalog(rules_path: Path) -> RuleCatalog:
    """Parse a rules file and return a validated :class:`RuleCatalog`.

    Raises :class:`RuleCatalogError` on schema errors (missing version,
    unknown checks, overlapping message variants, etc.).
    """
    try:
        with rules_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        msg = f"{rules_path}: invalid YAML: {exc}"
        raise RuleCatalogError(msg) from exc
    return parse_catalog(data, source=str(rules_path))


def default_catalog() -> RuleCatalog:
    """Return the catalog shipped with the package."""
    resource = resources.files("aspectlint.rules") / "data" / DEFAULT_RULES_RESOURCE
    text = resource.read_text(encoding="utf-8")
    return parse_catalog(yaml.safe_load(text), source=DEFAULT_RULES_RESOURCE)
