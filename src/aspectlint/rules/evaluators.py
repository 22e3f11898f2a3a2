"""Constraint evaluators: pure checks run against one node through the graph accessor.

Every check has the signature ``check(node, accessor, params) -> list[Finding]``
and is registered by name in :data:`CHECKS`.  Checks never raise for
data-shape problems; a condition either yields findings or it does not.
Version-specific behaviour is not decided here: the catalog decides which
checks run for a version and which message each finding gets.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rdflib import BNode, Literal, URIRef

from aspectlint.graph.accessor import NodeKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from rdflib.term import Node

    from aspectlint.graph.accessor import GraphAccessor, InstanceNode

    Check = Callable[[InstanceNode, GraphAccessor, "CheckParams"], "list[Finding]"]

# BCP 47 language tags (RFC 5646 section 2.1, without the grandfathered list).
_LANGTAG_RE = re.compile(
    r"^(?:"
    r"(?:[a-z]{2,3}(?:-[a-z]{3}){0,3}|[a-z]{4}|[a-z]{5,8})"
    r"(?:-[a-z]{4})?"
    r"(?:-(?:[a-z]{2}|[0-9]{3}))?"
    r"(?:-(?:[a-z0-9]{5,8}|[0-9][a-z0-9]{3}))*"
    r"(?:-[0-9a-wy-z](?:-[a-z0-9]{2,8})+)*"
    r"(?:-x(?:-[a-z0-9]{1,8})+)?"
    r"|x(?:-[a-z0-9]{1,8})+"
    r")$",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Finding:
    """Raw evaluator output, before message resolution."""

    focus: str
    path: str
    value: str = ""


@dataclass(frozen=True)
class CheckParams:
    """Per-rule configuration handed to a check, as CURIEs or absolute URIs."""

    paths: tuple[str, ...] = ()
    allowed: tuple[str, ...] = ()
    exempt_types: tuple[str, ...] = ()
    exempt_if_present: tuple[str, ...] = ()
    max_count: int = 1


@dataclass(frozen=True)
class PropertyEntry:
    """One entry of an Entity's ``samm:properties`` list."""

    anchor: Node
    entry: Node
    prop: Node | None
    optional: bool = False
    not_in_payload: bool = False
    payload_name: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_valid_language_tag(tag: str) -> bool:
    """Return True if *tag* is a syntactically valid BCP 47 language tag."""
    return bool(_LANGTAG_RE.match(tag))


def _expand_all(accessor: GraphAccessor, curies: tuple[str, ...]) -> list[URIRef]:
    return [accessor.vocab.expand(c) for c in curies]


def _is_true(accessor: GraphAccessor, node: Node, prop: URIRef) -> bool:
    return any(
        isinstance(v, Literal) and v.toPython() is True for v in accessor.values(node, prop)
    )


def property_entries(node: InstanceNode, accessor: GraphAccessor) -> list[PropertyEntry]:
    """Resolve the ``samm:properties`` list of *node* into :class:`PropertyEntry` values.

    URI entries stand for the property itself; blank-node entries carry the
    property under ``samm:property`` plus the ``optional``, ``notInPayload``
    and ``payloadName`` flags.
    """
    vocab = accessor.vocab
    entries: list[PropertyEntry] = []
    for head in accessor.values(node.term, vocab.properties):
        for entry in accessor.collection(head):
            if isinstance(entry, BNode):
                refs = accessor.values(entry, vocab.property_ref)
                names = accessor.values(entry, vocab.payload_name)
                entries.append(
                    PropertyEntry(
                        anchor=head,
                        entry=entry,
                        prop=refs[0] if refs else None,
                        optional=_is_true(accessor, entry, vocab.optional),
                        not_in_payload=_is_true(accessor, entry, vocab.not_in_payload),
                        payload_name=str(names[0]) if names else None,
                    )
                )
            else:
                entries.append(PropertyEntry(anchor=head, entry=entry, prop=entry))
    return entries


def _is_property(accessor: GraphAccessor, value: Node | None) -> bool:
    return isinstance(value, (URIRef, BNode)) and accessor.is_instance_of(
        value, accessor.vocab.property
    )


def _is_abstract_property(accessor: GraphAccessor, value: Node | None) -> bool:
    return isinstance(value, (URIRef, BNode)) and accessor.is_instance_of(
        value, accessor.vocab.abstract_property
    )


def _is_entity(accessor: GraphAccessor, value: Node) -> bool:
    vocab = accessor.vocab
    return accessor.is_instance_of(value, vocab.entity) or accessor.is_instance_of(
        value, vocab.abstract_entity
    )


def _is_characteristic(accessor: GraphAccessor, value: Node) -> bool:
    return NodeKind.CHARACTERISTIC in accessor.kinds_of(value)


# ---------------------------------------------------------------------------
# Cardinality
# ---------------------------------------------------------------------------


def check_required(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """One finding per configured path the node does not carry at all."""
    exempt_props = {str(p) for p in _expand_all(accessor, params.exempt_if_present)}
    if exempt_props & node.properties:
        return []
    return [
        Finding(node.uri, str(path))
        for path in _expand_all(accessor, params.paths)
        if str(path) not in node.properties
    ]


def check_max_count(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    return [
        Finding(node.uri, str(path))
        for path in _expand_all(accessor, params.paths)
        if len(accessor.values(node.term, path)) > params.max_count
    ]


def check_non_empty_list(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """Flag a path whose only values are empty RDF lists (present, but empty)."""
    findings: list[Finding] = []
    for path in _expand_all(accessor, params.paths):
        heads = accessor.values(node.term, path)
        if heads and all(
            accessor.is_collection(head) and not accessor.collection(head) for head in heads
        ):
            findings.append(Finding(node.uri, str(path)))
    return findings


# ---------------------------------------------------------------------------
# Language strings
# ---------------------------------------------------------------------------


def check_non_empty_text(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """Flag empty literals; the offending value is the language tag (``@en``) if any."""
    findings: list[Finding] = []
    for path in _expand_all(accessor, params.paths):
        for literal in accessor.language_literals(node.term, path):
            if literal.text == "":
                findings.append(Finding(node.uri, str(path), literal.tag))
    return findings


def check_language_string(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """Flag values that are not language-tagged literals."""
    findings: list[Finding] = []
    for path in _expand_all(accessor, params.paths):
        for value in accessor.values(node.term, path):
            if isinstance(value, Literal) and value.language is not None:
                continue
            if isinstance(value, Literal) and str(value) == "":
                continue  # reported as an empty property instead
            findings.append(Finding(node.uri, str(path), str(value)))
    return findings


def check_language_tag_valid(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """Flag literals with a malformed language tag; the offending value is the text."""
    findings: list[Finding] = []
    for path in _expand_all(accessor, params.paths):
        for literal in accessor.language_literals(node.term, path):
            if literal.language is not None and not is_valid_language_tag(literal.language):
                findings.append(Finding(node.uri, str(path), literal.text))
    return findings


def check_language_tag_unique(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """One finding per path that repeats a language tag, however many repeats there are."""
    findings: list[Finding] = []
    for path in _expand_all(accessor, params.paths):
        tags = [
            literal.language.lower()
            for literal in accessor.language_literals(node.term, path)
            if literal.language is not None
        ]
        if len(set(tags)) < len(tags):
            findings.append(Finding(node.uri, str(path)))
    return findings


# ---------------------------------------------------------------------------
# Characteristics and datatypes
# ---------------------------------------------------------------------------


def check_datatype_required(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """Characteristic instances need a datatype unless their type already supplies one."""
    if accessor.is_characteristic_class(node.term):
        return []
    vocab = accessor.vocab
    findings: list[Finding] = []
    exempt_types = _expand_all(accessor, params.exempt_types)
    exempt_props = {str(p) for p in _expand_all(accessor, params.exempt_if_present)}
    if exempt_props & node.properties:
        return []
    if any(accessor.is_instance_of(node.term, t) for t in exempt_types):
        return []

    for path in _expand_all(accessor, params.paths):
        if str(path) in node.properties:
            continue
        classes: set[Node] = set()
        for type_uri in node.types:
            cls = URIRef(type_uri)
            classes.add(cls)
            classes |= accessor.superclasses(cls)
        classes.discard(vocab.characteristic)
        if any(accessor.values(cls, path) for cls in classes):
            continue
        findings.append(Finding(node.uri, str(path)))
    return findings


def check_datatype_allowed(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """Datatypes must be allow-listed primitives or Entities, never Characteristics."""
    allowed = {str(uri) for uri in _expand_all(accessor, params.allowed)}
    builtin = str(accessor.vocab.samm_e)
    findings: list[Finding] = []
    for path in _expand_all(accessor, params.paths):
        for value in accessor.values(node.term, path):
            if isinstance(value, Literal):
                findings.append(Finding(node.uri, str(path), str(value)))
                continue
            if _is_characteristic(accessor, value):
                findings.append(Finding(node.uri, str(path), str(value)))
                continue
            if str(value) in allowed or _is_entity(accessor, value):
                continue
            if isinstance(value, URIRef) and str(value).startswith(builtin):
                continue
            findings.append(Finding(node.uri, str(path), str(value)))
    return findings


def check_characteristic_reference(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """A Property's characteristic must be a Characteristic (predefined ones included)."""
    builtin = str(accessor.vocab.samm_c)
    findings: list[Finding] = []
    for path in _expand_all(accessor, params.paths):
        for value in accessor.values(node.term, path):
            if isinstance(value, URIRef) and str(value).startswith(builtin):
                continue
            if not isinstance(value, Literal) and _is_characteristic(accessor, value):
                continue
            findings.append(Finding(node.uri, str(path), str(value)))
    return findings


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


def check_property_list_entries(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """Every entry of the property list must resolve to a Property.

    The offending value is the entry itself for URI entries, the referenced
    node for blank-node entries, and the list anchor when a blank-node
    entry references nothing at all.
    """
    vocab = accessor.vocab
    path = str(vocab.properties)
    findings: list[Finding] = []
    for head in accessor.values(node.term, vocab.properties):
        if not accessor.is_collection(head):
            findings.append(Finding(node.uri, path, str(head)))
    abstract = accessor.is_instance_of(node.term, vocab.abstract_entity)
    for entry in property_entries(node, accessor):
        if _is_property(accessor, entry.prop):
            continue
        if abstract and _is_abstract_property(accessor, entry.prop):
            continue
        if entry.prop is not None:
            offending = entry.prop
        elif isinstance(entry.entry, BNode):
            offending = entry.anchor
        else:
            offending = entry.entry
        findings.append(Finding(node.uri, path, str(offending)))
    return findings


def check_not_in_payload_optional(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    path = str(accessor.vocab.properties)
    return [
        Finding(node.uri, path, str(entry.prop))
        for entry in property_entries(node, accessor)
        if entry.prop is not None and entry.not_in_payload and entry.optional
    ]


def check_not_in_payload_payload_name(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    path = str(accessor.vocab.properties)
    return [
        Finding(node.uri, path, str(entry.prop))
        for entry in property_entries(node, accessor)
        if entry.prop is not None and entry.not_in_payload and entry.payload_name is not None
    ]


def check_payload_visible_property(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """An Entity must expose at least one property in the payload."""
    entries = [e for e in property_entries(node, accessor) if e.prop is not None]
    if entries and all(e.not_in_payload for e in entries):
        return [Finding(node.uri, str(accessor.vocab.properties))]
    return []


def entities_reached_by_enumerations(accessor: GraphAccessor) -> frozenset[Node]:
    """Return every Entity an Enumeration uses, directly or through nested properties.

    An Enumeration reaches the Entity that is its ``dataType`` and the types
    of the instances listed in its ``values``.  From a reached Entity, the
    datatypes of its properties' characteristics are reached in turn, and
    so are the Entities it refines or extends.
    """
    vocab = accessor.vocab
    frontier: list[Node] = []
    for enumeration in accessor.subjects_of_type(vocab.enumeration):
        frontier.extend(accessor.values(enumeration, vocab.data_type))
        for head in accessor.values(enumeration, vocab.values):
            for member in accessor.collection(head):
                if isinstance(member, (URIRef, BNode)):
                    frontier.extend(URIRef(t) for t in accessor.types_of(member))

    reached: set[Node] = set()
    while frontier:
        current = frontier.pop()
        if current in reached or isinstance(current, Literal):
            continue
        if not _is_entity(accessor, current):
            continue
        reached.add(current)
        frontier.extend(accessor.values(current, vocab.refines))
        frontier.extend(accessor.values(current, vocab.extends))
        entity = accessor.instance(current)
        for entry in property_entries(entity, accessor):
            if entry.prop is None:
                continue
            for characteristic in accessor.values(entry.prop, vocab.characteristic_ref):
                frontier.extend(accessor.values(characteristic, vocab.data_type))
    return frozenset(reached)


def check_not_in_payload_enumeration(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """Not-in-payload properties only make sense on Entities used by an Enumeration."""
    hidden = [
        e for e in property_entries(node, accessor) if e.prop is not None and e.not_in_payload
    ]
    if not hidden:
        return []
    reached = accessor.memoized(
        "entities-reached-by-enumerations", entities_reached_by_enumerations
    )
    if node.term in reached:
        return []
    path = str(accessor.vocab.properties)
    return [Finding(node.uri, path, str(e.prop)) for e in hidden]


def check_refines_no_redeclare(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """A refining Entity must not redeclare properties of the Entity it refines."""
    vocab = accessor.vocab
    own = {e.prop for e in property_entries(node, accessor) if e.prop is not None}
    for base in accessor.values(node.term, vocab.refines):
        if isinstance(base, Literal):
            continue
        base_props = {
            e.prop for e in property_entries(accessor.instance(base), accessor) if e.prop is not None
        }
        if own & base_props:
            return [Finding(node.uri, str(vocab.refines))]
    return []


def check_extends_target(
    node: InstanceNode, accessor: GraphAccessor, params: CheckParams
) -> list[Finding]:
    """``extends`` must point at an Entity or AbstractEntity (predefined ones included)."""
    vocab = accessor.vocab
    builtin = str(vocab.samm_e)
    findings: list[Finding] = []
    for value in accessor.values(node.term, vocab.extends):
        if isinstance(value, URIRef) and str(value).startswith(builtin):
            continue
        if not isinstance(value, Literal) and _is_entity(accessor, value):
            continue
        findings.append(Finding(node.uri, str(vocab.extends), str(value)))
    return findings


CHECKS: dict[str, Check] = {
    "required": check_required,
    "max-count": check_max_count,
    "non-empty-list": check_non_empty_list,
    "non-empty-text": check_non_empty_text,
    "language-string": check_language_string,
    "language-tag-valid": check_language_tag_valid,
    "language-tag-unique": check_language_tag_unique,
    "datatype-required": check_datatype_required,
    "datatype-allowed": check_datatype_allowed,
    "characteristic-reference": check_characteristic_reference,
    "property-list-entries": check_property_list_entries,
    "not-in-payload-optional": check_not_in_payload_optional,
    "not-in-payload-payload-name": check_not_in_payload_payload_name,
    "payload-visible-property": check_payload_visible_property,
    "not-in-payload-enumeration": check_not_in_payload_enumeration,
    "refines-no-redeclare": check_refines_no_redeclare,
    "extends-target": check_extends_target,
}
