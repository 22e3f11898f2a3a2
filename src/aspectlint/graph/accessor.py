"""Read-only typed view over an instance graph.

The accessor is the only component that touches the rdflib store.  It
answers node-local questions (which predicates a node carries, which
values a predicate has, which language strings) and the few graph-wide
questions some rules need (all instances of a class, subclass tests).
Store failures are surfaced as :class:`GraphAccessError`; absent data is
never an error and simply yields empty collections.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from rdflib import RDF, RDFS, BNode, Graph, Literal, URIRef

if TYPE_CHECKING:
    from collections.abc import Callable

    from rdflib.term import Node

    from aspectlint.vocab import SammVocabulary

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class GraphAccessError(Exception):
    """Raised when the underlying graph cannot be read or is structurally broken."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


class NodeKind(enum.Enum):
    """Meta-model classes that carry their own rule sets."""

    CHARACTERISTIC = "characteristic"
    ENTITY = "entity"
    PROPERTY = "property"


@dataclass(frozen=True)
class LangLiteral:
    """A literal value with its (optional) language tag."""

    text: str
    language: str | None = None

    @property
    def tag(self) -> str:
        return f"@{self.language}" if self.language is not None else ""


@dataclass(frozen=True)
class InstanceNode:
    """Snapshot of one graph node as seen at the start of a validation call."""

    uri: str
    kinds: frozenset[NodeKind]
    types: frozenset[str]
    properties: frozenset[str]
    term: Node = field(compare=False, repr=False, default=None)  # type: ignore[assignment]


# ---------------------------------------------------------------------------
# Accessor
# ---------------------------------------------------------------------------


class GraphAccessor:
    """Typed, read-only access to an :class:`rdflib.Graph` for one meta-model version."""

    def __init__(self, graph: Graph, vocab: SammVocabulary) -> None:
        if not isinstance(graph, Graph):
            msg = f"Expected an rdflib Graph, got {type(graph).__name__}"
            raise GraphAccessError(msg)
        self.graph = graph
        self.vocab = vocab
        self._memo: dict[str, Any] = {}

    # -- low-level reads ---------------------------------------------------------

    def _objects(self, node: Node, prop: Node) -> list[Node]:
        try:
            return sorted(self.graph.objects(node, prop), key=_sort_key)
        except (OSError, RuntimeError, TypeError) as exc:
            msg = f"Cannot read values of {prop} on {node}: {exc}"
            raise GraphAccessError(msg) from exc

    def _subjects(self, prop: Node, obj: Node) -> list[Node]:
        try:
            return sorted(self.graph.subjects(prop, obj), key=_sort_key)
        except (OSError, RuntimeError, TypeError) as exc:
            msg = f"Cannot read subjects of {prop} {obj}: {exc}"
            raise GraphAccessError(msg) from exc

    def _predicates(self, node: Node) -> list[Node]:
        try:
            return list(self.graph.predicates(node, None))
        except (OSError, RuntimeError, TypeError) as exc:
            msg = f"Cannot read predicates of {node}: {exc}"
            raise GraphAccessError(msg) from exc

    def memoized(self, key: str, compute: Callable[[GraphAccessor], Any]) -> Any:
        """Return the graph-wide result stored under *key*, computing it on first use."""
        if key not in self._memo:
            self._memo[key] = compute(self)
        return self._memo[key]

    # -- node-local contract --------------------------------------------------

    def contains(self, node: Node) -> bool:
        """Return True if *node* occurs as a subject in the graph."""
        return bool(self._predicates(node))

    def properties(self, node: Node) -> frozenset[str]:
        return frozenset(str(p) for p in self._predicates(node))

    def values(self, node: Node, prop: Node) -> list[Node]:
        return self._objects(node, prop)

    def language_literals(self, node: Node, prop: Node) -> list[LangLiteral]:
        """Return the literal values of *prop* as :class:`LangLiteral` pairs."""
        return [
            LangLiteral(text=str(value), language=value.language)
            for value in self._objects(node, prop)
            if isinstance(value, Literal)
        ]

    def referenced_node(self, value: Node) -> InstanceNode | None:
        """Resolve an object value to the node it points at, if it is described here."""
        if not isinstance(value, (URIRef, BNode)):
            return None
        if not self.contains(value):
            return None
        return self.instance(value)

    def list_items(self, node: Node, prop: Node) -> list[list[Node]]:
        """Return the members of each RDF collection held by *prop* on *node*."""
        return [self.collection(head) for head in self._objects(node, prop)]

    def collection(self, head: Node) -> list[Node]:
        """Walk an RDF collection from *head*, in list order.

        A value that is not a collection (no ``rdf:first``) yields an empty
        list unless it is ``rdf:nil``.  A cyclic ``rdf:rest`` chain raises
        :class:`GraphAccessError`.
        """
        items: list[Node] = []
        seen: set[Node] = set()
        current: Node | None = head
        while current is not None and current != RDF.nil:
            if current in seen:
                msg = f"RDF collection starting at {head} contains a cycle"
                raise GraphAccessError(msg)
            seen.add(current)
            firsts = self._objects(current, RDF.first)
            if not firsts:
                break
            items.extend(firsts)
            rests = self._objects(current, RDF.rest)
            current = rests[0] if rests else None
        return items

    def is_collection(self, value: Node) -> bool:
        return value == RDF.nil or bool(self._objects(value, RDF.first))

    # -- typing --------------------------------------------------------------------

    def types_of(self, node: Node) -> frozenset[str]:
        return frozenset(str(t) for t in self._objects(node, RDF.type))

    def superclasses(self, cls: Node) -> frozenset[URIRef]:
        """Return all transitive superclasses of *cls* (excluding itself)."""
        result: set[URIRef] = set()
        stack: list[Node] = [cls]
        while stack:
            current = stack.pop()
            parents: set[Node] = set(self._objects(current, RDFS.subClassOf))
            if isinstance(current, URIRef):
                parents |= self.vocab.builtin_superclasses(current)
            for parent in parents:
                if isinstance(parent, URIRef) and parent not in result and parent != cls:
                    result.add(parent)
                    stack.append(parent)
        return frozenset(result)

    def is_subclass_of(self, cls: Node, base: URIRef) -> bool:
        return cls == base or base in self.superclasses(cls)

    def is_instance_of(self, node: Node, cls: URIRef) -> bool:
        return any(self.is_subclass_of(t, cls) for t in self._objects(node, RDF.type))

    def kinds_of(self, node: Node) -> frozenset[NodeKind]:
        """Classify *node* as Characteristic, Entity and/or Property.

        Characteristics are recognised both as instances and as classes
        (subclasses of ``samm:Characteristic``).
        """
        vocab = self.vocab
        kinds: set[NodeKind] = set()
        if self.is_instance_of(node, vocab.characteristic) or (
            node != vocab.characteristic and vocab.characteristic in self.superclasses(node)
        ):
            kinds.add(NodeKind.CHARACTERISTIC)
        if self.is_instance_of(node, vocab.entity) or self.is_instance_of(
            node, vocab.abstract_entity
        ):
            kinds.add(NodeKind.ENTITY)
        if self.is_instance_of(node, vocab.property):
            kinds.add(NodeKind.PROPERTY)
        return frozenset(kinds)

    def is_characteristic_class(self, node: Node) -> bool:
        """Return True if *node* is a class below ``samm:Characteristic`` rather than an instance."""
        return node != self.vocab.characteristic and self.vocab.characteristic in self.superclasses(
            node
        )

    def instance(self, node: Node) -> InstanceNode:
        return InstanceNode(
            uri=str(node),
            kinds=self.kinds_of(node),
            types=self.types_of(node),
            properties=self.properties(node),
            term=node,
        )

    # -- graph-wide queries ------------------------------------------------------

    def subjects_of_type(self, cls: URIRef) -> list[Node]:
        """Return every node typed *cls* or one of its subclasses, in sorted order."""
        try:
            typed = {(s, t) for s, t in self.graph.subject_objects(RDF.type)}
        except (OSError, RuntimeError, TypeError) as exc:
            msg = f"Cannot enumerate typed subjects: {exc}"
            raise GraphAccessError(msg) from exc
        found = {s for s, t in typed if self.is_subclass_of(t, cls)}
        return sorted(found, key=_sort_key)

    def validation_targets(self) -> list[Node]:
        """Return every URI node that classifies as one of the :class:`NodeKind` values."""
        try:
            subjects = set(self.graph.subjects())
        except (OSError, RuntimeError, TypeError) as exc:
            msg = f"Cannot enumerate subjects: {exc}"
            raise GraphAccessError(msg) from exc
        return [
            s
            for s in sorted(subjects, key=_sort_key)
            if isinstance(s, URIRef) and self.kinds_of(s)
        ]


def _sort_key(node: Node) -> tuple[int, str, str]:
    """Deterministic order: URIs, then blank nodes, then literals (by text and tag)."""
    if isinstance(node, URIRef):
        return (0, str(node), "")
    if isinstance(node, BNode):
        return (1, str(node), "")
    if isinstance(node, Literal):
        return (2, str(node), node.language or str(node.datatype or ""))
    return (3, str(node), "")
