"""SAMM vocabulary: versioned namespaces, built-in classes and CURIE expansion."""

from __future__ import annotations

from functools import lru_cache

from rdflib import RDF, RDFS, XSD, Namespace, URIRef

from aspectlint.versions import MetaModelVersion, parse_version

SAMM_URN_PREFIX = "urn:samm:org.eclipse.esmf.samm"

# Characteristic classes shipped with the meta model (samm-c namespace).
# Every one of them is a subclass of samm:Characteristic.
_BUILTIN_CHARACTERISTIC_CLASSES: tuple[str, ...] = (
    "Trait",
    "Quantifiable",
    "Measurement",
    "Enumeration",
    "State",
    "Duration",
    "Collection",
    "List",
    "Set",
    "SortedSet",
    "TimeSeries",
    "Code",
    "Either",
    "SingleEntity",
    "StructuredValue",
)

# samm-c classes that are (transitively) subclasses of samm-c:Enumeration.
_BUILTIN_ENUMERATION_CLASSES: tuple[str, ...] = ("State",)

_BUILTIN_COLLECTION_CLASSES: tuple[str, ...] = ("List", "Set", "SortedSet", "TimeSeries")


class SammVocabulary:
    """Terms of one meta-model version as :class:`rdflib.URIRef` values."""

    def __init__(self, version: MetaModelVersion) -> None:
        self.version = version
        version_str = version.to_version_string()
        self.samm = Namespace(f"{SAMM_URN_PREFIX}:meta-model:{version_str}#")
        self.samm_c = Namespace(f"{SAMM_URN_PREFIX}:characteristic:{version_str}#")
        self.samm_e = Namespace(f"{SAMM_URN_PREFIX}:entity:{version_str}#")
        self.unit = Namespace(f"{SAMM_URN_PREFIX}:unit:{version_str}#")

        self.characteristic = self.samm.Characteristic
        self.entity = self.samm.Entity
        self.abstract_entity = self.samm.AbstractEntity
        self.property = self.samm.Property
        self.abstract_property = self.samm.AbstractProperty
        self.enumeration = self.samm_c.Enumeration
        self.trait = self.samm_c.Trait

        self.name = self.samm.name
        self.preferred_name = self.samm.preferredName
        self.description = self.samm.description
        self.data_type = self.samm.dataType
        self.properties = self.samm.properties
        self.property_ref = self.samm.property
        self.characteristic_ref = self.samm.characteristic
        self.optional = self.samm.optional
        self.not_in_payload = self.samm.notInPayload
        self.payload_name = self.samm.payloadName
        self.refines = self.samm.refines
        self.extends = self.samm.extends
        self.values = self.samm_c["values"]

        self._prefixes: dict[str, str] = {
            "samm": str(self.samm),
            "samm-c": str(self.samm_c),
            "samm-e": str(self.samm_e),
            "unit": str(self.unit),
            "xsd": str(XSD),
            "rdf": str(RDF),
            "rdfs": str(RDFS),
        }

    # Built-in class hierarchy -------------------------------------------------

    def builtin_superclasses(self, cls: URIRef) -> frozenset[URIRef]:
        """Return the built-in superclasses of *cls* known without the meta-model graph."""
        supers: set[URIRef] = set()
        for local in _BUILTIN_CHARACTERISTIC_CLASSES:
            if cls == self.samm_c[local]:
                supers.add(self.characteristic)
        for local in _BUILTIN_ENUMERATION_CLASSES:
            if cls == self.samm_c[local]:
                supers.add(self.enumeration)
        for local in _BUILTIN_COLLECTION_CLASSES:
            if cls == self.samm_c[local]:
                supers.add(self.samm_c.Collection)
        return frozenset(supers)

    # CURIEs ---------------------------------------------------------------------

    def expand(self, curie: str) -> URIRef:
        """Expand ``prefix:local`` against this version's namespaces.

        Strings that already look like absolute URIs (``urn:``, ``http:``)
        are returned unchanged.
        """
        prefix, sep, local = curie.partition(":")
        if not sep:
            msg = f"Cannot expand '{curie}': missing prefix"
            raise ValueError(msg)
        if prefix in self._prefixes:
            return URIRef(self._prefixes[prefix] + local)
        if prefix in {"urn", "http", "https"}:
            return URIRef(curie)
        msg = f"Cannot expand '{curie}': unknown prefix '{prefix}'"
        raise ValueError(msg)

    def shorten(self, uri: str) -> str:
        """Return a CURIE for *uri* when one of the known prefixes matches."""
        for prefix, base in self._prefixes.items():
            if uri.startswith(base):
                return f"{prefix}:{uri[len(base):]}"
        return uri


@lru_cache(maxsize=None)
def vocabulary(version: str | MetaModelVersion) -> SammVocabulary:
    """Return the (cached, immutable) vocabulary for *version*."""
    return SammVocabulary(parse_version(version))
