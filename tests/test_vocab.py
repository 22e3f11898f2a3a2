"""Tests for aspectlint.vocab: versioned SAMM namespaces and CURIEs."""

from __future__ import annotations

import pytest
from rdflib import XSD, URIRef

from aspectlint.versions import SAMM_1_0_0, SAMM_2_1_0
from aspectlint.vocab import vocabulary


class TestNamespaces:
    def test_terms_carry_version(self) -> None:
        vocab = vocabulary("2.1.0")
        assert str(vocab.data_type) == "urn:samm:org.eclipse.esmf.samm:meta-model:2.1.0#dataType"
        assert (
            str(vocab.values) == "urn:samm:org.eclipse.esmf.samm:characteristic:2.1.0#values"
        )

    def test_cached_per_version(self) -> None:
        assert vocabulary(SAMM_2_1_0) is vocabulary(SAMM_2_1_0)
        assert vocabulary(SAMM_1_0_0) is not vocabulary(SAMM_2_1_0)


class TestExpand:
    def test_expands_samm_prefixes(self) -> None:
        vocab = vocabulary(SAMM_1_0_0)
        assert vocab.expand("samm:name") == vocab.name
        assert vocab.expand("samm-c:Trait") == vocab.trait
        assert vocab.expand("xsd:string") == XSD.string

    def test_absolute_uri_passes_through(self) -> None:
        vocab = vocabulary(SAMM_1_0_0)
        assert vocab.expand("urn:example:foo#bar") == URIRef("urn:example:foo#bar")

    def test_unknown_prefix_raises(self) -> None:
        with pytest.raises(ValueError, match="unknown prefix"):
            vocabulary(SAMM_1_0_0).expand("foo:bar")

    def test_missing_prefix_raises(self) -> None:
        with pytest.raises(ValueError, match="missing prefix"):
            vocabulary(SAMM_1_0_0).expand("name")


class TestShorten:
    def test_shortens_known_namespace(self) -> None:
        vocab = vocabulary(SAMM_2_1_0)
        assert vocab.shorten(str(vocab.properties)) == "samm:properties"

    def test_leaves_other_uris(self) -> None:
        assert vocabulary(SAMM_2_1_0).shorten("urn:example#x") == "urn:example#x"


class TestBuiltinHierarchy:
    def test_state_is_enumeration_and_characteristic(self) -> None:
        vocab = vocabulary(SAMM_2_1_0)
        supers = vocab.builtin_superclasses(vocab.samm_c.State)
        assert vocab.enumeration in supers
        assert vocab.characteristic in supers

    def test_list_is_collection(self) -> None:
        vocab = vocabulary(SAMM_2_1_0)
        assert vocab.samm_c.Collection in vocab.builtin_superclasses(vocab.samm_c.List)

    def test_unrelated_class_has_none(self) -> None:
        vocab = vocabulary(SAMM_2_1_0)
        assert vocab.builtin_superclasses(vocab.entity) == frozenset()
