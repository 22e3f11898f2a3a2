"""Shared test fixtures for aspectlint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from aspectlint.engine import Engine
from aspectlint.graph.loader import parse_model
from aspectlint.versions import KNOWN_VERSIONS, SAMM_1_0_0, SAMM_2_0_0

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from rdflib import Graph

    from aspectlint.versions import MetaModelVersion

TEST_NS = "urn:samm:org.eclipse.esmf.samm.test:1.0.0#"

LEGACY_VERSIONS = [v for v in KNOWN_VERSIONS if not v.is_newer_than(SAMM_1_0_0)]
MODERN_VERSIONS = [v for v in KNOWN_VERSIONS if not v.is_older_than(SAMM_2_0_0)]


def turtle_prefixes(version: MetaModelVersion) -> str:
    """Return the Turtle prefix block for *version* plus the test namespace as ``:``."""
    v = version.to_version_string()
    return (
        f"@prefix : <{TEST_NS}> .\n"
        f"@prefix samm: <urn:samm:org.eclipse.esmf.samm:meta-model:{v}#> .\n"
        f"@prefix samm-c: <urn:samm:org.eclipse.esmf.samm:characteristic:{v}#> .\n"
        f"@prefix samm-e: <urn:samm:org.eclipse.esmf.samm:entity:{v}#> .\n"
        "@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .\n"
        "@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .\n"
        "@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .\n"
    )


@pytest.fixture(params=KNOWN_VERSIONS, ids=str)
def any_version(request: pytest.FixtureRequest) -> MetaModelVersion:
    """Every recognized meta-model version."""
    return request.param


@pytest.fixture(params=LEGACY_VERSIONS, ids=str)
def legacy_version(request: pytest.FixtureRequest) -> MetaModelVersion:
    """Versions up to and including 1.0.0."""
    return request.param


@pytest.fixture(params=MODERN_VERSIONS, ids=str)
def modern_version(request: pytest.FixtureRequest) -> MetaModelVersion:
    """Versions starting with 2.0.0."""
    return request.param


@pytest.fixture(scope="session")
def engine() -> Engine:
    """Engine with the packaged rules and messages (stateless, shared)."""
    return Engine()


@pytest.fixture()
def make_graph() -> Callable[[MetaModelVersion, str], Graph]:
    """Return a builder parsing a Turtle body with the prefixes of a version."""

    def _build(version: MetaModelVersion, body: str) -> Graph:
        return parse_model(turtle_prefixes(version) + body)

    return _build


@pytest.fixture()
def model_file(tmp_path: Path) -> Callable[..., Path]:
    """Return a writer storing a Turtle model for a version under ``tmp_path``."""

    def _write(version: MetaModelVersion, body: str, name: str = "model.ttl") -> Path:
        path = tmp_path / name
        path.write_text(turtle_prefixes(version) + body, encoding="utf-8")
        return path

    return _write
