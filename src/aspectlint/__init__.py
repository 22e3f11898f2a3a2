"""aspectlint: structural validation of aspect models against versioned meta-model rules."""

__version__ = "0.4.0"

from aspectlint.engine import Engine, EngineState, ValidationRun
from aspectlint.graph.accessor import GraphAccessError, GraphAccessor, NodeKind
from aspectlint.reporter import Severity, ViolationRecord
from aspectlint.rules.catalog import RuleCatalog, RuleCatalogError
from aspectlint.versions import (
    KNOWN_VERSIONS,
    MetaModelVersion,
    UnsupportedVersionError,
    parse_version,
)

__all__ = [
    "KNOWN_VERSIONS",
    "Engine",
    "EngineState",
    "GraphAccessError",
    "GraphAccessor",
    "MetaModelVersion",
    "NodeKind",
    "RuleCatalog",
    "RuleCatalogError",
    "Severity",
    "UnsupportedVersionError",
    "ValidationRun",
    "ViolationRecord",
    "__version__",
    "parse_version",
]
