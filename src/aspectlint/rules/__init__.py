"""Rules domain: catalog, evaluators and version dispatch."""

from aspectlint.rules.catalog import (
    ConstraintRule,
    MessageVariant,
    RuleCatalog,
    RuleCatalogError,
    default_catalog,
    load_catalog,
    parse_catalog,
)
from aspectlint.rules.dispatcher import VersionDispatcher
from aspectlint.rules.evaluators import CHECKS, CheckParams, Finding, is_valid_language_tag

__all__ = [
    "CHECKS",
    "CheckParams",
    "ConstraintRule",
    "Finding",
    "MessageVariant",
    "RuleCatalog",
    "RuleCatalogError",
    "VersionDispatcher",
    "default_catalog",
    "is_valid_language_tag",
    "load_catalog",
    "parse_catalog",
]
