"""Graph domain: typed read-only access to instance graphs and model loading."""

from aspectlint.graph.accessor import (
    GraphAccessError,
    GraphAccessor,
    InstanceNode,
    LangLiteral,
    NodeKind,
)
from aspectlint.graph.loader import load_model, parse_model

__all__ = [
    "GraphAccessError",
    "GraphAccessor",
    "InstanceNode",
    "LangLiteral",
    "NodeKind",
    "load_model",
    "parse_model",
]
