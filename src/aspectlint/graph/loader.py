"""Model file loading: parse a serialized aspect model into an rdflib graph."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rdflib import Graph
from rdflib.util import guess_format

from aspectlint.graph.accessor import GraphAccessError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def load_model(path: Path, *, fmt: str | None = None) -> Graph:
    """Parse *path* into a new :class:`rdflib.Graph`.

    The serialization format is guessed from the file suffix and defaults
    to Turtle.  Unreadable or unparsable files raise
    :class:`GraphAccessError`.
    """
    rdf_format = fmt or guess_format(str(path)) or "turtle"
    graph = Graph()
    try:
        graph.parse(source=str(path), format=rdf_format)
    except OSError as exc:
        msg = f"{path}: cannot read model file: {exc}"
        raise GraphAccessError(msg) from exc
    except Exception as exc:  # rdflib parsers raise many unrelated types
        msg = f"{path}: cannot parse model as {rdf_format}: {exc}"
        raise GraphAccessError(msg) from exc
    logger.debug("Loaded %d triples from %s", len(graph), path)
    return graph


def parse_model(data: str, *, fmt: str = "turtle") -> Graph:
    """Parse serialized model text into a new :class:`rdflib.Graph`."""
    graph = Graph()
    try:
        graph.parse(data=data, format=fmt)
    except Exception as exc:  # rdflib parsers raise many unrelated types
        msg = f"cannot parse model as {fmt}: {exc}"
        raise GraphAccessError(msg) from exc
    return graph
