"""
Graph serializer
================
Converts a Graph to and from the JSON-safe document described in
``schema.py``.

Only declarative state is persisted: id, kind, position and params for nodes;
id and endpoints for edges.  Editor wiring (change handlers, listeners) is not
part of the document and is reattached by the editor session after import.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from flowscript.core.graph import Edge, Graph, Node, Position, params_for
from flowscript.core.types import NodeKind

from .schema import validate, validate_file

logger = logging.getLogger(__name__)


# ── Export ────────────────────────────────────────────────────────────────────

def serialize_node(node: Node) -> Dict[str, Any]:
    return {
        "id": node.id,
        "kind": node.kind.value,
        "position": node.position.to_dict(),
        "params": node.params.to_dict(),
    }


def serialize_edge(edge: Edge) -> Dict[str, Any]:
    return {
        "id": edge.id,
        "sourceNodeId": edge.source,
        "targetNodeId": edge.target,
    }


def export_graph(graph: Graph) -> Dict[str, Any]:
    """Snapshot ``graph`` as a ``{"nodes": [...], "edges": [...]}`` document."""
    return {
        "nodes": [serialize_node(n) for n in graph.nodes],
        "edges": [serialize_edge(e) for e in graph.edges],
    }


def dumps(graph: Graph, indent: int = 2) -> str:
    return json.dumps(export_graph(graph), indent=indent)


# ── Import ────────────────────────────────────────────────────────────────────

def _deserialize_node(spec: Dict[str, Any]) -> Node:
    kind = NodeKind(spec["kind"])
    pos = spec.get("position") or {}
    return Node(
        id=spec["id"],
        kind=kind,
        position=Position(x=pos.get("x", 0), y=pos.get("y", 0)),
        params=params_for(kind, spec.get("params")),
    )


def import_graph(document: Any) -> Graph:
    """
    Validate ``document`` and build a new Graph from it.

    Raises:
        InvalidDocument: If the document fails validation.  Nothing is built.
    """
    doc = validate(document)
    graph = Graph(
        nodes=[_deserialize_node(n) for n in doc["nodes"]],
        edges=[
            Edge(id=e["id"], source=e["sourceNodeId"], target=e["targetNodeId"])
            for e in doc["edges"]
        ],
    )
    logger.debug(f"import_graph: {len(graph.nodes)} node(s), {len(graph.edges)} edge(s)")
    return graph


def load(path: Union[str, Path]) -> Graph:
    """Read a document file and import it (see ``schema.validate_file``)."""
    return import_graph(validate_file(path))


__all__ = ["dumps", "export_graph", "import_graph", "load", "serialize_edge", "serialize_node"]
