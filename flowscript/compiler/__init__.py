"""
FlowScript Compiler
===================
Compiles a visual automation flow into a standalone Python Selenium script.

Output dependencies: pip install selenium

Pipeline
--------
    Graph        →  [linearizer]  →  ordered Nodes
    ordered Nodes →  [templates]   →  one fragment per node
    fragments    →  [emitter]     →  script text (preamble + body + epilogue)

    Graph  ⇄  [serializer]  ⇄  {"nodes": [...], "edges": [...]} document

Public API
----------
    from flowscript.compiler import compile_graph

    source = compile_graph(graph, headless=False)
    with open("flow.py", "w") as f:
        f.write(source)
"""

from __future__ import annotations

import logging

from flowscript.core.graph import Graph

from .emitter import assemble
from .linearizer import linearize
from .serializer import export_graph, import_graph
from .templates import emit_node

logger = logging.getLogger(__name__)


def compile_graph(graph: Graph, headless: bool = True) -> str:
    """
    Compile ``graph`` into Selenium script text.

    Raises:
        MissingStartNode: if the graph has no start node; nothing is emitted.
    """
    ordered = linearize(graph)
    logger.debug(
        f"compile_graph: {len(ordered)} of {len(graph.nodes)} node(s) reachable, "
        f"headless={headless}"
    )
    return assemble(ordered, headless=headless)


__all__ = [
    "assemble",
    "compile_graph",
    "emit_node",
    "export_graph",
    "import_graph",
    "linearize",
]
