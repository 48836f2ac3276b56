"""
flowscript — visual flow to Selenium script compiler
====================================================

    from flowscript import EditorSession, NodeKind

    session = EditorSession()
    nav = session.add_node(NodeKind.NAVIGATE, params={"url": "https://x.test"})
    session.connect("start-node", nav.id)
    print(session.generate_code())
"""

from flowscript.compiler import compile_graph, export_graph, import_graph
from flowscript.core.graph import Edge, Graph, Node, Position
from flowscript.core.types import NodeKind
from flowscript.editor.session import EditorSession
from flowscript.errors import (
    EmptyScriptName,
    FlowScriptError,
    InvalidDocument,
    MissingStartNode,
)

__all__ = [
    "EditorSession",
    "Edge",
    "EmptyScriptName",
    "FlowScriptError",
    "Graph",
    "InvalidDocument",
    "MissingStartNode",
    "Node",
    "NodeKind",
    "Position",
    "compile_graph",
    "export_graph",
    "import_graph",
]
