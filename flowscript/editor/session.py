"""
EditorSession — one editing session and the graph it exclusively owns.

The session is the only writer of its Graph.  It hands the graph to the
compiler for generate/save/run and to the serializer for export/import.

Per-node change handlers are session state, keyed by node id, and never
stored on the Node itself: ``bound_nodes()`` pairs each persisted node with its
handler, and ``import_document`` rebinds fresh handlers for the imported nodes.
"""
from __future__ import annotations

import copy
import logging
import re
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from flowscript.compiler import compile_graph, export_graph, import_graph
from flowscript.compiler.schema import validate_params, validate_position
from flowscript.core.graph import (
    Edge,
    Graph,
    Node,
    Position,
    default_edge_id,
    params_for,
)
from flowscript.core.types import NodeKind
from flowscript.errors import (
    EmptyScriptName,
    InvalidParams,
    UnknownEdge,
    UnknownNode,
)

from .events import SessionEvents

logger = logging.getLogger(__name__)

START_NODE_ID = "start-node"
START_POSITION = Position(x=250, y=50)
DEFAULT_SCRIPT_NAME = "My Selenium Script"

# Collaborators: persistence gets (name, script, nodes, edges); the runner gets
# the script text.  Both are awaited and their failures relayed unchanged.
SaveHandler = Callable[[str, str, List[Node], List[Edge]], Awaitable[Any]]
RunHandler = Callable[[str], Awaitable[Any]]
ChangeHandler = Callable[[Dict[str, Any]], Node]


@dataclass
class BoundNode:
    """A persisted node paired with the session handler that edits it."""
    node: Node
    on_change: ChangeHandler


def initial_graph() -> Graph:
    return Graph(
        nodes=[Node(id=START_NODE_ID, kind=NodeKind.START,
                    position=Position(START_POSITION.x, START_POSITION.y),
                    params=params_for(NodeKind.START))],
        edges=[],
    )


def export_filename(script_name: str) -> str:
    """'My Selenium Script' → 'my-selenium-script.json'."""
    slug = re.sub(r"\s+", "-", script_name).lower()
    return f"{slug}.json"


class EditorSession:
    def __init__(
        self,
        script_name: str = DEFAULT_SCRIPT_NAME,
        session_id: Optional[str] = None,
        events: Optional[SessionEvents] = None,
    ) -> None:
        self.id: str = session_id or uuid.uuid4().hex
        self.script_name: str = script_name
        self.events: SessionEvents = events or SessionEvents()
        self.graph: Graph = initial_graph()
        self._handlers: Dict[str, ChangeHandler] = {}
        self._next_seq = 1
        self._bind_all()

    # ── Handler binding ──────────────────────────────────────────────────

    def _bind(self, node_id: str) -> None:
        def on_change(changes: Dict[str, Any]) -> Node:
            return self.update_params(node_id, changes)

        self._handlers[node_id] = on_change

    def _bind_all(self) -> None:
        self._handlers = {}
        for node in self.graph.nodes:
            self._bind(node.id)

    def handler_for(self, node_id: str) -> ChangeHandler:
        try:
            return self._handlers[node_id]
        except KeyError:
            raise UnknownNode(node_id) from None

    def bound_nodes(self) -> List[BoundNode]:
        return [BoundNode(node, self._handlers[node.id]) for node in self.graph.nodes]

    # ── Look-ups ─────────────────────────────────────────────────────────

    def get_node(self, node_id: str) -> Node:
        node = self.graph.get_node(node_id)
        if node is None:
            raise UnknownNode(node_id)
        return node

    def _fresh_id(self, kind: NodeKind) -> str:
        while True:
            candidate = f"{kind.value}-{self._next_seq}"
            self._next_seq += 1
            if self.graph.get_node(candidate) is None:
                return candidate

    def _fire(self, event_type: str, **payload: Any) -> None:
        self.events.fire({"type": event_type, "sessionId": self.id, **payload})

    # ── Graph edits ──────────────────────────────────────────────────────

    def add_node(
        self,
        kind: Union[NodeKind, str],
        position: Optional[Union[Position, Dict[str, float]]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Node:
        try:
            kind = NodeKind(kind)
        except ValueError:
            raise InvalidParams(f"unknown node kind '{kind}'") from None

        wire = dict(params or {})
        validate_params(kind, wire, "params", error=InvalidParams)

        if isinstance(position, dict):
            position = Position(x=position.get("x", 0), y=position.get("y", 0))
        if position is not None:
            validate_position(position.x, position.y, error=InvalidParams)

        node = Node(
            id=self._fresh_id(kind),
            kind=kind,
            position=position or Position(),
            params=params_for(kind, wire),
        )
        self.graph.nodes.append(node)
        self._bind(node.id)
        logger.info(f"session {self.id}: added {kind.value} node '{node.id}'")
        self._fire("NODE_ADDED", nodeId=node.id, kind=kind.value)
        return node

    def update_params(self, node_id: str, changes: Dict[str, Any]) -> Node:
        node = self.get_node(node_id)
        wire = dict(changes)
        validate_params(node.kind, wire, "params", error=InvalidParams)
        node.params = node.params.merged(wire)
        logger.debug(f"session {self.id}: '{node_id}' params -> {node.params.to_dict()}")
        self._fire("NODE_UPDATED", nodeId=node_id, params=node.params.to_dict())
        return node

    def move_node(self, node_id: str, x: float, y: float) -> Node:
        node = self.get_node(node_id)
        validate_position(x, y, error=InvalidParams)
        node.position = Position(x=x, y=y)
        return node

    def remove_node(self, node_id: str) -> None:
        node = self.get_node(node_id)
        self.graph.nodes.remove(node)
        self.graph.edges = [
            e for e in self.graph.edges if e.source != node_id and e.target != node_id
        ]
        self._handlers.pop(node_id, None)
        logger.info(f"session {self.id}: removed node '{node_id}'")
        self._fire("NODE_REMOVED", nodeId=node_id)

    def connect(self, source: str, target: str) -> Edge:
        """Append an edge; an already-connected pair returns the existing edge."""
        self.get_node(source)
        self.get_node(target)

        existing = self.graph.find_edge(source, target)
        if existing is not None:
            return existing

        edge = Edge(id=default_edge_id(source, target), source=source, target=target)
        self.graph.edges.append(edge)
        logger.debug(f"session {self.id}: connected '{source}' -> '{target}'")
        self._fire("EDGE_ADDED", edgeId=edge.id, sourceNodeId=source, targetNodeId=target)
        return edge

    def remove_edge(self, edge_id: str) -> None:
        edge = self.graph.get_edge(edge_id)
        if edge is None:
            raise UnknownEdge(edge_id)
        self.graph.edges.remove(edge)
        self._fire("EDGE_REMOVED", edgeId=edge_id)

    def clear(self) -> None:
        """Reset to a lone start node."""
        self.graph = initial_graph()
        self._bind_all()
        logger.info(f"session {self.id}: flow cleared")
        self._fire("GRAPH_CLEARED")

    def rename(self, script_name: str) -> None:
        self.script_name = script_name

    # ── Compile / save / run ─────────────────────────────────────────────

    def generate_code(self, headless: bool = True) -> str:
        """Script text for preview; raises MissingStartNode, never edits the graph."""
        script = compile_graph(self.graph, headless=headless)
        self._fire("SCRIPT_GENERATED", headless=headless)
        return script

    async def save(self, persistence: SaveHandler) -> Any:
        name = self.script_name
        if not name or not name.strip():
            raise EmptyScriptName()

        script = compile_graph(self.graph, headless=True)
        nodes = copy.deepcopy(self.graph.nodes)
        edges = copy.deepcopy(self.graph.edges)

        try:
            result = await persistence(name, script, nodes, edges)
        except Exception:
            logger.exception(f"session {self.id}: saving '{name}' failed")
            raise

        logger.info(f"session {self.id}: saved script '{name}'")
        self._fire("SCRIPT_SAVED", name=name)
        return result

    async def run(self, runner: RunHandler, headless: bool = False) -> Any:
        script = compile_graph(self.graph, headless=headless)

        try:
            result = await runner(script)
        except Exception:
            logger.exception(f"session {self.id}: running script failed")
            raise

        logger.info(f"session {self.id}: script handed to runner (headless={headless})")
        self._fire("SCRIPT_RUN", headless=headless)
        return result

    # ── Export / import ──────────────────────────────────────────────────

    def export_document(self) -> Dict[str, Any]:
        return export_graph(self.graph)

    def export_filename(self) -> str:
        return export_filename(self.script_name)

    def import_document(self, document: Any) -> Graph:
        """
        Replace the graph with ``document``.

        Raises:
            InvalidDocument: the current graph is left untouched.
        """
        graph = import_graph(document)
        self.graph = graph
        self._bind_all()
        logger.info(
            f"session {self.id}: imported {len(graph.nodes)} node(s), "
            f"{len(graph.edges)} edge(s)"
        )
        self._fire("GRAPH_IMPORTED", nodes=len(graph.nodes), edges=len(graph.edges))
        return graph


__all__ = [
    "BoundNode",
    "DEFAULT_SCRIPT_NAME",
    "EditorSession",
    "START_NODE_ID",
    "export_filename",
    "initial_graph",
]
