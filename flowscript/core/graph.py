"""
Flow graph model
================
Declarative snapshot of an automation flow: typed nodes joined by directed
edges.  Everything in here is plain data; runtime wiring (editor callbacks,
event listeners) lives in ``flowscript.editor`` and is never stored on a node.

Node parameters form a tagged union keyed by ``NodeKind``: every kind owns one
params dataclass, registered in ``PARAMS_BY_KIND``.

Wire names
----------
Python attributes are snake_case; the persisted document uses camelCase for
the multi-word fields (``waitMode``, ``waitMillis``, ``timeoutMillis``).
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from .types import NodeKind


# ── Wire naming ───────────────────────────────────────────────────────────────

WIRE_NAMES: Dict[str, str] = {
    "wait_mode": "waitMode",
    "wait_millis": "waitMillis",
    "timeout_millis": "timeoutMillis",
}

_ATTR_NAMES: Dict[str, str] = {wire: attr for attr, wire in WIRE_NAMES.items()}


def wire_name(attr: str) -> str:
    return WIRE_NAMES.get(attr, attr)


def attr_name(wire: str) -> str:
    return _ATTR_NAMES.get(wire, wire)


# ── Parameters ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NodeParams:
    """Base of every per-kind parameter record.  Unset fields are ``None``."""

    @classmethod
    def wire_fields(cls) -> List[str]:
        return [wire_name(f.name) for f in dataclasses.fields(cls)]

    def to_dict(self) -> Dict[str, Any]:
        """Wire-named dict of the fields that are set."""
        return {
            wire_name(f.name): getattr(self, f.name)
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeParams":
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs = {attr_name(k): v for k, v in data.items() if attr_name(k) in known}
        return cls(**kwargs)

    def merged(self, changes: Dict[str, Any]) -> "NodeParams":
        """Return a copy with wire-named ``changes`` applied."""
        merged = self.to_dict()
        merged.update(changes)
        return type(self).from_dict(merged)


@dataclass(frozen=True)
class EmptyParams(NodeParams):
    pass


@dataclass(frozen=True)
class NavigateParams(NodeParams):
    url: Optional[str] = None


@dataclass(frozen=True)
class ClickParams(NodeParams):
    selector: Optional[str] = None


@dataclass(frozen=True)
class TypeParams(NodeParams):
    selector: Optional[str] = None
    value: Optional[str] = None


@dataclass(frozen=True)
class SelectParams(NodeParams):
    selector: Optional[str] = None
    value: Optional[str] = None


@dataclass(frozen=True)
class WaitParams(NodeParams):
    wait_mode: Optional[str] = None       # "element" (default) | "time"
    selector: Optional[str] = None
    wait_millis: Optional[int] = None
    timeout_millis: Optional[int] = None


@dataclass(frozen=True)
class ExtractParams(NodeParams):
    selector: Optional[str] = None


@dataclass(frozen=True)
class ConditionParams(NodeParams):
    selector: Optional[str] = None


@dataclass(frozen=True)
class CodeParams(NodeParams):
    code: Optional[str] = None


PARAMS_BY_KIND: Dict[NodeKind, Type[NodeParams]] = {
    NodeKind.START:      EmptyParams,
    NodeKind.NAVIGATE:   NavigateParams,
    NodeKind.CLICK:      ClickParams,
    NodeKind.TYPE:       TypeParams,
    NodeKind.SELECT:     SelectParams,
    NodeKind.WAIT:       WaitParams,
    NodeKind.SCREENSHOT: EmptyParams,
    NodeKind.EXTRACT:    ExtractParams,
    NodeKind.CONDITION:  ConditionParams,
    NodeKind.CODE:       CodeParams,
    NodeKind.END:        EmptyParams,
}


def params_for(kind: NodeKind, data: Optional[Dict[str, Any]] = None) -> NodeParams:
    """Build the params record for ``kind`` from a wire-named dict."""
    return PARAMS_BY_KIND[kind].from_dict(data or {})


# ── Node / Edge ───────────────────────────────────────────────────────────────

@dataclass
class Position:
    # Layout only: never read by the linearizer or the emitter.
    x: float = 0
    y: float = 0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class Node:
    id: str
    kind: NodeKind
    position: Position = field(default_factory=Position)
    params: NodeParams = field(default_factory=EmptyParams)

    def __post_init__(self) -> None:
        expected = PARAMS_BY_KIND[self.kind]
        if type(self.params) is not expected:
            raise TypeError(
                f"node '{self.id}' of kind '{self.kind.value}' needs "
                f"{expected.__name__}, got {type(self.params).__name__}"
            )


@dataclass
class Edge:
    id: str
    source: str
    target: str


def default_edge_id(source: str, target: str) -> str:
    return f"edge-{source}-{target}"


# ── Graph ─────────────────────────────────────────────────────────────────────

@dataclass
class Graph:
    # Insertion order: nodes by creation, edges by connection.
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    # ── Convenience queries ────────────────────────────────────────────────

    def get_node(self, node_id: str) -> Optional[Node]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return next((e for e in self.edges if e.id == edge_id), None)

    def find_edge(self, source: str, target: str) -> Optional[Edge]:
        return next(
            (e for e in self.edges if e.source == source and e.target == target),
            None,
        )

    def get_outgoing(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.source == node_id]

    def get_incoming(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.target == node_id]

    def find_starts(self) -> List[Node]:
        return [n for n in self.nodes if n.kind is NodeKind.START]

    def copy(self) -> "Graph":
        return copy.deepcopy(self)
