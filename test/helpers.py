"""Graph builders shared by the test modules."""
from typing import Any, Dict, Iterable, Optional, Tuple

from flowscript.core.graph import Edge, Graph, Node, Position, default_edge_id, params_for
from flowscript.core.types import NodeKind


def make_node(
    node_id: str,
    kind: NodeKind,
    params: Optional[Dict[str, Any]] = None,
    x: float = 0,
    y: float = 0,
) -> Node:
    return Node(id=node_id, kind=kind, position=Position(x, y), params=params_for(kind, params))


def make_graph(nodes: Iterable[Node], links: Iterable[Tuple[str, str]] = ()) -> Graph:
    return Graph(
        nodes=list(nodes),
        edges=[Edge(id=default_edge_id(s, t), source=s, target=t) for s, t in links],
    )
