"""
Flow linearizer
===============
Maps a Graph → ordered list of Nodes: the single straight-line execution order
the assembler renders.

Ordering rule
-------------
Depth-first pre-order from the start node.  Outgoing edges are followed in
edge-list order (the order they were connected), never by canvas position.
A node already visited is skipped together with its subtree, so:

  • a merge node is emitted once, where DFS first reaches it;
  • nodes unreachable from start are never emitted;
  • a cycle's back edge emits nothing.

There is no branch semantics: ``condition`` nodes are ordinary steps here.
"""

from __future__ import annotations

import logging
from typing import List, Set

from flowscript.core.graph import Graph, Node
from flowscript.errors import MissingStartNode

logger = logging.getLogger(__name__)


def find_start(graph: Graph) -> Node:
    starts = graph.find_starts()
    if not starts:
        raise MissingStartNode()
    if len(starts) > 1:
        logger.warning(
            f"graph has {len(starts)} start nodes; using '{starts[0].id}' "
            f"(first in node order)"
        )
    return starts[0]


def linearize(graph: Graph) -> List[Node]:
    """
    Return the nodes reachable from the start node in execution order.

    Raises:
        MissingStartNode: if no node has kind ``start``.
    """
    start = find_start(graph)

    visited: Set[str] = set()
    order: List[Node] = []

    # Explicit stack instead of recursion so long chains cannot hit the
    # interpreter recursion limit.  Marking on pop and pushing children in
    # reverse yields the same pre-order as the recursive walk.
    stack: List[str] = [start.id]
    while stack:
        node_id = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)

        node = graph.get_node(node_id)
        if node is None:
            continue
        order.append(node)
        logger.debug(f"linearize: visit '{node.id}' ({node.kind.value})")

        outgoing = graph.get_outgoing(node_id)
        for edge in reversed(outgoing):
            if edge.target not in visited:
                stack.append(edge.target)

    return order


__all__ = ["find_start", "linearize"]
