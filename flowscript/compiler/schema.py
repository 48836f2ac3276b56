"""
Graph Document Schema + Validator
=================================
Defines the persisted form of a flow graph and a lightweight validator that
runs without any third-party JSON Schema library.

Canonical JSON format
---------------------

    {
      "nodes": [
        {
          "id":       "navigate-2",                 // unique within the graph (str, required)
          "kind":     "navigate",                   // NodeKind value (str, required)
          "position": { "x": 250, "y": 180 },       // layout only (object, optional)
          "params":   { "url": "https://x.test" }   // per-kind fields (object, optional)
        }
      ],
      "edges": [
        {
          "id":           "edge-start-node-navigate-2",   // (str, optional → derived)
          "sourceNodeId": "start-node",                   // (str, required)
          "targetNodeId": "navigate-2"                    // (str, required)
        }
      ]
    }

Params per kind
---------------
  start / screenshot / end  ─ (none)
  navigate                  ─ url
  click / extract / condition ─ selector
  type / select             ─ selector, value
  wait                      ─ waitMode ("element" | "time"), selector,
                              waitMillis, timeoutMillis
  code                      ─ code

Legacy flow documents
---------------------
Documents exported by the earlier canvas editor are accepted too: nodes carry
``type`` plus a ``data`` object (``elementType``/``wait``/``timeout`` for
waits, plus UI-only keys such as ``label``), edges carry ``source``/``target``.
``normalise`` rewrites them into the canonical shape before validation.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Type, Union

from flowscript.core.graph import PARAMS_BY_KIND, default_edge_id
from flowscript.core.types import NodeKind, WaitMode
from flowscript.errors import InvalidDocument

logger = logging.getLogger(__name__)

KNOWN_NODE_KINDS: frozenset[str] = frozenset(k.value for k in NodeKind)

_STRING_PARAMS = frozenset({"url", "selector", "value", "code"})
_MILLIS_PARAMS = frozenset({"waitMillis", "timeoutMillis"})

# Legacy ``data`` key → canonical param key.
_LEGACY_PARAM_KEYS: Dict[str, str] = {
    "url": "url",
    "selector": "selector",
    "value": "value",
    "code": "code",
    "elementType": "waitMode",
    "wait": "waitMillis",
    "timeout": "timeoutMillis",
}


# ── Validation helpers ────────────────────────────────────────────────────────

def _require(condition: bool, message: str, error: Type[Exception] = InvalidDocument) -> None:
    if not condition:
        raise error(message)


def _require_keys(obj: Dict, keys: List[str], context: str) -> None:
    for key in keys:
        _require(key in obj, f"{context}: missing required field '{key}'")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_position(
    x: Any, y: Any, ctx: str = "position", error: Type[Exception] = InvalidDocument
) -> None:
    _require(_is_number(x) and _is_number(y), f"{ctx}.x/y must be numbers", error)


def validate_params(
    kind: NodeKind,
    params: Dict[str, Any],
    ctx: str = "params",
    error: Type[Exception] = InvalidDocument,
) -> None:
    """
    Type-check wire-named ``params`` for ``kind`` in place.

    Keys the kind does not define are removed with a warning; ``None`` values
    are accepted and mean "unset".
    """
    allowed = set(PARAMS_BY_KIND[kind].wire_fields())

    for key in list(params):
        if key not in allowed:
            logger.warning(f"{ctx}: dropping unknown param '{key}' for kind '{kind.value}'")
            del params[key]
            continue

        value = params[key]
        if value is None:
            continue
        if key in _STRING_PARAMS:
            _require(isinstance(value, str), f"{ctx}.{key} must be a string", error)
        elif key in _MILLIS_PARAMS:
            _require(
                isinstance(value, int) and not isinstance(value, bool) and value >= 0,
                f"{ctx}.{key} must be a non-negative integer",
                error,
            )
        elif key == "waitMode":
            _require(
                value in (WaitMode.ELEMENT.value, WaitMode.TIME.value),
                f"{ctx}.waitMode must be 'element' or 'time'",
                error,
            )


# ── Legacy normalisation ──────────────────────────────────────────────────────

def _normalise_node(node: Any) -> Any:
    if not isinstance(node, dict) or "kind" in node or "type" not in node:
        return node
    data = node.get("data") or {}
    params = {
        _LEGACY_PARAM_KEYS[k]: v
        for k, v in (data.items() if isinstance(data, dict) else [])
        if k in _LEGACY_PARAM_KEYS
    }
    out = {"id": node.get("id"), "kind": node["type"], "params": params}
    if "position" in node:
        out["position"] = node["position"]
    return out


def _normalise_edge(edge: Any) -> Any:
    if not isinstance(edge, dict) or "sourceNodeId" in edge or "source" not in edge:
        return edge
    out = {"sourceNodeId": edge["source"], "targetNodeId": edge.get("target")}
    if "id" in edge:
        out["id"] = edge["id"]
    return out


def normalise(data: Dict[str, Any]) -> Dict[str, Any]:
    """Rewrite legacy node/edge entries into the canonical shape (new dict)."""
    return {
        "nodes": [_normalise_node(n) for n in data["nodes"]],
        "edges": [_normalise_edge(e) for e in data["edges"]],
    }


# ── Public validator ─────────────────────────────────────────────────────────

def validate(data: Any) -> Dict[str, Any]:
    """
    Validate a parsed graph document and return its canonical form.

    The input is not modified; legacy entries are normalised, missing edge ids
    are derived and unknown params are dropped in the returned copy.

    Raises:
        InvalidDocument: On any structural violation.
    """
    _require(isinstance(data, dict), "graph document must be a JSON object at the top level")
    _require_keys(data, ["nodes", "edges"], "graph root")
    _require(isinstance(data["nodes"], list), "nodes must be a list")
    _require(isinstance(data["edges"], list), "edges must be a list")

    doc = copy.deepcopy(normalise(data))

    # ── Validate nodes ──────────────────────────────────────────────────────

    node_ids: set[str] = set()

    for i, node in enumerate(doc["nodes"]):
        ctx = f"nodes[{i}]"
        _require(isinstance(node, dict), f"{ctx}: each node must be a JSON object")
        _require_keys(node, ["id", "kind"], ctx)
        _require(isinstance(node["id"], str), f"{ctx}.id must be a string")
        _require(isinstance(node["kind"], str), f"{ctx}.kind must be a string")
        _require(node["id"] not in node_ids, f"{ctx}: duplicate node id '{node['id']}'")
        _require(node["kind"] in KNOWN_NODE_KINDS, f"{ctx}: unknown node kind '{node['kind']}'")
        node_ids.add(node["id"])

        if "position" in node:
            pos = node["position"]
            _require(isinstance(pos, dict), f"{ctx}.position must be an object")
            _require_keys(pos, ["x", "y"], f"{ctx}.position")
            validate_position(pos["x"], pos["y"], f"{ctx}.position")

        params = node.setdefault("params", {})
        _require(isinstance(params, dict), f"{ctx}.params must be an object")
        validate_params(NodeKind(node["kind"]), params, f"{ctx}.params")

    # ── Validate edges ──────────────────────────────────────────────────────

    edge_ids: set[str] = set()

    for i, edge in enumerate(doc["edges"]):
        ctx = f"edges[{i}]"
        _require(isinstance(edge, dict), f"{ctx}: each edge must be a JSON object")
        _require_keys(edge, ["sourceNodeId", "targetNodeId"], ctx)

        for field in ("sourceNodeId", "targetNodeId"):
            _require(isinstance(edge[field], str), f"{ctx}.{field} must be a string")
            _require(
                edge[field] in node_ids,
                f"{ctx}: {field} '{edge[field]}' not found in nodes",
            )

        edge_id = edge.setdefault("id", default_edge_id(edge["sourceNodeId"], edge["targetNodeId"]))
        _require(isinstance(edge_id, str), f"{ctx}.id must be a string")
        _require(edge_id not in edge_ids, f"{ctx}: duplicate edge id '{edge_id}'")
        edge_ids.add(edge_id)

    return doc


def validate_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load and validate a graph document file.

    Returns:
        The canonical document on success.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidDocument: If the file is not UTF-8 JSON or the structure is invalid.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except UnicodeDecodeError as exc:
            raise InvalidDocument(f"{path}: not UTF-8 text ({exc})") from exc
        except json.JSONDecodeError as exc:
            raise InvalidDocument(f"{path}: not valid JSON ({exc})") from exc
    return validate(data)


__all__ = [
    "KNOWN_NODE_KINDS",
    "normalise",
    "validate",
    "validate_file",
    "validate_params",
    "validate_position",
]
