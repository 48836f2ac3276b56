"""
Editor REST routes.

All routes are mounted under /api by main.py.  Compiler-side failures map to
4xx; failures raised by the persistence or execution collaborator are relayed
as 502 with their message.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from flowscript.compiler import compile_graph, import_graph
from flowscript.compiler.serializer import serialize_edge, serialize_node
from flowscript.core.types import NODE_COLORS, NODE_DESCRIPTIONS, NodeKind
from flowscript.editor.session import EditorSession
from flowscript.errors import (
    FlowScriptError,
    ScriptRunnerUnavailable,
    UnknownEdge,
    UnknownNode,
    UnknownSession,
)
from flowscript.server.state import SessionRegistry

router = APIRouter()


# ── Helpers ───────────────────────────────────────────────────────────────────

def _registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def _session(request: Request, session_id: str) -> EditorSession:
    try:
        return _registry(request).get(session_id)
    except UnknownSession as exc:
        raise HTTPException(status_code=404, detail=str(exc))


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (UnknownSession, UnknownNode, UnknownEdge)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ScriptRunnerUnavailable):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, FlowScriptError):
        return HTTPException(status_code=400, detail=str(exc))
    return _collaborator_error(exc)


def _collaborator_error(exc: Exception) -> HTTPException:
    """Store and runner failures are relayed whatever their type."""
    return HTTPException(status_code=502, detail=str(exc) or type(exc).__name__)


def _summary(session: EditorSession) -> Dict[str, Any]:
    return {
        "id": session.id,
        "scriptName": session.script_name,
        "graph": session.export_document(),
    }


# ── GET /node-types ───────────────────────────────────────────────────────────

@router.get("/node-types")
async def get_node_types() -> List[Dict[str, str]]:
    return [
        {"kind": k.value, "color": NODE_COLORS[k], "description": NODE_DESCRIPTIONS[k]}
        for k in NodeKind
    ]


# ── POST /sessions ────────────────────────────────────────────────────────────

class CreateSessionBody(BaseModel):
    scriptName: Optional[str] = None


@router.post("/sessions", status_code=201)
async def create_session(request: Request, body: Optional[CreateSessionBody] = None) -> Dict[str, Any]:
    session = _registry(request).create(body.scriptName if body else None)
    return _summary(session)


# ── GET / DELETE /sessions/:id ────────────────────────────────────────────────

@router.get("/sessions/{session_id}")
async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
    return _summary(_session(request, session_id))


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(request: Request, session_id: str) -> Response:
    try:
        _registry(request).drop(session_id)
    except UnknownSession as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return Response(status_code=204)


# ── PUT /sessions/:id/name ────────────────────────────────────────────────────

class RenameBody(BaseModel):
    scriptName: str


@router.put("/sessions/{session_id}/name")
async def rename_session(request: Request, session_id: str, body: RenameBody) -> Dict[str, Any]:
    session = _session(request, session_id)
    session.rename(body.scriptName)
    return {"id": session.id, "scriptName": session.script_name}


# ── POST /sessions/:id/nodes ──────────────────────────────────────────────────

class CreateNodeBody(BaseModel):
    kind: str
    position: Optional[Dict[str, float]] = None
    params: Optional[Dict[str, Any]] = None


@router.post("/sessions/{session_id}/nodes", status_code=201)
async def create_node(request: Request, session_id: str, body: CreateNodeBody) -> Dict[str, Any]:
    session = _session(request, session_id)
    try:
        node = session.add_node(body.kind, position=body.position, params=body.params)
    except FlowScriptError as exc:
        raise _http_error(exc)
    return serialize_node(node)


# ── PATCH /sessions/:id/nodes/:nodeId ─────────────────────────────────────────

class UpdateNodeBody(BaseModel):
    params: Optional[Dict[str, Any]] = None
    position: Optional[Dict[str, float]] = None


@router.patch("/sessions/{session_id}/nodes/{node_id}")
async def update_node(
    request: Request, session_id: str, node_id: str, body: UpdateNodeBody
) -> Dict[str, Any]:
    session = _session(request, session_id)
    try:
        # Params first: a rejected change must not leave a half-applied move.
        if body.params is not None:
            session.handler_for(node_id)(body.params)
        if body.position is not None:
            session.move_node(node_id, body.position.get("x", 0), body.position.get("y", 0))
        node = session.get_node(node_id)
    except FlowScriptError as exc:
        raise _http_error(exc)
    return serialize_node(node)


# ── DELETE /sessions/:id/nodes/:nodeId ────────────────────────────────────────

@router.delete("/sessions/{session_id}/nodes/{node_id}", status_code=204)
async def delete_node(request: Request, session_id: str, node_id: str) -> Response:
    session = _session(request, session_id)
    try:
        session.remove_node(node_id)
    except FlowScriptError as exc:
        raise _http_error(exc)
    return Response(status_code=204)


# ── POST /sessions/:id/edges ──────────────────────────────────────────────────

class EdgeBody(BaseModel):
    sourceNodeId: str
    targetNodeId: str


@router.post("/sessions/{session_id}/edges", status_code=201)
async def add_edge(request: Request, session_id: str, body: EdgeBody) -> Dict[str, Any]:
    session = _session(request, session_id)
    try:
        edge = session.connect(body.sourceNodeId, body.targetNodeId)
    except FlowScriptError as exc:
        raise _http_error(exc)
    return serialize_edge(edge)


# ── DELETE /sessions/:id/edges/:edgeId ────────────────────────────────────────

@router.delete("/sessions/{session_id}/edges/{edge_id}", status_code=204)
async def delete_edge(request: Request, session_id: str, edge_id: str) -> Response:
    session = _session(request, session_id)
    try:
        session.remove_edge(edge_id)
    except FlowScriptError as exc:
        raise _http_error(exc)
    return Response(status_code=204)


# ── POST /sessions/:id/clear ──────────────────────────────────────────────────

@router.post("/sessions/{session_id}/clear")
async def clear_session(request: Request, session_id: str) -> Dict[str, Any]:
    session = _session(request, session_id)
    session.clear()
    return _summary(session)


# ── POST /sessions/:id/generate ───────────────────────────────────────────────

class GenerateBody(BaseModel):
    headless: bool = True


@router.post("/sessions/{session_id}/generate")
async def generate_code(
    request: Request, session_id: str, body: Optional[GenerateBody] = None
) -> Dict[str, Any]:
    session = _session(request, session_id)
    headless = body.headless if body else True
    try:
        script = session.generate_code(headless=headless)
    except FlowScriptError as exc:
        raise _http_error(exc)
    return {"script": script}


# ── POST /sessions/:id/save ───────────────────────────────────────────────────

class SaveBody(BaseModel):
    name: Optional[str] = None


@router.post("/sessions/{session_id}/save")
async def save_script(
    request: Request, session_id: str, body: Optional[SaveBody] = None
) -> Dict[str, Any]:
    session = _session(request, session_id)
    if body is not None and body.name is not None:
        session.rename(body.name)
    try:
        result = await session.save(request.app.state.store)
    except FlowScriptError as exc:
        raise _http_error(exc)
    except Exception as exc:
        raise _collaborator_error(exc) from exc
    return {"name": session.script_name, "result": result}


# ── POST /sessions/:id/run ────────────────────────────────────────────────────

class RunBody(BaseModel):
    headless: bool = False


@router.post("/sessions/{session_id}/run")
async def run_script(
    request: Request, session_id: str, body: Optional[RunBody] = None
) -> Dict[str, Any]:
    session = _session(request, session_id)
    runner = request.app.state.runner
    try:
        if runner is None:
            raise ScriptRunnerUnavailable("no script runner configured (FLOWSCRIPT_RUNNER_URL)")
        result = await session.run(runner, headless=body.headless if body else False)
    except FlowScriptError as exc:
        raise _http_error(exc)
    except Exception as exc:
        raise _collaborator_error(exc) from exc
    return {"result": result}


# ── GET /sessions/:id/export ──────────────────────────────────────────────────

@router.get("/sessions/{session_id}/export")
async def export_flow(request: Request, session_id: str) -> JSONResponse:
    session = _session(request, session_id)
    return JSONResponse(
        content=session.export_document(),
        headers={
            "Content-Disposition": f'attachment; filename="{session.export_filename()}"'
        },
    )


# ── POST /sessions/:id/import ─────────────────────────────────────────────────

@router.post("/sessions/{session_id}/import")
async def import_flow(
    request: Request, session_id: str, document: Any = Body(...)
) -> Dict[str, Any]:
    session = _session(request, session_id)
    try:
        session.import_document(document)
    except FlowScriptError as exc:
        raise _http_error(exc)
    return _summary(session)


# ── POST /compile ─────────────────────────────────────────────────────────────

class CompileBody(BaseModel):
    document: Any
    headless: bool = True


@router.post("/compile")
async def compile_document(body: CompileBody) -> Dict[str, Any]:
    try:
        script = compile_graph(import_graph(body.document), headless=body.headless)
    except FlowScriptError as exc:
        raise _http_error(exc)
    return {"script": script}


# ── GET /scripts ──────────────────────────────────────────────────────────────

@router.get("/scripts")
async def list_scripts(request: Request) -> List[str]:
    store = request.app.state.store
    list_names = getattr(store, "list_names", None)
    return list_names() if list_names else []
