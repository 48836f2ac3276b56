"""
Socket.IO server — pushes session events to the canvas.

Uses python-socketio in ASGI mode so it can wrap FastAPI.  A canvas emits
``subscribe`` with a session id and then receives every ``session_event``
fired by that session.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Set

import socketio

logger = logging.getLogger(__name__)


def create_socket_server(cors_origins: Any = "*") -> socketio.AsyncServer:
    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=cors_origins,
        logger=False,
        engineio_logger=False,
    )

    # ---------------------------------------------------------------------------
    # Socket.IO lifecycle events
    # ---------------------------------------------------------------------------

    @sio.event
    async def connect(sid: str, environ: dict) -> None:
        logger.debug(f"socket {sid} connected")

    @sio.event
    async def subscribe(sid: str, session_id: str) -> None:
        await sio.enter_room(sid, session_id)
        logger.debug(f"socket {sid} subscribed to session {session_id}")

    @sio.event
    async def unsubscribe(sid: str, session_id: str) -> None:
        await sio.leave_room(sid, session_id)

    @sio.event
    async def disconnect(sid: str) -> None:
        logger.debug(f"socket {sid} disconnected")

    return sio


def make_broadcaster(sio: socketio.AsyncServer) -> Callable[[Dict[str, Any]], None]:
    """
    Listener for SessionEvents.on_event.

    Called synchronously by SessionEvents.fire(); the emit is scheduled on the
    running event loop, to the room named after the session.  Scheduled emits
    stay in ``pending`` until they finish; a failed emit is logged.
    """
    pending: Set[asyncio.Task] = set()

    def _emitted(task: asyncio.Task) -> None:
        pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"broadcast {task.get_name()} failed: {exc!r}")

    def _on_event(event: Dict[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"no running loop; dropping {event.get('type')} broadcast")
            return
        task = loop.create_task(
            sio.emit("session_event", event, room=event.get("sessionId")),
            name=f"{event.get('type')}->{event.get('sessionId')}",
        )
        pending.add(task)
        task.add_done_callback(_emitted)

    _on_event.pending = pending
    return _on_event


def create_socket_app(fastapi_app: Any, sio: socketio.AsyncServer) -> socketio.ASGIApp:
    """Wrap *fastapi_app* inside a Socket.IO ASGI application."""
    return socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
