"""
FlowScript API server — FastAPI + Socket.IO.

Start with:
    flowscript-server

Or via uvicorn directly:
    uvicorn flowscript.server.main:build_asgi_app --factory --port 3001 --reload
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flowscript.editor.session import RunHandler, SaveHandler
from flowscript.server.collaborators import FileScriptStore, RemoteScriptRunner
from flowscript.server.config import Settings
from flowscript.server.events.socket_server import (
    create_socket_app,
    create_socket_server,
    make_broadcaster,
)
from flowscript.server.routes.session_routes import router
from flowscript.server.state import SessionRegistry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[SaveHandler] = None,
    runner: Optional[RunHandler] = None,
    sio=None,
) -> FastAPI:
    """
    Build the API.  ``store`` and ``runner`` default to the file store and the
    remote runner described by ``settings``; pass fakes to test in isolation.
    """
    settings = settings or Settings.from_env()

    app = FastAPI(title="FlowScript API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    listeners = [make_broadcaster(sio)] if sio is not None else []
    app.state.settings = settings
    app.state.sessions = SessionRegistry(listeners=listeners)
    app.state.store = store if store is not None else FileScriptStore(settings.scripts_dir)
    if runner is None and settings.runner_url:
        runner = RemoteScriptRunner(settings.runner_url, timeout=settings.runner_timeout)
    app.state.runner = runner

    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "sessions": len(app.state.sessions)}

    return app


# ---------------------------------------------------------------------------
# Wrap with Socket.IO ASGI layer
# ---------------------------------------------------------------------------

def build_asgi_app(settings: Optional[Settings] = None):
    """Top-level ASGI app: Socket.IO at the root, everything else to FastAPI."""
    settings = settings or Settings.from_env()
    sio = create_socket_server(settings.cors_origins)
    return create_socket_app(create_app(settings, sio=sio), sio)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"serving on {settings.host}:{settings.port}, scripts in {settings.scripts_dir}")
    uvicorn.run(build_asgi_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
