"""
SessionRegistry — the editing sessions served by one application instance.

Each session exclusively owns its graph; the registry only maps ids to
sessions and attaches the application's event listeners to new ones.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from flowscript.editor.session import DEFAULT_SCRIPT_NAME, EditorSession
from flowscript.errors import UnknownSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, listeners: Optional[List[Callable[[Dict[str, Any]], None]]] = None) -> None:
        self._sessions: Dict[str, EditorSession] = {}
        self._listeners = list(listeners or [])

    def create(self, script_name: Optional[str] = None) -> EditorSession:
        session = EditorSession(script_name=script_name or DEFAULT_SCRIPT_NAME)
        for listener in self._listeners:
            session.events.on_event(listener)
        self._sessions[session.id] = session
        logger.info(f"session {session.id} opened ({len(self._sessions)} active)")
        return session

    def get(self, session_id: str) -> EditorSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise UnknownSession(session_id) from None

    def drop(self, session_id: str) -> None:
        self.get(session_id)
        del self._sessions[session_id]
        logger.info(f"session {session_id} closed")

    def __len__(self) -> int:
        return len(self._sessions)
