"""
SessionEvents — fan-out of editor lifecycle events.

Listeners (socket broadcasters, loggers, tests) register with ``on_event`` and
receive every payload fired by the owning session.  Each payload is a dict
with at least ``type`` and a millisecond ``ts`` stamp.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class SessionEvents:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def on_event(self, callback: Listener) -> None:
        """Register a callback that receives every emitted event."""
        self._listeners.append(callback)

    def off_event(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------
    # Emit
    # ------------------------------------------------------------------

    def fire(self, payload: Dict[str, Any]) -> None:
        """Stamp the payload with a millisecond timestamp and broadcast it."""
        if "ts" not in payload:
            payload["ts"] = _now_ms()
        for cb in list(self._listeners):
            try:
                cb(payload)
            except Exception:
                # A broken listener must not abort the editing action.
                logger.exception(f"event listener failed on {payload.get('type')}")


def _now_ms() -> int:
    return int(time.time() * 1000)
