"""
External collaborators handed to EditorSession.save / EditorSession.run.

FileScriptStore     persistence: <slug>.py (script) + <slug>.json (document)
RemoteScriptRunner  execution:   POST {"script": ...} to a Selenium service
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from flowscript.compiler import export_graph
from flowscript.core.graph import Edge, Graph, Node

logger = logging.getLogger(__name__)

DEFAULT_SLUG = "script"


def script_slug(name: str) -> str:
    """'Login Flow / v2' → 'login-flow-v2'; letters outside ASCII are kept."""
    slug = re.sub(r"\s+", "-", name.strip()).lower()
    slug = re.sub(r"[^\w.-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-.")
    return slug or DEFAULT_SLUG


# ── Persistence ──────────────────────────────────────────────────────────────

class FileScriptStore:
    """
    Writes ``<slug>.py`` and ``<slug>.json`` per saved script.  The JSON file
    records the script name, so two names sharing a slug ("Login Flow",
    "login-flow") get distinct files (``login-flow``, ``login-flow-2``) while
    saving the same name again overwrites its own pair.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def _stored_name(self, slug: str) -> Optional[str]:
        document = self.load_document(slug)
        if document is None:
            return None
        return document.get("name", slug)

    def _claim_slug(self, name: str) -> str:
        base = script_slug(name)
        slug, n = base, 1
        while True:
            owner = self._stored_name(slug)
            if owner is None or owner == name:
                return slug
            n += 1
            slug = f"{base}-{n}"

    def _write(self, name: str, script: str, document: Dict[str, Any]) -> Path:
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            slug = self._claim_slug(name)
            script_path = self.directory / f"{slug}.py"
            script_path.write_text(script, encoding="utf-8")
            (self.directory / f"{slug}.json").write_text(
                json.dumps({"name": name, **document}, indent=2), encoding="utf-8"
            )
            return script_path

    async def __call__(
        self, name: str, script: str, nodes: List[Node], edges: List[Edge]
    ) -> Dict[str, Any]:
        document = export_graph(Graph(nodes=nodes, edges=edges))
        path = await asyncio.to_thread(self._write, name, script, document)
        logger.info(f"stored script '{name}' at {path}")
        return {"name": name, "path": str(path)}

    def list_names(self) -> List[str]:
        """Saved script names, ordered by file slug."""
        if not self.directory.is_dir():
            return []
        slugs = sorted(p.stem for p in self.directory.glob("*.py"))
        return [self._stored_name(slug) or slug for slug in slugs]

    def load_document(self, slug: str) -> Optional[Dict[str, Any]]:
        path = self.directory / f"{slug}.json"
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))


# ── Execution ────────────────────────────────────────────────────────────────

class RemoteScriptRunner:
    def __init__(self, url: str, timeout: float = 60.0) -> None:
        self.url = url
        self.timeout = timeout

    async def __call__(self, script: str) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json={"script": script})
            response.raise_for_status()
            return response.json()
