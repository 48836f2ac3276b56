"""
Server settings, read from the environment.

A ``.env`` file in the working directory is loaded first (python-dotenv), so
values can live there instead of being exported manually.

    FLOWSCRIPT_HOST            bind address             (0.0.0.0)
    FLOWSCRIPT_PORT            bind port                (3001)
    FLOWSCRIPT_SCRIPTS_DIR     saved scripts directory  (./scripts)
    FLOWSCRIPT_RUNNER_URL      Selenium execution endpoint; unset disables run
    FLOWSCRIPT_RUNNER_TIMEOUT  seconds to wait for a run (60)
    FLOWSCRIPT_CORS_ORIGINS    comma separated origins  (*)
    FLOWSCRIPT_LOG_LEVEL       logging level name       (INFO)
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 3001
    scripts_dir: Path = Path("scripts")
    runner_url: Optional[str] = None
    runner_timeout: float = 60.0
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from ``environ`` (defaults to ``os.environ`` after
        loading ``.env``).

        Raises:
            ValueError: if a numeric variable does not parse.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        def _get(name: str, default: str) -> str:
            return environ.get(f"FLOWSCRIPT_{name}", default)

        try:
            port = int(_get("PORT", "3001"))
            runner_timeout = float(_get("RUNNER_TIMEOUT", "60"))
        except ValueError as exc:
            raise ValueError(f"invalid FLOWSCRIPT_* setting: {exc}") from exc

        origins = [o.strip() for o in _get("CORS_ORIGINS", "*").split(",") if o.strip()]

        settings = cls(
            host=_get("HOST", "0.0.0.0"),
            port=port,
            scripts_dir=Path(_get("SCRIPTS_DIR", "scripts")),
            runner_url=_get("RUNNER_URL", "") or None,
            runner_timeout=runner_timeout,
            cors_origins=origins or ["*"],
            log_level=_get("LOG_LEVEL", "INFO").upper(),
        )
        if settings.runner_url is None:
            logger.warning("FLOWSCRIPT_RUNNER_URL not set - run requests will be refused")
        return settings
