"""
Configuration for the study hub backend.

Two layers:

* ``Config`` — filter policy stored in a JSON file, addressed with
  dotted keys (``"filter.log_content_access"``).  Keys that were never
  written fall back to ``DEFAULTS``.
* ``ServerSettings`` — deployment values (vendor credentials, port,
  environment) read from the process environment, with ``.env``
  support through python-dotenv.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .events import CONFIG_CHANGED, EventBus

logger = logging.getLogger(__name__)

_DEFAULT_PATH = Path("config.json")

DEFAULTS: dict[str, Any] = {
    "filter": {
        "allow_explicit_with_educational_context": True,
        "require_user_consent": True,
        "log_content_access": True,
        "institution": "Lewisville Independent School District",
        "educational_context": "Music Study Platform - LISD Approved",
        "context_note": "Approved for educational music study platform",
        "compliance_standards": ["CIPA", "COPPA", "FERPA"],
    },
}


def _lookup(tree: dict[str, Any], parts: list[str]) -> tuple[bool, Any]:
    node: Any = tree
    for p in parts:
        if not isinstance(node, dict) or p not in node:
            return False, None
        node = node[p]
    return True, node


class Config:
    """
    Hierarchical filter-policy store backed by a JSON file.

    Keys use dot notation: ``"filter.institution"``,
    ``"filter.keywords.blocked"``.
    """

    def __init__(self, event_bus: EventBus | None = None, path: Path | str = _DEFAULT_PATH):
        self._bus = event_bus
        self._path = Path(path)
        self._data: dict[str, Any] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get(self, key: str, default: Any = None) -> Any:
        parts = key.split(".")
        found, value = _lookup(self._data, parts)
        if found:
            return value
        found, value = _lookup(DEFAULTS, parts)
        if found:
            return copy.deepcopy(value)
        return default

    def set(self, key: str, value: Any, *, save: bool = True) -> None:
        parts = key.split(".")
        node = self._data
        for p in parts[:-1]:
            child = node.get(p)
            if not isinstance(child, dict):
                child = {}
                node[p] = child
            node = child
        node[parts[-1]] = value

        if save:
            self._save()

        if self._bus is not None:
            self._bus.publish(CONFIG_CHANGED, {"key": key, "value": value})

    def section(self, prefix: str) -> dict[str, Any]:
        """Defaults under *prefix* overlaid with stored values (a copy)."""
        parts = prefix.split(".")
        merged: dict[str, Any] = {}
        for tree in (DEFAULTS, self._data):
            found, node = _lookup(tree, parts)
            if found and isinstance(node, dict):
                merged.update(copy.deepcopy(node))
        return merged

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable config %s: %s", self._path, e)
            return
        if isinstance(data, dict):
            self._data = data

    def _save(self) -> None:
        try:
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning("Could not save config %s: %s", self._path, e)


# ----------------------------------------------------------------------
# Deployment settings
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class ServerSettings:
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    redirect_uri: str = "http://localhost:3000"
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"
    config_path: str = str(_DEFAULT_PATH)
    log_dir: str = "compliance_logs"

    @property
    def has_spotify_credentials(self) -> bool:
        return bool(self.spotify_client_id and self.spotify_client_secret)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def load_settings(env_file: str | None = None) -> ServerSettings:
    """Read ``ServerSettings`` from the environment (and ``.env``)."""
    load_dotenv(env_file)

    port = int(os.getenv("PORT", "3000"))

    redirect_uri = os.getenv("REDIRECT_URI")
    if not redirect_uri:
        vercel_url = os.getenv("VERCEL_URL")
        redirect_uri = f"https://{vercel_url}" if vercel_url else f"http://localhost:{port}"

    return ServerSettings(
        spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID", ""),
        spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET", ""),
        redirect_uri=redirect_uri,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        environment=os.getenv("APP_ENV", "development"),
        config_path=os.getenv("STUDYHUB_CONFIG", str(_DEFAULT_PATH)),
        log_dir=os.getenv("STUDYHUB_LOG_DIR", "compliance_logs"),
    )
