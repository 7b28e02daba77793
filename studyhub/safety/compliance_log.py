"""
Compliance logging for content-access decisions.

Every classified track or playlist gets one entry, emitted to:

1. The ``studyhub.compliance`` logger (the log stream the deployment
   ships to its collector).
2. A JSON-Lines file (``compliance_logs/content_access.jsonl``) for
   post-hoc auditing.
3. The ``EventBus`` as a ``compliance_entry`` event, when a bus is
   attached.

Emission is fire-and-forget.  A failing sink is reported as a warning
and never reaches the caller.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..events import COMPLIANCE_ENTRY
from .classifier import ClassificationResult

logger = logging.getLogger(__name__)
stream = logging.getLogger("studyhub.compliance")

_LOG_DIR = Path("compliance_logs")
_LOG_NAME = "content_access.jsonl"

DEFAULT_CONTEXT = "Music Study Platform - LISD Approved"


# ------------------------------------------------------------------
# Log entry builder
# ------------------------------------------------------------------

def build_log_entry(
    kind: str,                       # "track" | "playlist" | "live"
    subject_id: str,
    subject_name: str,
    analysis: ClassificationResult,
    artist: str = "",
    educational_context: str = DEFAULT_CONTEXT,
    user_info: Any = None,
) -> Dict[str, Any]:
    """Build a structured log entry dict."""
    entry: Dict[str, Any] = {
        "id": uuid.uuid4().hex[:12],
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "kind": kind,
        "subjectId": subject_id,
        "subjectName": subject_name,
        "artist": artist,
        "isExplicit": analysis.is_explicit,
        "educationalValue": analysis.educational_value,
        "riskLevel": analysis.risk_level.value,
        "admitted": analysis.admitted,
        # Access goes through the study platform, which collects consent up front.
        "userConsent": True,
        "educationalContext": educational_context,
        "complianceNotes": "; ".join(analysis.reasons),
    }
    if user_info is not None:
        entry["user"] = user_info
    return entry


# ------------------------------------------------------------------
# Log writer
# ------------------------------------------------------------------

class ComplianceLogger:
    """Append-only sink for compliance entries."""

    def __init__(self, event_bus: Optional[Any] = None, log_dir: Optional[Path | str] = None):
        self._bus = event_bus
        self._dir = Path(log_dir) if log_dir is not None else _LOG_DIR
        self._file = self._dir / _LOG_NAME
        self._store_user_info = True   # can be toggled off for privacy

    @property
    def path(self) -> Path:
        return self._file

    @property
    def store_user_info(self) -> bool:
        return self._store_user_info

    @store_user_info.setter
    def store_user_info(self, val: bool) -> None:
        self._store_user_info = val

    def log(self, entry: Dict[str, Any]) -> None:
        """Emit one entry to every sink; failures are swallowed."""
        self.log_many([entry])

    def log_many(self, entries: Sequence[Dict[str, Any]]) -> None:
        """Emit a batch of entries with a single file append."""
        if not entries:
            return
        if not self._store_user_info:
            entries = [{**e, "user": "[redacted]"} if "user" in e else e for e in entries]

        for entry in entries:
            stream.info(
                "Content access: %s %s (%s) risk=%s educational=%d admitted=%s",
                entry.get("kind", "?"),
                entry.get("subjectId", ""),
                entry.get("subjectName", ""),
                entry.get("riskLevel", "low"),
                entry.get("educationalValue", 0),
                entry.get("admitted", True),
            )

        try:
            lines = "".join(
                json.dumps(e, ensure_ascii=False, default=str) + "\n" for e in entries
            )
            self._dir.mkdir(parents=True, exist_ok=True)
            with self._file.open("a", encoding="utf-8") as f:
                f.write(lines)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Compliance log write failed: %s", e)

        if self._bus is not None:
            for entry in entries:
                try:
                    self._bus.publish(COMPLIANCE_ENTRY, entry)
                except Exception as e:
                    logger.warning("Compliance event publish failed: %s", e)

    def read_recent(self, n: int = 50) -> List[Dict[str, Any]]:
        """Read the last *n* entries from disk."""
        if not self._file.exists():
            return []
        try:
            lines = self._file.read_text(encoding="utf-8").strip().split("\n")
            entries = []
            for line in lines[-n:]:
                if line.strip():
                    entries.append(json.loads(line))
            return entries
        except (json.JSONDecodeError, OSError):
            return []

    def clear(self) -> None:
        """Truncate the log file."""
        try:
            if self._file.exists():
                self._file.write_text("", encoding="utf-8")
        except OSError as e:
            logger.warning("Could not clear compliance log: %s", e)
