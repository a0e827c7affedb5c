"""
File-based audit sink.

One JSON array per UTC day (``logs-YYYY-MM-DD.json``). A file that no longer
parses as an array is started over. Appends are serialized within the
process.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from newsdesk.domain.entities import AuditLogEvent

logger = logging.getLogger(__name__)


class JsonFileAuditSink:
    # shared by every instance: the API builds a sink per request
    _lock = threading.Lock()

    def __init__(self, log_dir: str | Path) -> None:
        self.log_dir = Path(log_dir)

    def path_for(self, event: AuditLogEvent) -> Path:
        return self.log_dir / f"logs-{event.timestamp.date().isoformat()}.json"

    def record(self, event: AuditLogEvent) -> None:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(event)

        entry = event.model_dump(mode="json")
        with self._lock:
            entries = self._read(path)
            entries.append(entry)
            path.write_text(json.dumps(entries, indent=2), encoding="utf-8")

    def _read(self, path: Path) -> list[Any]:
        if not path.exists():
            return []
        try:
            entries = json.loads(path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Audit log file %s is corrupt, starting a new one", path)
            return []
        if not isinstance(entries, list):
            logger.warning("Audit log file %s does not hold an array, starting a new one", path)
            return []
        return entries
