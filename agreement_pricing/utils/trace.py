"""JSONL event log for quote runs and the override change log.

Each line is one event: ``{"timestamp", "phase", <context ids>, "payload"}``.
Context ids (agreement, service) are bound once with ``bind`` instead of being
passed to every call.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class TraceLogger:
    path: Path
    enabled: bool = True
    context: Dict[str, str] = field(default_factory=dict)

    def bind(self, **ids: Optional[str]) -> "TraceLogger":
        merged = dict(self.context)
        merged.update({k: str(v) for k, v in ids.items() if v})
        return replace(self, context=merged)

    def log(self, phase: str, payload: Dict[str, Any], **ids: Optional[str]) -> None:
        if not self.enabled:
            return
        event: Dict[str, Any] = {"timestamp": datetime.now(timezone.utc).isoformat(), "phase": phase}
        event.update(self.context)
        event.update({k: str(v) for k, v in ids.items() if v})
        event["payload"] = payload

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")


@dataclass
class JsonlChangeSink:
    """Change-log sink: one ``override_change`` event per entry."""

    trace: TraceLogger
    agreement_id: Optional[str] = None

    def emit(self, entries: List[Any]) -> None:
        log = self.trace.bind(agreement_id=self.agreement_id)
        for entry in entries:
            log.log("override_change", entry.to_dict(), service_id=entry.service_id)


def build_trace_logger(path: Path | str, enabled: bool = True) -> TraceLogger:
    return TraceLogger(Path(path), enabled=enabled)


__all__ = ["TraceLogger", "JsonlChangeSink", "build_trace_logger"]
