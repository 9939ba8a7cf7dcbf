from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable


def canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=_json_fallback)


def _json_fallback(obj: Any) -> Any:
    if isinstance(obj, (tuple, set, frozenset)):
        return sorted(obj) if isinstance(obj, (set, frozenset)) else list(obj)
    return {"__type__": type(obj).__name__, "__repr__": repr(obj)}


def compute_checksum(payload: dict[str, Any]) -> str:
    encoded = canonical_json(payload).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def utc_now_iso_z() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class LogEvent:
    schema_version: str
    ts: str
    action: str
    outcome: str
    details: dict[str, Any]
    checksum: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "ts": self.ts,
            "action": self.action,
            "outcome": self.outcome,
            "details": self.details,
            "checksum": self.checksum,
        }


def build_log_event(
    schema_version: str,
    ts: str,
    action: str,
    outcome: str,
    details: dict[str, Any],
    checksum_fn: Callable[[dict[str, Any]], str] | None = None,
) -> LogEvent:
    payload = {
        "schema_version": schema_version,
        "ts": ts,
        "action": action,
        "outcome": outcome,
        "details": details,
    }
    checksum_function = checksum_fn or compute_checksum
    checksum = checksum_function(payload)
    return LogEvent(
        schema_version=schema_version,
        ts=ts,
        action=action,
        outcome=outcome,
        details=details,
        checksum=checksum,
    )


def append_jsonl_log_event(
    *,
    cfg: Any,
    action: str,
    outcome: str,
    details: dict[str, Any],
    now_fn: Callable[[], str] | None = None,
) -> LogEvent:
    event = build_log_event(
        schema_version=cfg.log_schema_version,
        ts=(now_fn or utc_now_iso_z)(),
        action=action,
        outcome=outcome,
        details=details,
    )
    path = Path(cfg.log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as log_file:
        log_file.write(canonical_json(event.to_dict()) + "\n")
    return event


__all__ = [
    "LogEvent",
    "canonical_json",
    "compute_checksum",
    "utc_now_iso_z",
    "build_log_event",
    "append_jsonl_log_event",
]
