from __future__ import annotations

import json
from collections import deque
from pathlib import Path
from typing import Any, Iterator
from uuid import uuid4

from addonloader.assurance.logging import canonical_json, utc_now_iso_z
from addonloader.config import AddonLoaderConfig
from addonloader.provenance.hashchain import HASH_FIELD, PREV_HASH_FIELD, seal_event


def ledger_path(cfg: AddonLoaderConfig) -> Path:
    return Path(cfg.ledger_dir) / cfg.ledger_filename


def _require_enabled(cfg: AddonLoaderConfig) -> None:
    if not cfg.ledger_enabled:
        raise RuntimeError("Ledger is disabled by configuration")


def ensure_ledger(cfg: AddonLoaderConfig) -> Path:
    """Create the ledger file (and its directory) if needed and return its path."""
    _require_enabled(cfg)
    path = ledger_path(cfg)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.is_dir():
        raise RuntimeError(f"Ledger path {path} is a directory, expected a file")
    path.touch(exist_ok=True)
    return path


def _iter_events(path: Path) -> Iterator[dict[str, Any]]:
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            if line.strip():
                yield json.loads(line)


def _tail(path: Path, limit: int | None) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    if limit is None:
        return list(_iter_events(path))
    return list(deque(_iter_events(path), maxlen=limit))


def read_events(cfg: AddonLoaderConfig, limit: int | None = None) -> list[dict[str, Any]]:
    """Return ledger events oldest first, or only the last ``limit`` of them."""
    _require_enabled(cfg)
    path = ledger_path(cfg)
    if not path.exists():
        raise FileNotFoundError(str(path))
    return _tail(path, limit)


def append_event(
    cfg: AddonLoaderConfig, event_type: str, payload: dict[str, Any], ts: str, actor: str
) -> dict[str, Any]:
    path = ensure_ledger(cfg)
    last = _tail(path, 1)
    event = seal_event(
        {
            "schema_version": cfg.log_schema_version,
            "event_id": str(uuid4()),
            "type": event_type,
            "payload": payload,
            "ts": ts,
            "actor": actor,
            PREV_HASH_FIELD: last[0][HASH_FIELD] if last else None,
        }
    )
    with path.open("a", encoding="utf-8") as handle:
        handle.write(canonical_json(event) + "\n")
    return event


def record_event(
    cfg: AddonLoaderConfig | None, event_type: str, payload: dict[str, Any], *, actor: str
) -> str | None:
    """Append ``payload`` to the ledger when enabled and return the event hash.

    Returns ``None`` when the ledger is disabled or cannot be written.
    """
    if cfg is None or not cfg.ledger_enabled:
        return None
    try:
        event = append_event(cfg, event_type, payload, utc_now_iso_z(), actor)
    except (OSError, RuntimeError, ValueError):
        return None
    return event[HASH_FIELD]


__all__ = ["ledger_path", "ensure_ledger", "append_event", "read_events", "record_event"]
