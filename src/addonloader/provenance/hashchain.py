"""Each ledger event commits to the hash of the event before it."""

from __future__ import annotations

import hashlib
from typing import Any, Iterable

from addonloader.assurance.logging import canonical_json

HASH_FIELD = "hash"
PREV_HASH_FIELD = "prev_hash"


def compute_event_hash(event_without_hash: dict[str, Any]) -> str:
    return hashlib.sha256(canonical_json(event_without_hash).encode("utf-8")).hexdigest()


def seal_event(event_without_hash: dict[str, Any]) -> dict[str, Any]:
    return {**event_without_hash, HASH_FIELD: compute_event_hash(event_without_hash)}


def _is_sealed(event: dict[str, Any]) -> bool:
    body = {key: value for key, value in event.items() if key != HASH_FIELD}
    return event.get(HASH_FIELD) == compute_event_hash(body)


def verify_chain(events: Iterable[dict[str, Any]]) -> bool:
    """True when every event is intact and links to its predecessor.

    The first event must carry an empty ``prev_hash``.
    """
    expected_prev: str | None = None
    for event in events:
        if (event.get(PREV_HASH_FIELD) or None) != expected_prev or not _is_sealed(event):
            return False
        expected_prev = event[HASH_FIELD]
    return True


__all__ = ["HASH_FIELD", "PREV_HASH_FIELD", "compute_event_hash", "seal_event", "verify_chain"]
