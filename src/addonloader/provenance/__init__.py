"""
Append-only provenance ledger for addon composition and lazy loading events.
"""

from .hashchain import compute_event_hash, verify_chain
from .ledger import append_event, ensure_ledger, ledger_path, read_events, record_event

__all__ = [
    "append_event",
    "ensure_ledger",
    "ledger_path",
    "read_events",
    "record_event",
    "compute_event_hash",
    "verify_chain",
]
