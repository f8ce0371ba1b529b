"""Shared kernel: small helpers used by every ledger module.

Keep this small: it should NOT be a dumping ground for business logic.
Use it for id generation and timestamps.
"""
import uuid
from datetime import datetime, timezone


def generate_id() -> str:
    """Returns a new opaque identifier for characters and collection entries."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Returns the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()
