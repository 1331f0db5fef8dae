from __future__ import annotations

import uuid
from datetime import datetime, timezone


# PUBLIC_INTERFACE
def utc_now_iso() -> str:
    """
    Return the current UTC time as an ISO8601 string with millisecond precision.

    Example:
        '2025-01-31T13:45:00.123Z'
    """
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# PUBLIC_INTERFACE
def new_task_id() -> str:
    """Return a new random task identifier (UUID4 string)."""
    return str(uuid.uuid4())
