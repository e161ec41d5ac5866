"""ISO-8601 UTC timestamps as stored on documents"""

from datetime import datetime, timezone


def now_iso() -> str:
    """Current UTC time, millisecond precision, 'Z' suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
