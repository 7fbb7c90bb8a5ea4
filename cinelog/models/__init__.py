from datetime import datetime, timezone

from ..extensions import db


def utcnow() -> datetime:
    """Naive UTC wall-clock time, the convention for every timestamp column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


__all__ = ["db", "utcnow"]
