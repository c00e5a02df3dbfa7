from datetime import datetime, timezone
from typing import Optional


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    """
    Serialize a stored timestamp with an explicit UTC offset.

    SQLite hands back naive values for CURRENT_TIMESTAMP, which is UTC; those
    get tzinfo attached. Aware values (PostgreSQL) are converted to UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()
