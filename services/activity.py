"""Activity log: timestamped "who did what" entries shown on the dashboard feed."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from database import DocumentStore
from errors import store_faults
from schemas import Activity

logger = logging.getLogger(__name__)

COLLECTION = "activity"

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def time_ago(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """Render the age of `timestamp` as whole days, hours or minutes."""
    now = now or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    age = max(0, int((now - timestamp).total_seconds()))

    if age >= DAY:
        return _plural(age // DAY, "day")
    if age >= HOUR:
        return _plural(age // HOUR, "hour")
    return _plural(age // MINUTE, "minute")


def create_activity(store: DocumentStore, data: Dict[str, Any]) -> dict:
    with store_faults("Error creating activity"):
        activity = Activity.model_validate(data)
        return store.create_document(COLLECTION, activity.to_document())


def log_activity(store: DocumentStore, action: str, user: str) -> dict:
    return create_activity(store, {"action": action, "user": user})


def get_activities(store: DocumentStore, limit: int = 10, now: Optional[datetime] = None) -> List[dict]:
    with store_faults("Error fetching activities"):
        docs = store.get_documents(COLLECTION, sort=[("timestamp", -1)], limit=limit)
    return [
        {
            "id": d["_id"],
            "action": d.get("action"),
            "user": d.get("user"),
            "time": time_ago(d["timestamp"], now),
        }
        for d in docs
    ]
