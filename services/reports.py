"""Dashboard aggregates over products and bookings."""

from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import List, Optional

from database import DocumentStore
from errors import store_faults
from services.bookings import COLLECTION as BOOKINGS
from services.products import COLLECTION as PRODUCTS


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def get_summary(store: DocumentStore, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    start_of_today = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)

    with store_faults("Error building report"):
        products = store.get_documents(PRODUCTS)
        bookings = store.get_documents(BOOKINGS)

    by_status = Counter(b.get("status", "pending") for b in bookings)
    revenue = sum(float(b.get("totalAmount") or 0) for b in bookings if b.get("status") != "cancelled")
    today = [b for b in bookings if b.get("createdAt") and _as_utc(b["createdAt"]) >= start_of_today]

    return {
        "totalProducts": len(products),
        "availableProducts": sum(1 for p in products if p.get("isAvailable", True)),
        "totalBookings": len(bookings),
        "bookingsByStatus": dict(by_status),
        "totalRevenue": round(revenue, 2),
        "todayBookings": len(today),
    }


def get_product_popularity(store: DocumentStore, limit: int = 5) -> List[dict]:
    """Rank booked products by number of bookings, then revenue."""
    with store_faults("Error building report"):
        bookings = store.get_documents(BOOKINGS)

    stats = defaultdict(lambda: {"name": None, "bookings": 0, "revenue": 0.0})
    for b in bookings:
        product = b.get("product") or {}
        if not product.get("id") or b.get("status") == "cancelled":
            continue
        row = stats[str(product["id"])]
        row["name"] = product.get("name")
        row["bookings"] += 1
        row["revenue"] += float(b.get("totalAmount") or 0)

    ranked = sorted(stats.items(), key=lambda kv: (kv[1]["bookings"], kv[1]["revenue"]), reverse=True)
    return [
        {"productId": pid, "name": row["name"], "bookings": row["bookings"], "revenue": round(row["revenue"], 2)}
        for pid, row in ranked[:limit]
    ]
