from datetime import datetime, timezone

from services import bookings, products, reports


def _book(store, booking_data, ref, product_id, name, amount, status=None):
    data = {**booking_data, "bookingId": ref, "product": {"id": product_id, "name": name}, "totalAmount": amount}
    if status:
        data["status"] = status
    return bookings.create_booking(store, data)


def test_summary(store, product_data, booking_data):
    products.create_product(store, product_data)
    products.create_product(store, {**product_data, "productId": 102, "name": "Drone", "isAvailable": False})
    _book(store, booking_data, "BK-1", "101", "Canon EOS R6", 100)
    _book(store, booking_data, "BK-2", "101", "Canon EOS R6", 50.5, status="confirmed")
    _book(store, booking_data, "BK-3", "102", "Drone", 80, status="cancelled")

    # the test store clock starts at 2024-01-01
    summary = reports.get_summary(store, now=datetime(2024, 1, 1, 18, 0, tzinfo=timezone.utc))

    assert summary == {
        "totalProducts": 2,
        "availableProducts": 1,
        "totalBookings": 3,
        "bookingsByStatus": {"pending": 1, "confirmed": 1, "cancelled": 1},
        "totalRevenue": 150.5,
        "todayBookings": 3,
    }


def test_summary_on_empty_store(store):
    summary = reports.get_summary(store, now=datetime(2024, 1, 2, tzinfo=timezone.utc))
    assert summary["totalBookings"] == 0
    assert summary["totalRevenue"] == 0
    assert summary["todayBookings"] == 0


def test_product_popularity(store, booking_data):
    _book(store, booking_data, "BK-1", "101", "Canon EOS R6", 100)
    _book(store, booking_data, "BK-2", "102", "Drone", 60)
    _book(store, booking_data, "BK-3", "102", "Drone", 60)
    _book(store, booking_data, "BK-4", "103", "Tripod", 10)
    _book(store, booking_data, "BK-5", "103", "Tripod", 10, status="cancelled")

    ranking = reports.get_product_popularity(store, limit=2)

    assert ranking == [
        {"productId": "102", "name": "Drone", "bookings": 2, "revenue": 120.0},
        {"productId": "101", "name": "Canon EOS R6", "bookings": 1, "revenue": 100.0},
    ]
