"""
Booking service

Bookings are looked up by native id only. `create_booking` checks the
required groups in a fixed order before the schema sees the payload, so the
first missing group is the one reported.
"""

import logging
from typing import Any, Dict, List

from database import DocumentStore
from errors import InvalidIdError, NotFoundError, ValidationError, store_faults
from schemas import Booking, BookingUpdate

logger = logging.getLogger(__name__)

COLLECTION = "booking"


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _group_missing(group: Any, keys) -> bool:
    if not isinstance(group, dict):
        return True
    return any(_missing(group.get(k)) for k in keys)


def check_required(data: Dict[str, Any]) -> None:
    if _missing(data.get("bookingId")):
        raise ValidationError("Booking ID is required")
    if _group_missing(data.get("customer"), ("name", "phone", "email")):
        raise ValidationError("Customer information is incomplete")
    if _group_missing(data.get("product"), ("id", "name")):
        raise ValidationError("Product information is incomplete")
    if _missing(data.get("date")):
        raise ValidationError("Booking date is required")
    if _missing(data.get("totalAmount")):
        raise ValidationError("Total amount is required")


def _native_id(store: DocumentStore, booking_id: Any) -> str:
    raw = str(booking_id).strip()
    if not store.is_valid_id(raw):
        raise InvalidIdError(f"Invalid booking ID format: {booking_id}")
    return raw


def create_booking(store: DocumentStore, data: Dict[str, Any]) -> dict:
    check_required(data)

    with store_faults("Error creating booking"):
        booking = Booking.model_validate(data)
        saved = store.create_document(COLLECTION, booking.to_document())
    logger.info("Booking saved: %s", saved["_id"])
    return saved


def get_all_bookings(store: DocumentStore) -> List[dict]:
    with store_faults("Error fetching bookings"):
        return store.get_documents(COLLECTION, sort=[("createdAt", -1)])


def get_booking_by_id(store: DocumentStore, booking_id: Any) -> dict:
    oid = _native_id(store, booking_id)
    with store_faults("Error fetching booking"):
        booking = store.get_document(COLLECTION, oid)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def update_booking(store: DocumentStore, booking_id: Any, patch: Dict[str, Any]) -> dict:
    """Merge the mutable fields of `patch` into the booking and save it."""
    current = get_booking_by_id(store, booking_id)

    with store_faults("Error updating booking"):
        changes = BookingUpdate.model_validate(patch).to_document(exclude_unset=True)
        if not changes:
            return current
        # validate the merged record, persist only what the caller changed
        Booking.model_validate({**current, **changes})
        updated = store.update_document(COLLECTION, current["_id"], changes)
    if updated is None:
        raise NotFoundError("Booking not found")
    logger.info("Booking updated: %s", current["_id"])
    return updated


def delete_booking(store: DocumentStore, booking_id: Any) -> dict:
    oid = _native_id(store, booking_id)
    with store_faults("Error deleting booking"):
        removed = store.delete_document(COLLECTION, oid)
    if removed is None:
        raise NotFoundError("Booking not found")
    logger.info("Booking deleted: %s", oid)
    return removed
