"""
Domain errors raised by the service layer

Each error carries the single human-readable message that reaches the client
and the HTTP status the API maps it to.
"""

import logging
from contextlib import contextmanager

from pydantic import ValidationError as SchemaValidationError

from database import FaultKind, StoreError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class InvalidIdError(NotFoundError):
    """Identifier that cannot name any record."""


class PayloadTooLargeError(ServiceError):
    status_code = 413


class PersistenceError(ServiceError):
    status_code = 500


class AuthenticationError(ServiceError):
    status_code = 401


IMAGE_TOO_LARGE = "Image data is too large. Please use a smaller image."

PERSISTENCE_MESSAGES = {
    FaultKind.CONNECTION: "Database error: connection failure",
    FaultKind.DUPLICATE_KEY: "Database error: duplicate key",
    FaultKind.DATABASE: "Database error: operation failed",
}


def from_store_error(exc: StoreError) -> ServiceError:
    if exc.kind == FaultKind.VALIDATION:
        return ValidationError("Validation error: document rejected by the database")
    if exc.kind == FaultKind.DOCUMENT_TOO_LARGE:
        return PayloadTooLargeError(IMAGE_TOO_LARGE)
    if exc.kind == FaultKind.INVALID_ID:
        return InvalidIdError(f"Invalid ID format: {exc.message}")
    # driver text stays in the log, clients get a fixed message
    return PersistenceError(PERSISTENCE_MESSAGES.get(exc.kind, PERSISTENCE_MESSAGES[FaultKind.DATABASE]))


def from_schema_error(exc: SchemaValidationError) -> ValidationError:
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()))
        problems.append(f"{field}: {err['msg']}" if field else err["msg"])
    return ValidationError("Validation error: " + ", ".join(problems))


@contextmanager
def store_faults(context: str):
    """Translate StoreError and schema failures raised inside the block."""
    try:
        yield
    except StoreError as e:
        logger.error("%s: %s (%s)", context, e.message, e.kind.value)
        raise from_store_error(e) from e
    except SchemaValidationError as e:
        logger.warning("%s: %s", context, e)
        raise from_schema_error(e) from e
