"""
MongoDB persistence for the rental backend

`DocumentStore` wraps a pymongo database handle. It is constructed explicitly,
opened with `connect()` and released with `close()`; services receive it as an
argument instead of importing a global connection.

Driver exceptions never leave this module: every failure is re-raised as a
`StoreError` carrying one of the `FaultKind` values so callers can switch on
the kind.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidDocument, InvalidId
from pymongo import MongoClient, ReturnDocument
from pymongo.errors import (
    ConnectionFailure,
    DocumentTooLarge,
    DuplicateKeyError,
    PyMongoError,
    WriteError,
)

logger = logging.getLogger(__name__)

# Server-side $jsonSchema rejection
DOCUMENT_VALIDATION_FAILURE = 121


class FaultKind(str, Enum):
    VALIDATION = "validation"
    DUPLICATE_KEY = "duplicate_key"
    CONNECTION = "connection"
    DOCUMENT_TOO_LARGE = "document_too_large"
    INVALID_ID = "invalid_id"
    DATABASE = "database"


class StoreError(Exception):
    def __init__(self, kind: FaultKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@contextmanager
def translate_faults():
    """Re-raise driver exceptions as StoreError."""
    try:
        yield
    except DocumentTooLarge as e:
        raise StoreError(FaultKind.DOCUMENT_TOO_LARGE, str(e)) from e
    except InvalidDocument as e:
        raise StoreError(FaultKind.VALIDATION, str(e)) from e
    except InvalidId as e:
        raise StoreError(FaultKind.INVALID_ID, str(e)) from e
    except DuplicateKeyError as e:
        raise StoreError(FaultKind.DUPLICATE_KEY, str(e)) from e
    except WriteError as e:
        if e.code == DOCUMENT_VALIDATION_FAILURE:
            raise StoreError(FaultKind.VALIDATION, str(e)) from e
        raise StoreError(FaultKind.DATABASE, str(e)) from e
    except ConnectionFailure as e:
        raise StoreError(FaultKind.CONNECTION, str(e)) from e
    except PyMongoError as e:
        raise StoreError(FaultKind.DATABASE, str(e)) from e


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def serialize(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    doc["_id"] = str(doc["_id"])
    return doc


class DocumentStore:
    def __init__(self, url: str, name: str, timeout_ms: int = 5000):
        self.url = url
        self.name = name
        self.timeout_ms = timeout_ms
        self._client: Optional[MongoClient] = None
        self._db = None

    def connect(self) -> "DocumentStore":
        if self._db is not None:
            return self
        with translate_faults():
            self._client = MongoClient(self.url, serverSelectionTimeoutMS=self.timeout_ms, tz_aware=True)
            self._db = self._client[self.name]
        logger.info("MongoDB client ready for database %s", self.name)
        return self

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed")
        self._client = None
        self._db = None

    def _collection(self, collection_name: str):
        if self._db is None:
            raise StoreError(FaultKind.CONNECTION, "Database not connected")
        return self._db[collection_name]

    @staticmethod
    def is_valid_id(value: Any) -> bool:
        return isinstance(value, str) and ObjectId.is_valid(value)

    @staticmethod
    def _oid(value: str) -> ObjectId:
        if not DocumentStore.is_valid_id(value):
            raise StoreError(FaultKind.INVALID_ID, f"'{value}' is not a valid ObjectId")
        return ObjectId(value)

    def collection_names(self) -> List[str]:
        with translate_faults():
            if self._db is None:
                raise StoreError(FaultKind.CONNECTION, "Database not connected")
            return self._db.list_collection_names()

    def create_document(self, collection_name: str, data: Dict[str, Any]) -> dict:
        """Insert a document, stamping createdAt/updatedAt, and return it."""
        doc = dict(data)
        now = now_utc()
        doc["createdAt"] = now
        doc["updatedAt"] = now
        with translate_faults():
            result = self._collection(collection_name).insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize(doc)

    def get_documents(
        self,
        collection_name: str,
        filter_dict: Optional[dict] = None,
        sort: Optional[List[Tuple[str, int]]] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        with translate_faults():
            cursor = self._collection(collection_name).find(filter_dict or {})
            if sort:
                cursor = cursor.sort(sort)
            if limit:
                cursor = cursor.limit(limit)
            return [serialize(d) for d in cursor]

    def get_document(self, collection_name: str, doc_id: str) -> Optional[dict]:
        oid = self._oid(doc_id)
        with translate_faults():
            return serialize(self._collection(collection_name).find_one({"_id": oid}))

    def find_document(self, collection_name: str, filter_dict: dict) -> Optional[dict]:
        with translate_faults():
            return serialize(self._collection(collection_name).find_one(filter_dict))

    def update_document(self, collection_name: str, doc_id: str, fields: Dict[str, Any]) -> Optional[dict]:
        """Apply a $set of `fields` and return the updated document, or None."""
        oid = self._oid(doc_id)
        changes = dict(fields)
        changes["updatedAt"] = now_utc()
        with translate_faults():
            doc = self._collection(collection_name).find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        return serialize(doc)

    def delete_document(self, collection_name: str, doc_id: str) -> Optional[dict]:
        oid = self._oid(doc_id)
        with translate_faults():
            return serialize(self._collection(collection_name).find_one_and_delete({"_id": oid}))
