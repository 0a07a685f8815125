import copy
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import bson
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from database import DocumentStore, FaultKind, StoreError, serialize
from main import app, get_store


class InMemoryStore(DocumentStore):
    """DocumentStore double keeping collections in dicts.

    Timestamps come from a clock that advances one second per write so
    createdAt ordering is deterministic.
    """

    def __init__(self, max_document_size: int = 16 * 1024 * 1024):
        super().__init__("memory://", "rental_test")
        self.collections = defaultdict(list)
        self.max_document_size = max_document_size
        self.fault = None
        self._now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def connect(self):
        return self

    def close(self):
        pass

    def _tick(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now

    def _check(self, doc=None):
        if self.fault:
            raise StoreError(self.fault, "simulated failure")
        if doc is not None and len(bson.encode(doc)) > self.max_document_size:
            raise StoreError(FaultKind.DOCUMENT_TOO_LARGE, "document too large")

    @staticmethod
    def _matches(doc, filter_dict):
        return all(doc.get(k) == v for k, v in (filter_dict or {}).items())

    def _find(self, collection_name, oid):
        for doc in self.collections[collection_name]:
            if doc["_id"] == oid:
                return doc
        return None

    def collection_names(self):
        self._check()
        return list(self.collections)

    def create_document(self, collection_name, data):
        doc = dict(data)
        doc["_id"] = ObjectId()
        doc["createdAt"] = doc["updatedAt"] = self._tick()
        self._check(doc)
        self.collections[collection_name].append(doc)
        return serialize(copy.deepcopy(doc))

    def get_documents(self, collection_name, filter_dict=None, sort=None, limit=None):
        self._check()
        docs = [d for d in self.collections[collection_name] if self._matches(d, filter_dict)]
        for key, direction in reversed(sort or []):
            docs.sort(key=lambda d: d[key], reverse=direction < 0)
        if limit:
            docs = docs[:limit]
        return [serialize(copy.deepcopy(d)) for d in docs]

    def get_document(self, collection_name, doc_id):
        oid = self._oid(doc_id)
        self._check()
        return serialize(copy.deepcopy(self._find(collection_name, oid)))

    def find_document(self, collection_name, filter_dict):
        docs = self.get_documents(collection_name, filter_dict, limit=1)
        return docs[0] if docs else None

    def update_document(self, collection_name, doc_id, fields):
        oid = self._oid(doc_id)
        self._check()
        doc = self._find(collection_name, oid)
        if doc is None:
            return None
        updated = {**doc, **fields, "updatedAt": self._tick()}
        self._check(updated)
        doc.update(updated)
        return serialize(copy.deepcopy(doc))

    def delete_document(self, collection_name, doc_id):
        oid = self._oid(doc_id)
        self._check()
        doc = self._find(collection_name, oid)
        if doc is None:
            return None
        self.collections[collection_name].remove(doc)
        return serialize(copy.deepcopy(doc))


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def product_data():
    return {
        "productId": 101,
        "name": "Canon EOS R6",
        "description": "Full-frame mirrorless camera body",
        "category": "Cameras",
        "price": 45.0,
    }


@pytest.fixture
def booking_data():
    return {
        "bookingId": "BK-1001",
        "customer": {"name": "Dana Lee", "phone": "+1 555 0100", "email": "dana@example.com"},
        "product": {"id": "101", "name": "Canon EOS R6"},
        "date": "2024-06-01",
        "totalAmount": 135.0,
    }
