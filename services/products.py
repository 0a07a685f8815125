"""
Product service

Products are addressed either by their MongoDB ObjectId or by the numeric
`productId` shown to staff. `resolve_product_ref` decides which of the two a
raw identifier is before any lookup happens.
"""

import logging
from typing import Any, Dict, List, NamedTuple, Union

from database import DocumentStore
from errors import InvalidIdError, NotFoundError, ValidationError, store_faults
from schemas import Product, ProductUpdate

logger = logging.getLogger(__name__)

COLLECTION = "product"
REQUIRED_FIELDS = ("name", "description", "category")

# BSON stores integers in at most 8 bytes
BSON_INT_MIN = -(2 ** 63)
BSON_INT_MAX = 2 ** 63 - 1


class ProductRef(NamedTuple):
    native: bool
    value: Union[str, int]


def resolve_product_ref(store: DocumentStore, raw_id: Any) -> ProductRef:
    """Classify an identifier as a native id first, then as a numeric productId."""
    raw = str(raw_id).strip()
    if store.is_valid_id(raw):
        return ProductRef(native=True, value=raw)
    try:
        value = int(raw)
    except ValueError:
        raise InvalidIdError(f"Invalid product ID format: {raw_id}")
    if not BSON_INT_MIN <= value <= BSON_INT_MAX:
        raise InvalidIdError(f"Invalid product ID format: {raw_id}")
    return ProductRef(native=False, value=value)


def _load(store: DocumentStore, raw_id: Any, context: str) -> dict:
    ref = resolve_product_ref(store, raw_id)
    with store_faults(context):
        if ref.native:
            product = store.get_document(COLLECTION, ref.value)
        else:
            product = store.find_document(COLLECTION, {"productId": ref.value})
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_product(store: DocumentStore, data: Dict[str, Any]) -> dict:
    missing = [f for f in REQUIRED_FIELDS if not str(data.get(f) or "").strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    with store_faults("Error creating product"):
        product = Product.model_validate(data)
        saved = store.create_document(COLLECTION, product.to_document())
    logger.info("Product created: %s", saved["name"])
    return saved


def get_all_products(store: DocumentStore) -> List[dict]:
    with store_faults("Error fetching products"):
        return store.get_documents(COLLECTION, sort=[("createdAt", -1)])


def get_product_by_id(store: DocumentStore, product_id: Any) -> dict:
    return _load(store, product_id, "Error fetching product")


def update_product(store: DocumentStore, product_id: Any, patch: Dict[str, Any]) -> dict:
    product = _load(store, product_id, "Error updating product")

    with store_faults("Error updating product"):
        changes = ProductUpdate.model_validate(patch).to_document(exclude_unset=True)
        merged = Product.model_validate({**product, **changes})
        updated = store.update_document(COLLECTION, product["_id"], merged.to_document())
    if updated is None:
        raise NotFoundError("Product not found")
    logger.info("Product updated: %s", product["_id"])
    return updated


def delete_product(store: DocumentStore, product_id: Any) -> dict:
    product = _load(store, product_id, "Error deleting product")

    with store_faults("Error deleting product"):
        removed = store.delete_document(COLLECTION, product["_id"])
    if removed is None:
        raise NotFoundError("Product not found")
    logger.info("Product deleted: %s", product["_id"])
    return removed
