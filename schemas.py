"""
Database Schemas for the Rental Booking Backend

Each Pydantic model corresponds to a MongoDB collection using the lowercase of
its class name for the collection name.

Fields are snake_case in Python and camelCase in stored documents and JSON
bodies (productId, totalAmount, ...). The *Update models are allow-lists: a
patch key that is not declared on them is dropped, so identity and audit
fields (_id, __v, createdAt, updatedAt) can never be overwritten.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self, **kwargs) -> dict:
        return self.model_dump(by_alias=True, **kwargs)


# -----------------------------
# Core Entities
# -----------------------------

class Product(Document):
    product_id: Optional[int] = Field(None, ge=1, le=2 ** 63 - 1, description="Human-friendly numeric product code")
    name: str = Field(..., min_length=1, description="Product name")
    description: str = Field(..., min_length=1, description="Description")
    category: str = Field(..., min_length=1, description="Category name")
    price: float = Field(0, ge=0, description="Rental price in default currency")
    images: List[str] = Field(default_factory=list, description="Image URLs or inline base64 data URIs")
    is_available: bool = Field(True, description="Whether the item can be booked")


class Customer(Document):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)


class BookedProduct(Document):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1, description="Referenced product id (native or numeric)")
    name: str = Field(..., min_length=1, description="Snapshot of product name")


class Booking(Document):
    booking_id: str = Field(..., min_length=1, description="Caller-supplied booking reference")
    customer: Customer
    product: BookedProduct
    date: str = Field(..., min_length=1, description="Booking date, ISO format")
    total_amount: float = Field(..., ge=0, description="Amount charged for the booking")
    status: Literal["pending", "confirmed", "completed", "cancelled"] = "pending"
    notes: Optional[str] = None


class Activity(Document):
    action: str = Field(..., min_length=1, description="What happened")
    user: str = Field(..., min_length=1, description="Who did it")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class User(Document):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, description="bcrypt hash, never the plain password")
    role: str = Field("user", description="Role: user or admin")


# -----------------------------
# Allow-listed patches
# -----------------------------

class ProductUpdate(Document):
    product_id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    images: Optional[List[str]] = None
    is_available: Optional[bool] = None


class BookingUpdate(Document):
    booking_id: Optional[str] = None
    customer: Optional[Customer] = None
    product: Optional[BookedProduct] = None
    date: Optional[str] = None
    total_amount: Optional[float] = None
    status: Optional[str] = None
    notes: Optional[str] = None
