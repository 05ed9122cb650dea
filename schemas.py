"""
Database Schemas

MongoDB collection schemas as Pydantic models.
Each Pydantic model represents a collection in your database.
Model name lowercased is the collection name.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    # pymongo hands datetimes back as naive UTC; store them that way too
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class User(BaseModel):
    username: str = Field(..., description="Unique login name")
    password: str = Field(..., description="BCrypt hashed password")


class Product(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = Field(None, description="Image URL")
    description: Optional[str] = None


class Order(BaseModel):
    username: Optional[str] = None
    items: List[Dict[str, Any]] = Field(default_factory=list, description="Snapshot of product fields plus quantity")
    total: Optional[float] = None
    status: str = "Pending"
    paymentMethod: str = "Transfer Bank"
    createdAt: datetime = Field(default_factory=utcnow)

    normalize_created_at = field_validator("createdAt")(to_naive_utc)


# Request bodies

class Credentials(BaseModel):
    username: str
    password: str


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = None
    description: Optional[str] = None


class OrderUpdate(BaseModel):
    username: Optional[str] = None
    items: Optional[List[Dict[str, Any]]] = None
    total: Optional[float] = None
    status: Optional[str] = None
    paymentMethod: Optional[str] = None
    createdAt: Optional[datetime] = None

    normalize_created_at = field_validator("createdAt")(to_naive_utc)
