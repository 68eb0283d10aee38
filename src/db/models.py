"""Tracked product and notification models."""

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class PricePoint(BaseModel):
    """A single observed price."""

    date: datetime = Field(default_factory=utcnow)
    price: int = Field(ge=0)


class Product(BaseModel):
    """A tracked marketplace listing."""

    id: int
    url: str
    title: str
    current_price: int = Field(ge=0)
    original_price: int = Field(ge=0)
    image_url: str
    notify_on_drop: bool = True
    drop_percentage: int = Field(default=60, ge=0, le=100)
    price_history: List[PricePoint] = Field(default_factory=list)  # Newest first
    last_checked: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)


class Notification(BaseModel):
    """A stored price drop event.

    Product fields are copied at creation time and do not follow later edits
    or deletion of the product.
    """

    id: int
    product_id: int
    product_name: str
    product_url: str
    old_price: int
    new_price: int
    percentage_dropped: int
    read: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class StoreSnapshot(BaseModel):
    """Whole-store persisted state."""

    products: List[Product] = Field(default_factory=list)
    notifications: List[Notification] = Field(default_factory=list)
    product_id_counter: int = 1  # Next id to allocate
    notification_id_counter: int = 1
