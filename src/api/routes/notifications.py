"""API endpoints for price drop notifications."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.api.deps import get_store
from src.db.models import Notification
from src.db.store import (
    NotificationNotFoundError,
    ProductNotFoundError,
    ProductStore,
    StoreValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


class NotificationCreate(BaseModel):
    """Request model for creating a notification manually."""
    product_id: int
    product_name: str = Field(..., min_length=1)
    product_url: str = Field(..., min_length=1)
    old_price: int
    new_price: int
    percentage_dropped: int
    read: bool = False


class MessageResponse(BaseModel):
    message: str


@router.get("", response_model=List[Notification])
async def list_notifications(store: ProductStore = Depends(get_store)):
    """List notifications, newest first."""
    return store.get_all_notifications()


@router.post("", response_model=Notification, status_code=201)
async def create_notification(
    notification_data: NotificationCreate,
    store: ProductStore = Depends(get_store),
):
    """Create a notification."""
    try:
        return store.create_notification(**notification_data.model_dump())
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
    except StoreValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{notification_id}/read", response_model=MessageResponse)
async def mark_notification_as_read(
    notification_id: int,
    store: ProductStore = Depends(get_store),
):
    """Mark a notification as read."""
    try:
        store.mark_notification_as_read(notification_id)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")

    return MessageResponse(message="Notification marked as read")
