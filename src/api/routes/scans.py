"""Manual price check endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.deps import get_tracker
from src.worker.tracker import PriceTracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["scans"])


class TriggerCheckResponse(BaseModel):
    """Response model for a manual trigger."""
    started: bool
    message: str


class LastCheckResponse(BaseModel):
    """Response model for the most recent tick."""
    is_checking: bool
    run_id: Optional[str] = None
    trigger: Optional[str] = None
    total_products: int = 0
    updated: int = 0
    failed: int = 0
    notifications_created: int = 0


@router.post("/check-prices", response_model=TriggerCheckResponse, status_code=202)
async def trigger_price_check(tracker: PriceTracker = Depends(get_tracker)):
    """Start a price check of all products unless one is already running."""
    started = tracker.trigger_check_now()
    if started:
        return TriggerCheckResponse(started=True, message="Price check initiated")
    return TriggerCheckResponse(started=False, message="Price check already in progress")


@router.get("/check-prices/last", response_model=LastCheckResponse)
async def get_last_price_check(tracker: PriceTracker = Depends(get_tracker)):
    """Summary of the most recent completed price check."""
    summary = tracker.last_summary
    if summary is None:
        return LastCheckResponse(is_checking=tracker.is_checking)

    return LastCheckResponse(
        is_checking=tracker.is_checking,
        run_id=summary.run_id,
        trigger=summary.trigger,
        total_products=summary.total_products,
        updated=summary.updated,
        failed=summary.failed,
        notifications_created=summary.notifications_created,
    )
