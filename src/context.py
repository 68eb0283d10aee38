"""Explicit application context wiring store, extractor and tracker."""

import logging
from dataclasses import dataclass
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.config import Settings
from src.db.snapshot import SnapshotBackend, create_snapshot_backend
from src.db.store import ProductStore
from src.ingest.extractor import ProductExtractor
from src.worker.tracker import PriceTracker

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Components constructed once per process and shared by the API and scheduler."""

    settings: Settings
    store: ProductStore
    extractor: ProductExtractor
    tracker: PriceTracker
    scheduler: Optional[AsyncIOScheduler] = None


def build_context(
    settings: Settings,
    backend: Optional[SnapshotBackend] = None,
    extractor: Optional[ProductExtractor] = None,
) -> AppContext:
    """
    Construct the store (loaded from its snapshot), extractor and tracker.

    Args:
        settings: Application settings
        backend: Snapshot backend override (defaults from settings)
        extractor: Extractor override (defaults from settings)

    Returns:
        AppContext without a scheduler; the app lifespan adds one
    """
    store = ProductStore(
        backend or create_snapshot_backend(settings),
        history_limit=settings.history_limit,
    )
    store.load()

    extractor = extractor or ProductExtractor.from_settings(settings)
    tracker = PriceTracker(
        store,
        extractor,
        request_delay_seconds=settings.request_delay_seconds,
    )
    return AppContext(settings=settings, store=store, extractor=extractor, tracker=tracker)
