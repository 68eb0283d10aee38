"""FastAPI dependencies."""

from fastapi import Request

from src.context import AppContext
from src.db.store import ProductStore
from src.ingest.extractor import ProductExtractor
from src.worker.tracker import PriceTracker


def get_context(request: Request) -> AppContext:
    """Application context attached to the app at startup."""
    return request.app.state.context


def get_store(request: Request) -> ProductStore:
    """Dependency for the product store."""
    return get_context(request).store


def get_extractor(request: Request) -> ProductExtractor:
    """Dependency for the listing extractor."""
    return get_context(request).extractor


def get_tracker(request: Request) -> PriceTracker:
    """Dependency for the price tracker."""
    return get_context(request).tracker
