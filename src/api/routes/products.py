"""Product management routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator

from src.api.deps import get_context, get_extractor, get_store
from src.context import AppContext
from src.db.models import PricePoint, Product, utcnow
from src.db.store import ProductNotFoundError, ProductStore, StoreValidationError
from src.ingest.base import ExtractionError
from src.ingest.extractor import ProductExtractor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


class ProductCreate(BaseModel):
    url: str = Field(..., min_length=1)
    notify_on_drop: bool = True
    drop_percentage: Optional[int] = Field(default=None, ge=0, le=100)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v


class MessageResponse(BaseModel):
    message: str


@router.get("", response_model=List[Product])
async def list_products(store: ProductStore = Depends(get_store)):
    """List all products."""
    return store.get_all_products()


@router.post("", response_model=Product, status_code=201)
async def create_product(
    product_data: ProductCreate,
    context: AppContext = Depends(get_context),
    extractor: ProductExtractor = Depends(get_extractor),
):
    """
    Start tracking a listing.

    The listing is fetched synchronously; the product is only created when
    the title and current price can be extracted.
    """
    store = context.store
    if store.get_product_by_url(product_data.url):
        raise HTTPException(status_code=409, detail="This product is already being tracked")

    try:
        scraped = await extractor.extract(product_data.url)
    except ExtractionError as e:
        logger.warning(f"Could not add product {product_data.url}: {e}")
        raise HTTPException(
            status_code=400,
            detail=f"Failed to extract product information from the provided URL: {e}",
        )

    drop_percentage = product_data.drop_percentage
    if drop_percentage is None:
        drop_percentage = context.settings.default_drop_percentage

    # Another request may have added the URL while this one was fetching
    if store.get_product_by_url(product_data.url):
        raise HTTPException(status_code=409, detail="This product is already being tracked")

    try:
        product = store.create_product(
            url=product_data.url,
            title=scraped.title,
            current_price=scraped.current_price,
            original_price=max(scraped.original_price, scraped.current_price),
            image_url=scraped.image_url,
            notify_on_drop=product_data.notify_on_drop,
            drop_percentage=drop_percentage,
            price_history=[PricePoint(date=utcnow(), price=scraped.current_price)],
        )
    except StoreValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Tracking product {product.id}: '{product.title[:60]}'")
    return product


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: int, store: ProductStore = Depends(get_store)):
    """Get a product by ID."""
    try:
        return store.get_product(product_id)
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(product_id: int, store: ProductStore = Depends(get_store)):
    """Stop tracking a product. Its notifications are kept."""
    try:
        store.delete_product(product_id)
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")

    return MessageResponse(message="Product removed successfully")


@router.get("/{product_id}/history", response_model=List[PricePoint])
async def get_price_history(product_id: int, store: ProductStore = Depends(get_store)):
    """Get price history for a product, newest first."""
    try:
        return store.get_product(product_id).price_history
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
