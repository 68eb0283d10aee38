"""Shared fixtures for tracker tests."""

import asyncio
from typing import Dict, List, Union

import pytest

from src.config import Settings
from src.db.snapshot import InMemoryBackend
from src.db.store import ProductStore
from src.ingest.base import ExtractionError, ProductSnapshot

PRODUCT_URL = "https://www.amazon.in/dp/B0TEST1234"

PRODUCT_PAGE = """
<html>
<head>
  <title>Test Wireless Earbuds : Amazon.in: Electronics</title>
  <meta name="title" content="Test Wireless Earbuds : Amazon.in: Electronics">
</head>
<body>
  <span id="productTitle">
      Test Wireless Earbuds
  </span>
  <div id="corePrice_feature_div">
    <span class="a-price priceToPay">
      <span class="a-offscreen">&#8377;1,299.00</span>
      <span class="a-price-whole">1,299<span class="a-price-decimal">.</span></span>
    </span>
    <span class="a-price a-text-price">
      <span class="a-offscreen">&#8377;2,499.00</span>
    </span>
  </div>
  <div id="imageBlock">
    <img id="landingImage"
         src="https://m.media-amazon.com/images/I/earbuds._SX300_.jpg"
         data-old-hires="https://m.media-amazon.com/images/I/earbuds._SL1500_.jpg">
  </div>
</body>
</html>
"""


class FakeExtractor:
    """Extractor returning scripted results per URL, recording every call."""

    def __init__(self, results: Dict[str, List[Union[ProductSnapshot, Exception]]] = None):
        self.results = {url: list(items) for url, items in (results or {}).items()}
        self.calls: List[str] = []
        self.closed = False

    def queue(self, url: str, *items: Union[ProductSnapshot, Exception]):
        self.results.setdefault(url, []).extend(items)

    async def extract(self, url: str) -> ProductSnapshot:
        self.calls.append(url)
        # Yield so concurrent triggers interleave like a real fetch
        await asyncio.sleep(0)
        items = self.results.get(url)
        if not items:
            raise ExtractionError("No scripted result", url=url)
        item = items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self):
        self.closed = True


class FailingBackend(InMemoryBackend):
    """Backend whose writes always fail."""

    def save(self, data):
        raise OSError("disk full")


def snapshot(price: int, original: int = 1000, title: str = "Test Product") -> ProductSnapshot:
    return ProductSnapshot(
        title=title,
        current_price=price,
        original_price=original,
        image_url="https://m.media-amazon.com/images/I/test.jpg",
    )


@pytest.fixture
def settings():
    return Settings(
        storage_backend="memory",
        scheduler_enabled=False,
        request_delay_seconds=0,
        json_logs=False,
    )


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    return ProductStore(backend)


@pytest.fixture
def product_page():
    return PRODUCT_PAGE


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


def make_product(store: ProductStore, url: str = PRODUCT_URL, price: int = 700, original: int = 1000, **kwargs):
    return store.create_product(
        url=url,
        title=kwargs.pop("title", "Test Product"),
        current_price=price,
        original_price=original,
        image_url="https://m.media-amazon.com/images/I/test.jpg",
        **kwargs,
    )
