"""Listing URL to ProductSnapshot extraction."""

import logging
from typing import Optional, Sequence
from urllib.parse import urlparse

import httpx
from selectolax.parser import HTMLParser

from src.config import Settings
from src.ingest.base import ExtractionError, ProductSnapshot
from src.ingest.header_builder import HeaderBuilder
from src.ingest.http_client import (
    BlockedError,
    PermanentURLError,
    RedirectResolutionError,
    TransientFetchError,
    fetch_page,
    resolve_redirect,
)
from src.ingest.retailers import amazon
from src.ingest.strategies import first_match, parse_price

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_IMAGE = "https://placehold.co/400x300?text=No+Image+Available"


def host_matches(url: str, domains: Sequence[str]) -> bool:
    """
    Check whether the URL's host is one of ``domains`` or a subdomain of one.

    Args:
        url: URL to check
        domains: Bare domains such as "amazon.in"

    Returns:
        True if the host matches
    """
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in (d.lower() for d in domains))


def parse_product_page(
    html: str,
    placeholder_image_url: str = DEFAULT_PLACEHOLDER_IMAGE,
) -> ProductSnapshot:
    """
    Parse a listing page into a ProductSnapshot.

    Only title and current price are mandatory. A missing original price
    falls back to the current price and a missing image to the placeholder.

    Args:
        html: Page HTML
        placeholder_image_url: Image URL used when no image is found

    Returns:
        ProductSnapshot

    Raises:
        ExtractionError: If the title or current price cannot be extracted
    """
    parser = HTMLParser(html)

    title = first_match(parser, amazon.TITLE_STRATEGIES)
    if not title:
        raise ExtractionError("Could not extract product title")

    current_price = parse_price(first_match(parser, amazon.PRICE_STRATEGIES))
    if current_price is None:
        raise ExtractionError("Could not extract current price")

    original_price = parse_price(first_match(parser, amazon.ORIGINAL_PRICE_STRATEGIES))
    if original_price is None:
        original_price = current_price

    image_url = first_match(parser, amazon.IMAGE_STRATEGIES) or placeholder_image_url

    return ProductSnapshot(
        title=title,
        current_price=current_price,
        original_price=original_price,
        image_url=image_url,
    )


class ProductExtractor:
    """
    Resolves, validates, fetches and parses marketplace listing URLs.

    Stateless apart from the pooled HTTP client: the result depends only on
    the URL and the fetched page.
    """

    def __init__(
        self,
        marketplace_domains: Sequence[str] = ("amazon.in",),
        short_link_domains: Sequence[str] = ("amzn.in",),
        placeholder_image_url: str = DEFAULT_PLACEHOLDER_IMAGE,
        timeout: float = 30.0,
        header_builder: Optional[HeaderBuilder] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.marketplace_domains = list(marketplace_domains)
        self.short_link_domains = list(short_link_domains)
        self.placeholder_image_url = placeholder_image_url
        self.timeout = timeout
        self.header_builder = header_builder or HeaderBuilder()
        self._http_client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProductExtractor":
        """Build an extractor from application settings."""
        return cls(
            marketplace_domains=settings.marketplace_domains,
            short_link_domains=settings.short_link_domains,
            placeholder_image_url=settings.placeholder_image_url,
            timeout=settings.http_timeout_seconds,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def close(self):
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def is_short_link(self, url: str) -> bool:
        return host_matches(url, self.short_link_domains)

    def is_marketplace_url(self, url: str) -> bool:
        return host_matches(url, self.marketplace_domains)

    async def normalize_url(self, url: str) -> str:
        """
        Resolve short links to their marketplace URL.

        Raises:
            ExtractionError: If a short link has no redirect target
        """
        if not self.is_short_link(url):
            return url

        client = await self._get_client()
        try:
            return await resolve_redirect(
                client, url, headers=self.header_builder.build_headers(url)
            )
        except RedirectResolutionError as e:
            raise ExtractionError(str(e), url=url) from e

    async def extract(self, url: str) -> ProductSnapshot:
        """
        Extract a ProductSnapshot from a listing URL.

        Args:
            url: Marketplace listing URL or short link

        Returns:
            ProductSnapshot

        Raises:
            ExtractionError: For every failure; other exceptions never escape
        """
        try:
            full_url = await self.normalize_url(url)

            if not self.is_marketplace_url(full_url):
                raise ExtractionError(
                    f"Not a supported marketplace URL: {full_url}", url=url
                )

            client = await self._get_client()
            response = await fetch_page(
                client, full_url, headers=self.header_builder.build_headers(full_url)
            )

            snapshot = parse_product_page(response.text, self.placeholder_image_url)
            logger.debug(
                f"Extracted {url}: '{snapshot.title[:50]}' "
                f"price={snapshot.current_price} original={snapshot.original_price}"
            )
            return snapshot

        except ExtractionError as e:
            if e.url is None:
                e.url = url
            logger.warning(f"Extraction failed for {url}: {e}")
            raise
        except (BlockedError, PermanentURLError, TransientFetchError) as e:
            logger.warning(f"Fetch failed for {url}: {e}")
            raise ExtractionError(str(e), url=url) from e
        except Exception as e:
            logger.error(f"Unexpected error extracting {url}: {e}", exc_info=True)
            raise ExtractionError(f"Unexpected error: {e}", url=url) from e
