"""HTTP helpers with status-aware error handling for listing pages."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin

import httpx

logger = logging.getLogger(__name__)

# Markers of a bot-check interstitial served with a 200 status
CAPTCHA_MARKERS = (
    "/errors/validateCaptcha",
    "Enter the characters you see below",
    "api-services-support@amazon.com",
)


class BlockedError(RuntimeError):
    """Raised when access is blocked (401, 403 or a CAPTCHA page)."""
    pass


class PermanentURLError(RuntimeError):
    """Raised when URL is permanently invalid (404)."""
    pass


class TransientFetchError(RuntimeError):
    """Raised for any other failed fetch (5xx, 429, transport errors)."""
    pass


class RedirectResolutionError(RuntimeError):
    """Raised when a short link does not redirect anywhere."""
    pass


async def resolve_redirect(
    client: httpx.AsyncClient,
    url: str,
    headers: Optional[dict[str, str]] = None,
) -> str:
    """
    Resolve a short link with a single request and redirects disabled.

    The target is read from the ``Location`` header, both on a normal
    response and on a response surfaced as an HTTP error.

    Args:
        client: httpx AsyncClient instance
        url: Short link URL
        headers: Optional request headers

    Returns:
        Absolute redirect target

    Raises:
        RedirectResolutionError: If no redirect target is present
    """
    location: Optional[str] = None
    try:
        resp = await client.get(url, headers=headers, follow_redirects=False)
        location = resp.headers.get("location")
        if not location:
            resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        location = e.response.headers.get("location")
    except httpx.HTTPError as e:
        raise RedirectResolutionError(f"Failed to resolve shortened URL {url}: {e}") from e

    if not location:
        raise RedirectResolutionError(f"Could not resolve shortened URL {url}")

    resolved = urljoin(url, location)
    logger.debug(f"Resolved {url} -> {resolved}")
    return resolved


async def fetch_page(
    client: httpx.AsyncClient,
    url: str,
    headers: Optional[dict[str, str]] = None,
) -> httpx.Response:
    """
    Fetch a listing page once, following redirects.

    Args:
        client: httpx AsyncClient instance
        url: URL to fetch
        headers: Optional request headers

    Returns:
        httpx.Response on success

    Raises:
        BlockedError: If access is blocked (401/403 or CAPTCHA page)
        PermanentURLError: If URL is permanently invalid (404)
        TransientFetchError: For any other failure
    """
    try:
        resp = await client.get(url, headers=headers, follow_redirects=True)
    except httpx.HTTPError as e:
        raise TransientFetchError(
            f"Transport error ({type(e).__name__}) for {url}: {e}"
        ) from e

    sc = resp.status_code

    if sc == 404:
        raise PermanentURLError(f"404 for {url}")

    if sc in (401, 403):
        raise BlockedError(f"{sc} for {url}")

    if not 200 <= sc < 300:
        raise TransientFetchError(f"status {sc} for {url}")

    text = resp.text
    if any(marker in text for marker in CAPTCHA_MARKERS):
        raise BlockedError(f"Bot challenge page served for {url}")

    return resp
