"""Realistic browser-like HTTP header generation."""

import logging
import random
from typing import Dict, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# User agents for rotation
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
]


class HeaderBuilder:
    """
    Builds browser-like request headers.

    A consistent header set (user agent, accept headers, fetch metadata)
    makes it less likely that a marketplace serves a bot-check page
    instead of the listing.
    """

    def __init__(self, user_agents: Optional[list[str]] = None):
        self.user_agents = user_agents or USER_AGENTS
        self.accept_language = "en-IN,en-US;q=0.9,en;q=0.8"

    def build_headers(self, url: str = "", referer: Optional[str] = None) -> Dict[str, str]:
        """
        Build headers for a page request.

        Args:
            url: Target URL
            referer: Referer URL (omitted if None)

        Returns:
            Dict of HTTP headers
        """
        user_agent = random.choice(self.user_agents)

        headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": self.accept_language,
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
            "Cache-Control": "max-age=0",
        }

        # Firefox does not send client hints
        if "Chrome/" in user_agent:
            headers.update({
                "Sec-Fetch-Dest": "document",
                "Sec-Fetch-Mode": "navigate",
                "Sec-Fetch-Site": self._get_sec_fetch_site(url, referer),
                "Sec-Fetch-User": "?1",
            })

        if referer:
            headers["Referer"] = referer

        return headers

    def _get_sec_fetch_site(self, url: str, referer: Optional[str] = None) -> str:
        """Get Sec-Fetch-Site header value."""
        if not referer:
            return "none"

        if urlparse(url).netloc == urlparse(referer).netloc:
            return "same-origin"
        return "cross-site"
