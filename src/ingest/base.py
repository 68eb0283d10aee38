"""Extraction result and failure types."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ProductSnapshot:
    """Structured data parsed from one listing page fetch."""

    title: str
    current_price: int
    original_price: int
    image_url: str


class ExtractionError(Exception):
    """
    Raised when a listing cannot be turned into a ProductSnapshot.

    Covers unresolvable short links, non-marketplace URLs, fetch failures
    and pages missing a title or current price.
    """

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url
