"""Field extraction strategies over a parsed listing page.

A strategy is a plain callable taking a selectolax ``HTMLParser`` and
returning the raw field value or ``None``. Each field is described by an
ordered list of strategies; ``first_match`` runs them in order and keeps the
first non-empty result.
"""

import json
import logging
import re
from typing import Callable, Iterable, List, Optional, Sequence

from selectolax.parser import HTMLParser

logger = logging.getLogger(__name__)

Strategy = Callable[[HTMLParser], Optional[str]]

# First number in a price string: "₹1,299.00" -> "1,299.00", "1,299." -> "1,299."
_PRICE_NUMBER = re.compile(r"\d[\d,]*(?:\.\d*)?")

TITLE_SEPARATORS = re.compile(r"[:|]")


def first_match(parser: HTMLParser, strategies: Sequence[Strategy]) -> Optional[str]:
    """
    Run strategies in order and return the first non-empty value.

    A strategy that raises is logged and treated as a miss.

    Args:
        parser: Parsed document
        strategies: Ordered strategies for one field

    Returns:
        Stripped value or None if every strategy missed
    """
    for i, strategy in enumerate(strategies):
        try:
            value = strategy(parser)
        except Exception as e:
            logger.debug(f"Strategy {i+1}/{len(strategies)} error: {e}")
            continue
        if value and value.strip():
            logger.debug(f"Strategy {i+1}/{len(strategies)} matched")
            return value.strip()
    return None


def parse_price(text: Optional[str]) -> Optional[int]:
    """
    Parse a whole-unit price from display text.

    Fractional subunits are dropped, then all non-digit characters are
    stripped: "₹1,299.00" -> 1299, "1,299." -> 1299.

    Returns:
        Integer price, or None if the text holds no number
    """
    if not text:
        return None
    match = _PRICE_NUMBER.search(text)
    if not match:
        return None
    whole = match.group(0).split(".", 1)[0]
    digits = re.sub(r"\D", "", whole)
    if not digits:
        return None
    return int(digits)


def css_text(selector: str) -> Strategy:
    """Text of the first element matching ``selector``."""

    def strategy(parser: HTMLParser) -> Optional[str]:
        node = parser.css_first(selector)
        if node is None:
            return None
        return " ".join(node.text().split())

    return strategy


def css_attr(
    selector: str,
    attributes: Iterable[str],
    skip_data_uris: bool = True,
) -> Strategy:
    """First present attribute, in order, of the first element matching ``selector``."""
    attributes = list(attributes)

    def strategy(parser: HTMLParser) -> Optional[str]:
        node = parser.css_first(selector)
        if node is None:
            return None
        for attr in attributes:
            value = node.attributes.get(attr)
            if not value:
                continue
            if skip_data_uris and value.startswith("data:"):
                continue
            return value
        return None

    return strategy


def meta_content(selector: str, split_title: bool = False) -> Strategy:
    """``content`` of a meta tag, optionally cut at the first title separator."""

    def strategy(parser: HTMLParser) -> Optional[str]:
        node = parser.css_first(selector)
        if node is None:
            return None
        content = node.attributes.get("content")
        if not content:
            return None
        return _head(content) if split_title else content

    return strategy


def document_title() -> Strategy:
    """The page ``<title>``, cut at the first title separator."""

    def strategy(parser: HTMLParser) -> Optional[str]:
        node = parser.css_first("title")
        if node is None:
            return None
        return _head(" ".join(node.text().split()))

    return strategy


def script_pattern(pattern: str) -> Strategy:
    """First capture group of ``pattern`` found in any inline ``<script>``."""
    compiled = re.compile(pattern)

    def strategy(parser: HTMLParser) -> Optional[str]:
        for node in parser.css("script"):
            content = node.text(deep=True)
            if not content:
                continue
            match = compiled.search(content)
            if match:
                return match.group(1)
        return None

    return strategy


def dynamic_image(selectors: Sequence[str], attribute: str = "data-a-dynamic-image") -> Strategy:
    """
    First image URL from a JSON ``{url: [w, h], ...}`` attribute.

    The first key of the first parseable object, across ``selectors`` in
    order, is taken as the URL.
    """
    selectors = list(selectors)

    def strategy(parser: HTMLParser) -> Optional[str]:
        for selector in selectors:
            node = parser.css_first(selector)
            if node is None:
                continue
            raw = node.attributes.get(attribute)
            if not raw:
                continue
            try:
                images = json.loads(raw)
            except ValueError:
                logger.debug(f"Unparseable {attribute} on {selector}")
                continue
            if isinstance(images, dict) and images:
                return next(iter(images))
        return None

    return strategy


def text_strategies(selectors: Iterable[str]) -> List[Strategy]:
    """One ``css_text`` strategy per selector, preserving order."""
    return [css_text(s) for s in selectors]


def _head(text: str) -> str:
    return TITLE_SEPARATORS.split(text, maxsplit=1)[0].strip()
