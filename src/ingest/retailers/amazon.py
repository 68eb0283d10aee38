"""Amazon listing page extraction strategies."""

from src.ingest.strategies import (
    css_attr,
    document_title,
    dynamic_image,
    meta_content,
    script_pattern,
    text_strategies,
)

# Ordered by priority - most common/reliable layouts first
TITLE_SELECTORS = [
    "#productTitle",
    "#title #productTitle",
    "#ebooksProductTitle",
    "#btAsinTitle",
    "h1#title",
]

# Whole-unit price nodes come before .a-offscreen nodes, which carry subunits
PRICE_SELECTORS = [
    # Price to pay section (current layout)
    ".priceToPay span.a-price-whole",
    "#corePrice_feature_div .a-price-whole",
    "#corePriceDisplay_desktop_feature_div .a-price-whole",
    "#apex_desktop .a-price-whole",
    ".a-price-whole",

    # Buy box prices
    "#corePrice_feature_div .a-price .a-offscreen",
    "#price_inside_buybox",
    "#newBuyBoxPrice",

    # Legacy price blocks
    "#priceblock_ourprice",
    "#priceblock_dealprice",
    "#priceblock_saleprice",

    # Kindle/digital prices
    "#kindle-price",
]

# Original/strikethrough (M.R.P.) price selectors
ORIGINAL_PRICE_SELECTORS = [
    ".a-text-price span.a-offscreen",
    ".a-text-strike",
    ".basisPrice .a-offscreen",
    "#listPrice",
    "#priceblock_listprice",
]

# Price values embedded in inline twister/buy-box JSON
PRICE_SCRIPT_PATTERNS = [
    r'"priceAmount"\s*:\s*"?(\d[\d,]*(?:\.\d+)?)',
    r'"displayPrice"\s*:\s*"[^"\d]*(\d[\d,]*(?:\.\d+)?)',
]

LIST_PRICE_SCRIPT_PATTERNS = [
    r'"listPrice(?:Amount)?"\s*:\s*"?[^"\d]*(\d[\d,]*(?:\.\d+)?)',
    r'"basisPrice(?:Amount)?"\s*:\s*"?[^"\d]*(\d[\d,]*(?:\.\d+)?)',
]

# Main image nodes; "src" first, then the high-resolution attribute
IMAGE_SELECTORS = [
    "#landingImage",
    "#imgBlkFront",
    "#ebooksImgBlkFront",
    "#main-image",
]
IMAGE_ATTRIBUTES = ["src", "data-old-hires"]

# Containers carrying a data-a-dynamic-image JSON object
DYNAMIC_IMAGE_SELECTORS = [
    "#imageBlock",
    "#landingImage",
    "#imgTagWrapperId img",
    "#main-image-container img",
]


TITLE_STRATEGIES = text_strategies(TITLE_SELECTORS) + [
    meta_content('meta[name="title"]', split_title=True),
    meta_content('meta[property="og:title"]', split_title=True),
    document_title(),
]

PRICE_STRATEGIES = text_strategies(PRICE_SELECTORS) + [
    script_pattern(p) for p in PRICE_SCRIPT_PATTERNS
]

ORIGINAL_PRICE_STRATEGIES = text_strategies(ORIGINAL_PRICE_SELECTORS) + [
    script_pattern(p) for p in LIST_PRICE_SCRIPT_PATTERNS
]

IMAGE_STRATEGIES = [css_attr(s, IMAGE_ATTRIBUTES) for s in IMAGE_SELECTORS] + [
    dynamic_image(DYNAMIC_IMAGE_SELECTORS),
]
