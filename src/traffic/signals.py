"""
Signal Extractor

Pulls raw, countable features out of a page's HTML and response headers.
Pure and total: malformed HTML never raises and empty HTML yields an all-zero
record.
"""

import logging
import re
from typing import Dict, FrozenSet, Optional

from .models import SiteQuality, SiteSignals

logger = logging.getLogger(__name__)


# =============================================================================
# PATTERNS
# =============================================================================

PARAGRAPH_RE = re.compile(r"<p[\s>]", re.IGNORECASE)
HEADING_RE = re.compile(r"<h[1-6][^>]*>", re.IGNORECASE)
IMAGE_RE = re.compile(r"<img[^>]*>", re.IGNORECASE)
LINK_RE = re.compile(r"<a\s[^>]*>|<a>", re.IGNORECASE)
INTERNAL_LINK_RE = re.compile(r"""<a\s[^>]*href=["']/(?!/)[^"']*["']""", re.IGNORECASE)
ARTICLE_RE = re.compile(r"<article[\s>]", re.IGNORECASE)
SCRIPT_CLOSE_RE = re.compile(r"</script>", re.IGNORECASE)
TITLE_RE = re.compile(r"<title[\s>]", re.IGNORECASE)
OPEN_GRAPH_RE = re.compile(r"""(?:property|name)=["'](?:og|twitter):""", re.IGNORECASE)
META_DESCRIPTION_RE = re.compile(r"""name=["']description["']""", re.IGNORECASE)

MAX_INTERNAL_LINKS = 100

# Technology fingerprints: tag -> substrings (lowercase) found in HTML
TECH_FINGERPRINTS = {
    "wordpress": ["wp-content", "wp-includes", "wordpress"],
    "woocommerce": ["woocommerce"],
    "shopify": ["cdn.shopify.com", "shopify.theme", "myshopify.com"],
    "wix": ["wix.com", "wixstatic.com", "_wixcss"],
    "squarespace": ["squarespace.com", "static1.squarespace"],
    "drupal": ["drupal-settings-json", "/sites/default/files", "drupal.js"],
    "joomla": ["/media/jui/", "joomla"],
    "react": ["data-reactroot", "react-dom", "__react"],
    "vue": ["data-v-", "vue.js", "vue.min.js", "__vue__"],
    "angular": ["ng-version", "ng-app", "angular.js", "angular.min.js"],
    "nextjs": ["__next_data__", "/_next/static"],
    "google-analytics": ["google-analytics.com", "gtag(", "googletagmanager.com/gtag"],
    "google-tag-manager": ["googletagmanager.com/gtm", "gtm.js"],
    "cloudflare": ["cdnjs.cloudflare.com", "cf-ray", "/cdn-cgi/"],
}

MODERN_FRAMEWORKS = {"react", "vue", "angular", "nextjs"}

# Site quality scoring
QUALITY_FRAMEWORK = 20
QUALITY_SCRIPTS = 15
QUALITY_GZIP = 10
QUALITY_LARGE_HTML = 15
QUALITY_STRUCTURED_DATA = 20
QUALITY_OPEN_GRAPH = 10
QUALITY_SERVER_HEADER = 10

QUALITY_HIGH_THRESHOLD = 60
QUALITY_MEDIUM_THRESHOLD = 30
LARGE_HTML_LENGTH = 50_000


# =============================================================================
# EXTRACTION
# =============================================================================


def count_internal_links(html: str) -> int:
    """Uncapped count of root-relative links."""
    return len(INTERNAL_LINK_RE.findall(html or ""))


def detect_tech_stack(html: str, headers: Dict[str, str]) -> FrozenSet[str]:
    """Match known fingerprints in HTML plus server/x-powered-by header values."""
    lower_html = html.lower()
    tags = {
        tag
        for tag, needles in TECH_FINGERPRINTS.items()
        if any(needle in lower_html for needle in needles)
    }

    if "cf-ray" in headers or headers.get("server", "").lower() == "cloudflare":
        tags.add("cloudflare")

    for header in ("server", "x-powered-by"):
        value = headers.get(header, "").strip().lower()
        if value:
            tags.add(value)

    return frozenset(tags)


def score_site_quality(
    html_length: int,
    script_count: int,
    headers: Dict[str, str],
    tech_stack: FrozenSet[str],
    has_structured_data: bool,
    has_open_graph: bool,
) -> SiteQuality:
    score = 0

    if tech_stack & MODERN_FRAMEWORKS:
        score += QUALITY_FRAMEWORK
    if script_count > 3:
        score += QUALITY_SCRIPTS
    if "gzip" in headers.get("content-encoding", "").lower():
        score += QUALITY_GZIP
    if html_length > LARGE_HTML_LENGTH:
        score += QUALITY_LARGE_HTML
    if has_structured_data:
        score += QUALITY_STRUCTURED_DATA
    if has_open_graph:
        score += QUALITY_OPEN_GRAPH
    if headers.get("server"):
        score += QUALITY_SERVER_HEADER

    if score >= QUALITY_HIGH_THRESHOLD:
        return SiteQuality.HIGH
    if score >= QUALITY_MEDIUM_THRESHOLD:
        return SiteQuality.MEDIUM
    return SiteQuality.LOW


def extract_signals(html: Optional[str], headers: Optional[Dict[str, str]] = None) -> SiteSignals:
    """
    Extract countable features from a page.

    Args:
        html: Raw page HTML (may be empty)
        headers: Response headers (any case)

    Returns:
        Frozen SiteSignals record
    """
    html = html or ""
    headers = {k.lower(): str(v) for k, v in (headers or {}).items()}

    if not html:
        return SiteSignals(headers=tuple(sorted(headers.items())))

    lower_html = html.lower()
    script_count = len(SCRIPT_CLOSE_RE.findall(html))
    has_structured_data = "schema.org" in lower_html or "application/ld+json" in lower_html
    has_open_graph = bool(OPEN_GRAPH_RE.search(html))
    tech_stack = detect_tech_stack(html, headers)

    signals = SiteSignals(
        html_length=len(html),
        headers=tuple(sorted(headers.items())),
        paragraph_count=len(PARAGRAPH_RE.findall(html)),
        heading_count=len(HEADING_RE.findall(html)),
        image_count=len(IMAGE_RE.findall(html)),
        link_count=len(LINK_RE.findall(html)),
        internal_link_count=min(count_internal_links(html), MAX_INTERNAL_LINKS),
        article_count=len(ARTICLE_RE.findall(html)),
        script_count=script_count,
        has_title=bool(TITLE_RE.search(html)),
        has_structured_data=has_structured_data,
        has_open_graph=has_open_graph,
        has_meta_description=bool(META_DESCRIPTION_RE.search(html)),
        tech_stack_tags=tech_stack,
        site_quality=score_site_quality(
            len(html), script_count, headers, tech_stack, has_structured_data, has_open_graph
        ),
    )

    logger.debug(
        f"Signals: {signals.html_length} chars, {signals.paragraph_count} p, "
        f"{signals.internal_link_count} internal links, quality={signals.site_quality.value}"
    )
    return signals
