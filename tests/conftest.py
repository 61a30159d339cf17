"""
Pytest Configuration and Shared Fixtures

Provides common pages, dates and mock API clients for all test modules.
"""

import pytest
from datetime import date
from unittest.mock import MagicMock, AsyncMock

from src.collector import (
    ApiUsage,
    KeywordVolume,
    ScrapedPage,
    SerpLookup,
    SerpResult,
    VolumeLookup,
)
from src.traffic.estimator import TrafficEstimator
from src.traffic.models import CountryShare


# ============================================================================
# Dates
# ============================================================================

@pytest.fixture
def as_of() -> date:
    """Fixed run date; the trend covers Sep 2024 - Feb 2025."""
    return date(2025, 3, 15)


# ============================================================================
# Sample Pages
# ============================================================================

def build_scenario_html(target_length: int = 30_000) -> str:
    """
    Small UK services business homepage.

    One paragraph with two business terms, 40 internal links, padded with
    empty divs. Contains no other vocabulary terms, scripts or SEO tags.
    """
    head = "<html><head></head><body><p>Our services company.</p>"
    links = "".join(f'<a href="/page-{i}">Link {i}</a>' for i in range(40))
    tail = "</body></html>"

    body = head + links
    padding = max(0, target_length - len(body) - len(tail))
    return body + "<div></div>" * (padding // 11 + 1) + tail


@pytest.fixture
def scenario_html() -> str:
    return build_scenario_html()


@pytest.fixture
def scenario_page(scenario_html) -> ScrapedPage:
    return ScrapedPage(domain="example.co.uk", html=scenario_html)


@pytest.fixture
def news_html() -> str:
    """News homepage scoring 7 on news vocabulary (10 with a news domain)."""
    return (
        "<html><head><title>News Example</title></head><body>"
        "<h1>Breaking News</h1>"
        "<p>Latest news and headlines from around the country.</p>"
        "<div>Sport, weather and more.</div>"
        "</body></html>"
    )


@pytest.fixture
def rich_html() -> str:
    """Modern, well-marked-up page that scores high on site quality."""
    return (
        "<html><head>"
        "<title>Acme Widgets</title>"
        '<meta name="description" content="Widgets made well">'
        '<meta property="og:title" content="Acme Widgets">'
        '<script type="application/ld+json">{"@context": "https://schema.org"}</script>'
        '<script src="/_next/static/chunks/main.js"></script>'
        "<script></script>"
        "<script></script>"
        "</head><body>"
        "<h1>Acme Widgets</h1>"
        "<h2>Our range</h2>"
        "<p>Widgets for every workshop.</p>"
        '<p class="lead">Made in small batches.</p>'
        '<img src="/widget.png" alt="Widget">'
        '<a href="/range">Range</a>'
        '<a href="https://elsewhere.org/">Elsewhere</a>'
        "<article>Widget of the month</article>"
        "</body></html>"
    )


# ============================================================================
# Mock API Clients
# ============================================================================

@pytest.fixture
def mock_keyword_client():
    """Keywords Everywhere client returning 1,200 monthly searches."""
    client = MagicMock()
    client.lookup_volumes = AsyncMock(return_value=VolumeLookup(
        volumes=[
            KeywordVolume(term="example", volume=1000),
            KeywordVolume(term="example website", volume=200),
        ],
        usage=ApiUsage(keyword_credits=5),
    ))
    client.close = AsyncMock()
    return client


@pytest.fixture
def mock_serp_client():
    """ValueSERP client where example.co.uk ranks #1."""
    client = MagicMock()
    client.check_ranking = AsyncMock(return_value=SerpLookup(
        results=[
            SerpResult(domain="example.co.uk", position=1, url="https://example.co.uk/"),
            SerpResult(domain="example.com", position=2, url="https://example.com/"),
        ],
        usage=ApiUsage(serp_searches=1),
    ))
    client.close = AsyncMock()
    return client


@pytest.fixture
def failed_fetcher():
    """Page fetcher whose every fetch fails."""
    fetcher = MagicMock()

    async def fetch(domain):
        return ScrapedPage(domain=domain, error="Connection refused")

    fetcher.fetch = AsyncMock(side_effect=fetch)
    return fetcher


@pytest.fixture
def bad_geography_estimator():
    """Estimator whose geography collaborator returns a split that does not sum to 100."""
    geography = MagicMock()
    geography.infer.return_value = [CountryShare("United Kingdom", 50.0)]
    return TrafficEstimator(geography=geography)


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
