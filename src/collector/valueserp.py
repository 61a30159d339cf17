"""
ValueSERP API Client

Live Google organic results for a single query.

API: https://api.valueserp.com/search
Docs: https://www.valueserp.com/docs
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from src.utils.domains import normalize_domain

from .client import APIClientError, ApiUsage, BaseAPIClient, RetryConfig

logger = logging.getLogger(__name__)


# ISO country code -> (ValueSERP location, google_domain, gl)
LOCATIONS = {
    "gb": ("United Kingdom", "google.co.uk", "uk"),
    "uk": ("United Kingdom", "google.co.uk", "uk"),
    "us": ("United States", "google.com", "us"),
    "ca": ("Canada", "google.ca", "ca"),
    "au": ("Australia", "google.com.au", "au"),
    "ie": ("Ireland", "google.ie", "ie"),
    "nz": ("New Zealand", "google.co.nz", "nz"),
    "de": ("Germany", "google.de", "de"),
    "fr": ("France", "google.fr", "fr"),
    "es": ("Spain", "google.es", "es"),
    "it": ("Italy", "google.it", "it"),
    "nl": ("Netherlands", "google.nl", "nl"),
}

DEFAULT_LOCATION = LOCATIONS["gb"]


class ValueSerpError(APIClientError):
    """ValueSERP API error."""


@dataclass
class SerpResult:
    """One organic result."""
    domain: str
    position: int
    url: str = ""
    title: str = ""


@dataclass
class SerpLookup:
    """Organic results for one query plus usage."""
    results: List[SerpResult] = field(default_factory=list)
    usage: ApiUsage = field(default_factory=ApiUsage)


def extract_domain(url: str) -> str:
    """Host of a result URL without www."""
    return normalize_domain(url)


class ValueSerpClient(BaseAPIClient):
    """
    Async client for ValueSERP.

    Usage:
        async with ValueSerpClient(api_key="...") as client:
            lookup = await client.check_ranking("pmw", "gb", top_n=10)
    """

    BASE_URL = "https://api.valueserp.com"
    ERROR_CLASS = ValueSerpError
    SERVICE_NAME = "ValueSERP"

    def __init__(
        self,
        api_key: str,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueSerpError("ValueSERP API key not configured")

        self.api_key = api_key
        super().__init__(
            headers={"Accept": "application/json"},
            retry_config=retry_config,
            timeout=timeout,
            transport=transport,
        )

    async def check_ranking(self, term: str, country: str = "gb", top_n: int = 10) -> SerpLookup:
        """
        Get the top organic results for a query.

        Args:
            term: Search query
            country: ISO country code
            top_n: Number of results to request

        Returns:
            SerpLookup with results ordered by position

        Raises:
            ValueSerpError: On any API failure
        """
        location, google_domain, gl = LOCATIONS.get(country.lower(), DEFAULT_LOCATION)

        data = await self.request(
            "GET",
            "/search",
            params={
                "api_key": self.api_key,
                "q": term,
                "location": location,
                "google_domain": google_domain,
                "gl": gl,
                "hl": "en",
                "device": "desktop",
                "num": str(top_n),
            },
        )

        request_info = data.get("request_info") or {}
        if not request_info.get("success"):
            raise ValueSerpError(
                f"ValueSERP request failed for '{term}': {request_info.get('message', 'unknown error')}",
                response=data,
            )

        try:
            results = self._parse_results(data.get("organic_results") or [])[:top_n]
            searches = int(request_info.get("credits_used") or 1)
        except (TypeError, ValueError, AttributeError) as e:
            raise ValueSerpError(
                f"ValueSERP returned malformed results for '{term}': {e}", response=data
            ) from e

        logger.info(f"ValueSERP: {len(results)} organic results for '{term}' ({location})")
        return SerpLookup(results=results, usage=ApiUsage(serp_searches=searches))

    @staticmethod
    def _parse_results(items: List[Dict[str, Any]]) -> List[SerpResult]:
        results = []
        for index, item in enumerate(items):
            link = item.get("link") or ""
            domain = normalize_domain(item.get("domain") or "") or extract_domain(link)
            results.append(
                SerpResult(
                    domain=domain,
                    position=int(item.get("position") or index + 1),
                    url=link,
                    title=item.get("title") or "",
                )
            )
        return sorted(results, key=lambda r: r.position)
