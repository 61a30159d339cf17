"""
Keywords Everywhere API Client

Google Keyword Planner search volumes for keyword lists.

API: https://api.keywordseverywhere.com/v1/get_keyword_data
Pricing: 1 credit per keyword
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .client import APIClientError, ApiUsage, BaseAPIClient, RetryConfig

logger = logging.getLogger(__name__)


# API accepts at most 100 keywords per request
MAX_KEYWORDS_PER_REQUEST = 100

# Keywords Everywhere uses "uk" where ISO uses "gb"
COUNTRY_ALIASES = {
    "gb": "uk",
}

CURRENCY_BY_COUNTRY = {
    "uk": "gbp",
    "us": "usd",
    "ca": "cad",
    "au": "aud",
    "nz": "nzd",
    "ie": "eur",
    "de": "eur",
    "fr": "eur",
    "es": "eur",
    "it": "eur",
    "nl": "eur",
    "in": "inr",
}


class KeywordsEverywhereError(APIClientError):
    """Keywords Everywhere API error."""


@dataclass
class KeywordVolume:
    """Monthly search volume for one term."""
    term: str
    volume: int
    cpc: float = 0.0
    competition: float = 0.0


@dataclass
class VolumeLookup:
    """Result of a (possibly multi-batch) volume lookup."""
    volumes: List[KeywordVolume] = field(default_factory=list)
    usage: ApiUsage = field(default_factory=ApiUsage)

    @property
    def total_volume(self) -> int:
        return sum(v.volume for v in self.volumes)


def _chunk(items: List[str], size: int) -> List[List[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class KeywordsEverywhereClient(BaseAPIClient):
    """
    Async client for Keywords Everywhere.

    Usage:
        async with KeywordsEverywhereClient(api_key="...") as client:
            lookup = await client.lookup_volumes(["pmw", "pmw website"], "gb")
            print(lookup.total_volume, lookup.usage.keyword_credits)
    """

    BASE_URL = "https://api.keywordseverywhere.com"
    ERROR_CLASS = KeywordsEverywhereError
    SERVICE_NAME = "Keywords Everywhere"

    def __init__(
        self,
        api_key: str,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise KeywordsEverywhereError("Keywords Everywhere API key not configured")

        super().__init__(
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            retry_config=retry_config,
            timeout=timeout,
            transport=transport,
        )

    async def lookup_volumes(self, terms: List[str], country: str = "gb") -> VolumeLookup:
        """
        Get search volumes for terms.

        Args:
            terms: Keywords to look up
            country: ISO country code ("gb", "us", ...)

        Returns:
            VolumeLookup with one KeywordVolume per returned term and credits used

        Raises:
            KeywordsEverywhereError: On any API failure
        """
        api_country = COUNTRY_ALIASES.get(country.lower(), country.lower())
        currency = CURRENCY_BY_COUNTRY.get(api_country, "usd")

        result = VolumeLookup()
        if not terms:
            return result

        logger.info(
            f"Keywords Everywhere: getting volumes for {len(terms)} keywords in {api_country.upper()}"
        )

        for batch in _chunk(terms, MAX_KEYWORDS_PER_REQUEST):
            volumes, credits = await self._fetch_batch(batch, api_country, currency)
            result.volumes.extend(volumes)
            result.usage = result.usage + ApiUsage(keyword_credits=credits)

        logger.info(
            f"Keywords Everywhere: retrieved {len(result.volumes)} volumes, "
            f"used {result.usage.keyword_credits} credits"
        )
        return result

    async def _fetch_batch(self, batch: List[str], country: str, currency: str):
        data = await self.request(
            "POST",
            "/v1/get_keyword_data",
            json={
                "kw": batch,
                "country": country.upper(),
                "currency": currency.upper(),
                "dataSource": "gkp",
            },
        )

        if data.get("error"):
            raise KeywordsEverywhereError(
                f"Keywords Everywhere API error: {data['error']}", response=data
            )

        items = data.get("data")
        if not isinstance(items, list):
            raise KeywordsEverywhereError(
                "Keywords Everywhere response has no data list", response=data
            )

        try:
            volumes = [self._parse_item(item) for item in items if item]
            credits = int(data.get("credits_consumed") or len(batch))
        except (TypeError, ValueError, AttributeError) as e:
            raise KeywordsEverywhereError(
                f"Keywords Everywhere returned malformed keyword data: {e}", response=data
            ) from e

        return volumes, credits

    @staticmethod
    def _parse_item(item: Dict[str, Any]) -> KeywordVolume:
        cpc = item.get("cpc") or 0
        if isinstance(cpc, dict):
            try:
                cpc = float(cpc.get("value") or 0)
            except (TypeError, ValueError):
                cpc = 0.0

        return KeywordVolume(
            term=item.get("keyword", ""),
            volume=int(item.get("vol") or 0),
            cpc=float(cpc),
            competition=float(item.get("competition") or 0),
        )
