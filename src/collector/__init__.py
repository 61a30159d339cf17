"""
Data Collection Package

External collaborators of the traffic estimation engine:
- Page fetcher (homepage HTML + headers)
- Keywords Everywhere (search volumes)
- ValueSERP (organic rankings)
"""

from .client import APIClientError, ApiUsage, BaseAPIClient, RetryConfig
from .fetcher import PageFetcher, ScrapedPage, MIN_HTML_LENGTH
from .keywords_everywhere import (
    KeywordsEverywhereClient,
    KeywordsEverywhereError,
    KeywordVolume,
    VolumeLookup,
)
from .valueserp import ValueSerpClient, ValueSerpError, SerpResult, SerpLookup

__all__ = [
    # Client base
    "APIClientError",
    "ApiUsage",
    "BaseAPIClient",
    "RetryConfig",

    # Fetcher
    "PageFetcher",
    "ScrapedPage",
    "MIN_HTML_LENGTH",

    # Keyword volumes
    "KeywordsEverywhereClient",
    "KeywordsEverywhereError",
    "KeywordVolume",
    "VolumeLookup",

    # SERP
    "ValueSerpClient",
    "ValueSerpError",
    "SerpResult",
    "SerpLookup",
]
