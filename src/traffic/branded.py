"""
Branded Traffic Reconciler

Estimates monthly visits from searches for the site's own brand:

1. Generate brand keyword variants from the domain
2. Sum their monthly search volumes (Keywords Everywhere)
3. Check whether the domain ranks top 10 for its main brand (ValueSERP)
4. Apply a CTR multiplier: 35% when ranking, 5% otherwise

Also owns the consistency rule that branded traffic can never exceed organic.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from src.collector.client import APIClientError, ApiUsage
from src.collector.keywords_everywhere import KeywordsEverywhereClient
from src.collector.valueserp import ValueSerpClient
from src.utils.domains import domain_label, domain_matches, normalize_domain, registrable_domain

from .exceptions import BrandedTrafficConfigError, BrandedTrafficError

logger = logging.getLogger(__name__)


RANKING_CTR = 0.35
NOT_RANKING_CTR = 0.05
RANKING_TOP_N = 10

# Branded traffic above organic is replaced with this share of organic
BRANDED_CAP_RATIO = 0.80

MIN_KEYWORD_LENGTH = 3

BRAND_SUFFIX_RE = re.compile(r"(ltd|limited|inc|corp|company|group|solutions|services)$", re.IGNORECASE)


@dataclass
class BrandedEstimate:
    """Branded traffic for one domain plus how it was derived."""
    traffic: int
    search_volume: int
    ranking_position: Optional[int]
    ctr: float
    terms: List[str] = field(default_factory=list)
    usage: ApiUsage = field(default_factory=ApiUsage)

    @property
    def is_ranking(self) -> bool:
        return self.ranking_position is not None


def extract_main_brand(domain: str) -> str:
    """
    Brand name from a domain label.

    "acme-services.co.uk" -> "acme", "pmwcom.co.uk" -> "pmwcom"
    """
    label = domain_label(domain)
    brand = BRAND_SUFFIX_RE.sub("", label)
    brand = re.sub(r"[-_]+", " ", brand).strip()
    return brand or label.replace("-", " ").replace("_", " ").strip()


def generate_brand_keywords(domain: str) -> List[str]:
    """Brand search variants, longer than two characters, de-duplicated in order."""
    brand = extract_main_brand(domain)
    label = domain_label(domain)

    candidates = [
        brand,
        label,
        f"{brand} website",
        f"{brand} official",
        f"{brand} company",
        registrable_domain(domain),
        f"www.{label}",
    ]

    keywords: List[str] = []
    for candidate in candidates:
        candidate = candidate.strip().lower()
        if len(candidate) >= MIN_KEYWORD_LENGTH and candidate not in keywords:
            keywords.append(candidate)
    return keywords


def cap_branded(branded: int, organic: int) -> int:
    """Branded traffic is a subset of organic; cap it when it is not."""
    if branded > organic:
        capped = int(round(organic * BRANDED_CAP_RATIO))
        logger.warning(
            f"Branded traffic {branded} exceeds organic {organic}; capping to {capped}"
        )
        return capped
    return max(branded, 0)


class BrandedTrafficReconciler:
    """
    Combine keyword volumes with a brand SERP check.

    Usage:
        async with KeywordsEverywhereClient(key) as ke, ValueSerpClient(key) as vs:
            reconciler = BrandedTrafficReconciler(ke, vs)
            estimate = await reconciler.estimate_branded("pmwcom.co.uk", "gb")
    """

    def __init__(
        self,
        keyword_client: Optional[KeywordsEverywhereClient] = None,
        serp_client: Optional[ValueSerpClient] = None,
        timeout: float = 45.0,
    ):
        self.keyword_client = keyword_client
        self.serp_client = serp_client
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return self.keyword_client is not None and self.serp_client is not None

    async def estimate_branded(self, domain: str, country: str = "gb") -> BrandedEstimate:
        """
        Estimate monthly branded traffic.

        Args:
            domain: Site domain
            country: ISO country code for volumes and SERP location

        Returns:
            BrandedEstimate

        Raises:
            BrandedTrafficConfigError: A client is missing
            BrandedTrafficError: A lookup failed or timed out
        """
        if not self.configured:
            raise BrandedTrafficConfigError(
                "Branded traffic needs both Keywords Everywhere and ValueSERP clients"
            )

        domain = normalize_domain(domain)
        terms = generate_brand_keywords(domain)
        main_brand = extract_main_brand(domain)
        logger.info(f"Estimating branded traffic for {domain} ({country}): {len(terms)} terms")

        tasks = [
            asyncio.ensure_future(self.keyword_client.lookup_volumes(terms, country)),
            asyncio.ensure_future(
                self.serp_client.check_ranking(main_brand, country, top_n=RANKING_TOP_N)
            ),
        ]
        try:
            volumes, serp = await asyncio.wait_for(asyncio.gather(*tasks), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Branded lookup for {domain} timed out after {self.timeout}s")
            raise BrandedTrafficError(f"Branded lookup timed out after {self.timeout}s") from e
        except APIClientError as e:
            logger.error(f"Branded lookup for {domain} failed: {e}")
            raise BrandedTrafficError(f"Branded lookup failed: {e}") from e
        finally:
            # A failed lookup must not leave its sibling spending credits
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        target = registrable_domain(domain)
        position = next(
            (r.position for r in serp.results[:RANKING_TOP_N] if domain_matches(r.domain, target)),
            None,
        )

        ctr = RANKING_CTR if position is not None else NOT_RANKING_CTR
        search_volume = volumes.total_volume
        traffic = int(round(search_volume * ctr))

        logger.info(
            f"Branded traffic for {domain}: {search_volume} searches x {ctr:.0%} "
            f"({'ranking #' + str(position) if position else 'not ranking'}) = {traffic}"
        )

        return BrandedEstimate(
            traffic=traffic,
            search_volume=search_volume,
            ranking_position=position,
            ctr=ctr,
            terms=terms,
            usage=volumes.usage + serp.usage,
        )
