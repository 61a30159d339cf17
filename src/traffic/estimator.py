"""
Deterministic Traffic Estimator

Synthesizes a reproducible monthly traffic figure from business type, size and
page signals when no real analytics exist. Every pseudo-random draw is seeded
from the domain, so identical inputs give identical output.

Three estimate shapes:
- estimate(): signal-driven (data_source "mcp-analysis")
- basic_estimate(): signal-free fallback (data_source "estimated")
- estimate_mega_site(): fixed high-traffic profile (data_source "mega-site")
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from src.utils.domains import domain_label, normalize_domain

from .branded import cap_branded
from .geography import GeographyInferrer, validate_shares
from .models import (
    BusinessClassification,
    BusinessSize,
    BusinessType,
    Confidence,
    CountryShare,
    CountryTraffic,
    DataSource,
    MegaSiteProfile,
    ProfileSource,
    SiteQuality,
    SiteSignals,
    TrafficEstimate,
    TrendPoint,
)
from .seeding import (
    OFFSET_BASE_TRAFFIC,
    OFFSET_BASIC_TRAFFIC,
    OFFSET_JITTER,
    OFFSET_TREND_ORGANIC,
    OFFSET_TREND_PAID,
    domain_seed,
    seeded_between,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Monthly visits [min, max) by business type and size
PERSONAL_RANGE = (15, 75)
BASE_TRAFFIC_RANGES: Dict[Tuple[BusinessType, BusinessSize], Tuple[int, int]] = {
    (BusinessType.ENTERPRISE, BusinessSize.SMALL): (300, 1000),
    (BusinessType.ENTERPRISE, BusinessSize.MEDIUM): (800, 2500),
    (BusinessType.ENTERPRISE, BusinessSize.LARGE): (2000, 6000),
    (BusinessType.ENTERPRISE, BusinessSize.MASSIVE): (5000, 15000),
    (BusinessType.BUSINESS, BusinessSize.SMALL): (30, 130),
    (BusinessType.BUSINESS, BusinessSize.MEDIUM): (100, 300),
    (BusinessType.BUSINESS, BusinessSize.LARGE): (300, 900),
    (BusinessType.BUSINESS, BusinessSize.MASSIVE): (900, 2500),
    (BusinessType.BLOG, BusinessSize.SMALL): (20, 100),
    (BusinessType.BLOG, BusinessSize.MEDIUM): (80, 250),
    (BusinessType.BLOG, BusinessSize.LARGE): (250, 600),
    (BusinessType.BLOG, BusinessSize.MASSIVE): (600, 1500),
}
for _size in BusinessSize:
    BASE_TRAFFIC_RANGES[(BusinessType.PERSONAL, _size)] = PERSONAL_RANGE

CONTENT_VOLUME_DIVISOR = 1000
CONTENT_VOLUME_CAP = 1.30

QUALITY_MULTIPLIERS = {
    SiteQuality.HIGH: 1.15,
    SiteQuality.MEDIUM: 1.05,
    SiteQuality.LOW: 1.0,
}

SEO_INDICATOR_MULTIPLIER = 1.02
MANY_HEADINGS = 10

DOMAIN_AGE_SHORT_LABEL = 5
DOMAIN_AGE_SHORT = 1.10
DOMAIN_AGE_HYPHENATED = 1.00
DOMAIN_AGE_TECH_TLD = 1.06
DOMAIN_AGE_DEFAULT = 1.05
DOMAIN_AGE_CAP = 1.10
TECH_TLDS = (".ai", ".io")

JITTER_RANGE = (0.95, 1.05)

PAID_RATIO = 0.04
BRANDED_DEFAULT_RATIO = 0.20

BASIC_TRAFFIC_RANGE = (80, 300)
BASIC_PAID_RATIO = 0.05

MEGA_PAID_RATIO = 0.02
MEGA_BRANDED_RATIO = 0.30

TREND_MONTHS = 6
TREND_ORGANIC_RANGE = (0.8, 1.2)
TREND_PAID_RANGE = (0.7, 1.3)

MONTH_ABBREVIATIONS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


# =============================================================================
# ADJUSTMENTS
# =============================================================================


def content_volume_multiplier(signals: Optional[SiteSignals]) -> float:
    if signals is None:
        return 1.0
    return min(1 + signals.content_volume / CONTENT_VOLUME_DIVISOR, CONTENT_VOLUME_CAP)


def quality_multiplier(signals: Optional[SiteSignals]) -> float:
    if signals is None:
        return 1.0
    return QUALITY_MULTIPLIERS.get(signals.site_quality, 1.0)


def seo_multiplier(signals: Optional[SiteSignals]) -> float:
    """1.02 per present indicator: structured data, Open Graph, >10 headings, meta description."""
    if signals is None:
        return 1.0

    indicators = [
        signals.has_structured_data,
        signals.has_open_graph,
        signals.heading_count > MANY_HEADINGS,
        signals.has_meta_description,
    ]
    return SEO_INDICATOR_MULTIPLIER ** sum(1 for present in indicators if present)


def domain_age_multiplier(domain: str) -> float:
    """Rough age proxy: short labels are older, hyphenated ones newer."""
    domain = normalize_domain(domain)
    label = domain_label(domain)

    if label and len(label) <= DOMAIN_AGE_SHORT_LABEL:
        multiplier = DOMAIN_AGE_SHORT
    elif "-" in label:
        multiplier = DOMAIN_AGE_HYPHENATED
    elif domain.endswith(TECH_TLDS):
        multiplier = DOMAIN_AGE_TECH_TLD
    else:
        multiplier = DOMAIN_AGE_DEFAULT

    return min(multiplier, DOMAIN_AGE_CAP)


# =============================================================================
# TREND & GEOGRAPHY
# =============================================================================


def trend_months(as_of: date, count: int = TREND_MONTHS) -> List[str]:
    """Labels for the `count` months ending the month before as_of, oldest first."""
    labels = []
    year, month = as_of.year, as_of.month
    for _ in range(count):
        month -= 1
        if month == 0:
            month = 12
            year -= 1
        labels.append(f"{MONTH_ABBREVIATIONS[month - 1]} {year}")
    return list(reversed(labels))


def generate_trend(organic: int, paid: int, seed: int, as_of: date) -> List[TrendPoint]:
    return [
        TrendPoint(
            month=label,
            organic=int(round(organic * seeded_between(seed, OFFSET_TREND_ORGANIC + index, TREND_ORGANIC_RANGE))),
            paid=int(round(paid * seeded_between(seed, OFFSET_TREND_PAID + index, TREND_PAID_RANGE))),
        )
        for index, label in enumerate(trend_months(as_of))
    ]


def distribute_traffic(shares: List[CountryShare], total: int) -> List[CountryTraffic]:
    """Absolute per-country traffic from percentage shares."""
    return [
        CountryTraffic(
            country=share.country,
            percentage=share.percentage,
            traffic=int(round(total * share.percentage / 100)),
        )
        for share in shares
    ]


# =============================================================================
# ESTIMATOR
# =============================================================================


class TrafficEstimator:
    """
    Seeded monthly traffic estimates.

    Usage:
        estimator = TrafficEstimator()
        estimate = estimator.estimate(classification, signals, "example.co.uk", html)
    """

    def __init__(self, geography: Optional[GeographyInferrer] = None):
        self.geography = geography or GeographyInferrer()

    def _geography(self, domain: str, html: str, total: int) -> List[CountryTraffic]:
        shares = validate_shares(self.geography.infer(domain, html))
        return distribute_traffic(shares, total)

    def base_traffic(self, classification: BusinessClassification, seed: int) -> float:
        low, high = BASE_TRAFFIC_RANGES[(classification.type, classification.size)]
        return seeded_between(seed, OFFSET_BASE_TRAFFIC, (low, high))

    def estimate(
        self,
        classification: BusinessClassification,
        signals: Optional[SiteSignals],
        domain: str,
        html: str = "",
        as_of: Optional[date] = None,
    ) -> TrafficEstimate:
        """
        Signal-driven estimate.

        Args:
            classification: Business type and size
            signals: Page signals; None applies neutral adjustments
            domain: Site domain (seed source)
            html: Page HTML, passed to geography inference
            as_of: Date the trend ends before (default: today)

        Returns:
            TrafficEstimate with data_source "mcp-analysis"

        Raises:
            GeographyError: Geography inference failed
        """
        domain = normalize_domain(domain)
        as_of = as_of or date.today()
        seed = domain_seed(domain)

        base = self.base_traffic(classification, seed)
        multipliers = {
            "content": content_volume_multiplier(signals),
            "quality": quality_multiplier(signals),
            "seo": seo_multiplier(signals),
            "domain_age": domain_age_multiplier(domain),
            "jitter": seeded_between(seed, OFFSET_JITTER, JITTER_RANGE),
        }

        total = base
        for value in multipliers.values():
            total *= value

        monthly_total = int(round(total))
        paid = int(round(total * PAID_RATIO))
        organic = monthly_total - paid
        branded = cap_branded(int(round(organic * BRANDED_DEFAULT_RATIO)), organic)

        if signals is not None and signals.site_quality == SiteQuality.HIGH:
            confidence = Confidence.MEDIUM
        else:
            confidence = Confidence.LOW

        rounded = {k: round(v, 3) for k, v in multipliers.items()}
        logger.debug(f"Estimate for {domain}: base={base:.1f}, multipliers={rounded}")
        logger.info(f"Estimated {domain}: organic={organic}, paid={paid}, branded={branded}")

        return TrafficEstimate(
            monthly_organic=organic,
            monthly_paid=paid,
            branded_traffic=branded,
            top_countries=self._geography(domain, html, organic + paid),
            trend=generate_trend(organic, paid, seed, as_of),
            data_source=DataSource.ANALYSIS,
            confidence=confidence,
            domain=domain,
            classification=classification,
        )

    def basic_estimate(self, domain: str, as_of: Optional[date] = None) -> TrafficEstimate:
        """Signal-free fallback: seeded 80-300 visits, geography from the domain only."""
        domain = normalize_domain(domain)
        as_of = as_of or date.today()
        seed = domain_seed(domain)

        total = seeded_between(seed, OFFSET_BASIC_TRAFFIC, BASIC_TRAFFIC_RANGE)
        monthly_total = int(round(total))
        paid = int(round(total * BASIC_PAID_RATIO))
        organic = monthly_total - paid
        branded = cap_branded(int(round(organic * BRANDED_DEFAULT_RATIO)), organic)

        logger.info(f"Basic estimate for {domain}: organic={organic}, paid={paid}")

        return TrafficEstimate(
            monthly_organic=organic,
            monthly_paid=paid,
            branded_traffic=branded,
            top_countries=self._geography(domain, "", organic + paid),
            trend=generate_trend(organic, paid, seed, as_of),
            data_source=DataSource.ESTIMATED,
            confidence=Confidence.LOW,
            domain=domain,
        )

    def estimate_mega_site(self, profile: MegaSiteProfile, as_of: Optional[date] = None) -> TrafficEstimate:
        """Traffic figures for a recognized mega-site."""
        as_of = as_of or date.today()
        seed = domain_seed(profile.domain)

        organic = int(round(profile.monthly_total * profile.organic_ratio))
        paid = int(round(profile.monthly_total * MEGA_PAID_RATIO))
        branded = cap_branded(int(round(organic * MEGA_BRANDED_RATIO)), organic)

        shares = validate_shares(
            [CountryShare(country, pct) for country, pct in profile.geo_distribution]
        )

        confidence = Confidence.MEDIUM if profile.source == ProfileSource.TABLE else Confidence.LOW

        logger.info(
            f"Mega-site estimate for {profile.domain} ({profile.category}): "
            f"total={profile.monthly_total}, organic={organic}"
        )

        return TrafficEstimate(
            monthly_organic=organic,
            monthly_paid=paid,
            branded_traffic=branded,
            top_countries=distribute_traffic(shares, organic + paid),
            trend=generate_trend(organic, paid, seed, as_of),
            data_source=DataSource.MEGA_SITE,
            confidence=confidence,
            domain=profile.domain,
            mega_site=profile,
        )
