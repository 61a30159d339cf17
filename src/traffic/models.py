"""
Traffic Engine Data Models

Defines all types produced during one traffic estimation:
- Site signals extracted from HTML
- Business classification
- Mega-site profiles
- The final TrafficEstimate returned to callers
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from src.collector.client import ApiUsage


# =============================================================================
# ENUMS
# =============================================================================


class BusinessType(str, Enum):
    """Business type, in tie-break priority order."""
    ENTERPRISE = "enterprise"
    BUSINESS = "business"
    BLOG = "blog"
    PERSONAL = "personal"


class BusinessSize(str, Enum):
    """Business size bucket."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    MASSIVE = "massive"


class SiteQuality(str, Enum):
    """Technical quality tier of the scraped page."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DataSource(str, Enum):
    """Where a traffic figure came from."""
    MEGA_SITE = "mega-site"  # Static table or pattern profile
    ANALYSIS = "mcp-analysis"  # Signal-driven deterministic estimate
    ESTIMATED = "estimated"  # Signal-free basic estimate


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProfileSource(str, Enum):
    """How a mega-site profile was found."""
    TABLE = "table"
    PATTERN = "pattern"


# =============================================================================
# SIGNALS
# =============================================================================


@dataclass(frozen=True)
class SiteSignals:
    """Raw features of a page. Immutable once extracted."""
    html_length: int = 0
    headers: Tuple[Tuple[str, str], ...] = ()
    paragraph_count: int = 0
    heading_count: int = 0
    image_count: int = 0
    link_count: int = 0
    internal_link_count: int = 0
    article_count: int = 0
    script_count: int = 0
    has_title: bool = False
    has_structured_data: bool = False
    has_open_graph: bool = False
    has_meta_description: bool = False
    tech_stack_tags: FrozenSet[str] = frozenset()
    site_quality: SiteQuality = SiteQuality.LOW

    @property
    def header_map(self) -> Dict[str, str]:
        return dict(self.headers)

    @property
    def content_volume(self) -> int:
        """Weighted count of content elements."""
        return (
            self.paragraph_count * 2
            + self.heading_count * 3
            + self.image_count
            + min(self.link_count, 50)
        )

    @property
    def is_empty(self) -> bool:
        return self.html_length == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "htmlLength": self.html_length,
            "paragraphCount": self.paragraph_count,
            "headingCount": self.heading_count,
            "imageCount": self.image_count,
            "linkCount": self.link_count,
            "internalLinkCount": self.internal_link_count,
            "articleCount": self.article_count,
            "hasStructuredData": self.has_structured_data,
            "hasOpenGraph": self.has_open_graph,
            "hasMetaDescription": self.has_meta_description,
            "techStack": sorted(self.tech_stack_tags),
            "siteQuality": self.site_quality.value,
        }


# =============================================================================
# CLASSIFICATION
# =============================================================================


@dataclass
class BusinessClassification:
    """Business type and size with the scores that produced them."""
    type: BusinessType = BusinessType.PERSONAL
    size: BusinessSize = BusinessSize.SMALL
    score: Dict[BusinessType, int] = field(default_factory=dict)
    size_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "size": self.size.value,
            "score": {k.value: v for k, v in self.score.items()},
            "sizeScore": self.size_score,
        }


# =============================================================================
# MEGA-SITES
# =============================================================================


@dataclass
class MegaSiteProfile:
    """Fixed high-traffic profile for platforms, news, government, education."""
    domain: str
    category: str
    monthly_total: int
    monthly_range: Tuple[int, int]
    organic_ratio: float
    geo_distribution: List[Tuple[str, float]] = field(default_factory=list)
    source: ProfileSource = ProfileSource.TABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "category": self.category,
            "monthlyTotal": self.monthly_total,
            "monthlyRange": list(self.monthly_range),
            "organicRatio": self.organic_ratio,
            "geoDistribution": [
                {"country": c, "percentage": p} for c, p in self.geo_distribution
            ],
            "source": self.source.value,
        }


# =============================================================================
# ESTIMATE
# =============================================================================


@dataclass
class CountryShare:
    """Share of traffic attributed to one country (percentages sum to 100)."""
    country: str
    percentage: float


@dataclass
class CountryTraffic:
    country: str
    percentage: float
    traffic: int

    def to_dict(self) -> Dict[str, Any]:
        return {"country": self.country, "percentage": self.percentage, "traffic": self.traffic}


@dataclass
class TrendPoint:
    month: str
    organic: int
    paid: int

    def to_dict(self) -> Dict[str, Any]:
        return {"month": self.month, "organic": self.organic, "paid": self.paid}


@dataclass
class TrafficEstimate:
    """
    Terminal artifact of one audit.

    Always carries data_source and confidence so the UI can disclose that the
    figures are estimates.
    """
    monthly_organic: int
    monthly_paid: int
    branded_traffic: int
    top_countries: List[CountryTraffic] = field(default_factory=list)
    trend: List[TrendPoint] = field(default_factory=list)
    data_source: DataSource = DataSource.ESTIMATED
    confidence: Confidence = Confidence.LOW

    # Context
    domain: str = ""
    classification: Optional[BusinessClassification] = None
    mega_site: Optional[MegaSiteProfile] = None
    estimation_path: List[str] = field(default_factory=list)
    branded_source: str = "heuristic"  # heuristic, reconciled
    api_usage: ApiUsage = field(default_factory=ApiUsage)

    @property
    def monthly_total(self) -> int:
        return self.monthly_organic + self.monthly_paid

    @property
    def non_branded_traffic(self) -> int:
        return max(0, self.monthly_organic - self.branded_traffic)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "monthlyOrganic": self.monthly_organic,
            "monthlyPaid": self.monthly_paid,
            "brandedTraffic": self.branded_traffic,
            "nonBrandedTraffic": self.non_branded_traffic,
            "topCountries": [c.to_dict() for c in self.top_countries],
            "trend": [t.to_dict() for t in self.trend],
            "dataSource": self.data_source.value,
            "confidence": self.confidence.value,
            "classification": self.classification.to_dict() if self.classification else None,
            "megaSite": self.mega_site.to_dict() if self.mega_site else None,
            "estimationPath": list(self.estimation_path),
            "brandedSource": self.branded_source,
            "apiUsage": self.api_usage.to_dict(),
        }
