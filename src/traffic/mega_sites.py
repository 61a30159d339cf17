"""
Mega-Site Detection

Global platforms, major news outlets, government and education sites receive
traffic orders of magnitude beyond what the heuristic model produces. This
module recognizes them and returns a fixed high-traffic profile instead.

Matching strategies:
1. Static table of known domains (exact or subdomain match)
2. News vocabulary with a domain-name bonus
3. Government TLD suffixes
4. Education TLD suffixes, or education vocabulary plus a university/college
   cue in the domain
5. Social-platform vocabulary

Domain-only mode (used when the scrape failed) checks the table only.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from src.utils.domains import domain_label, domain_matches, normalize_domain

from .models import MegaSiteProfile, ProfileSource
from .seeding import OFFSET_MEGA_TOTAL, domain_seed, seeded_random
from .vocabulary import VocabularyRule, score_against_vocabularies

logger = logging.getLogger(__name__)


# =============================================================================
# CATEGORIES
# =============================================================================

CATEGORY_SOCIAL = "Social Media Platform"
CATEGORY_SEARCH = "Search Engine"
CATEGORY_VIDEO = "Video Platform"
CATEGORY_NEWS = "Major News Media"
CATEGORY_ECOMMERCE = "E-commerce Marketplace"
CATEGORY_REFERENCE = "Reference Site"
CATEGORY_GOVERNMENT = "Government"
CATEGORY_EDUCATION = "Education"

ORGANIC_RATIOS = {
    CATEGORY_NEWS: 0.92,
    CATEGORY_GOVERNMENT: 0.98,
    CATEGORY_EDUCATION: 0.96,
    CATEGORY_SOCIAL: 0.85,
}
DEFAULT_ORGANIC_RATIO = 0.88

UK_WEIGHTED_GEO = [
    ("United Kingdom", 70.0),
    ("United States", 12.0),
    ("Ireland", 6.0),
    ("Canada", 6.0),
    ("Australia", 6.0),
]

GLOBAL_GEO = [
    ("United States", 45.0),
    ("United Kingdom", 20.0),
    ("India", 15.0),
    ("Canada", 10.0),
    ("Germany", 10.0),
]


# =============================================================================
# KNOWN DOMAINS
# =============================================================================


@dataclass(frozen=True)
class MegaSiteEntry:
    category: str
    monthly_range: Tuple[int, int]
    uk_origin: bool = False


SOCIAL_MEDIA = {
    "facebook.com", "twitter.com", "x.com", "instagram.com", "linkedin.com",
    "tiktok.com", "pinterest.com", "reddit.com", "tumblr.com", "snapchat.com",
    "threads.net", "discord.com", "whatsapp.com", "telegram.org",
}

SEARCH_ENGINES = {
    "google.com", "google.co.uk", "bing.com", "yahoo.com", "duckduckgo.com",
    "baidu.com", "yandex.ru",
}

VIDEO_PLATFORMS = {
    "youtube.com", "vimeo.com", "dailymotion.com", "twitch.tv", "netflix.com",
}

NEWS_MEDIA = {
    "cnn.com", "nytimes.com", "reuters.com", "bloomberg.com", "forbes.com",
    "huffpost.com", "washingtonpost.com", "wsj.com", "foxnews.com", "apnews.com",
    "techcrunch.com", "theverge.com", "wired.com",
}

UK_NEWS_MEDIA = {
    "bbc.co.uk", "bbc.com", "theguardian.com", "dailymail.co.uk", "telegraph.co.uk",
    "independent.co.uk", "thetimes.co.uk", "sky.com", "mirror.co.uk", "thesun.co.uk",
}

MARKETPLACES = {
    "amazon.com", "amazon.co.uk", "ebay.com", "ebay.co.uk", "etsy.com",
    "aliexpress.com", "alibaba.com", "walmart.com",
}

REFERENCE_SITES = {
    "wikipedia.org", "wikihow.com", "britannica.com", "quora.com",
    "stackoverflow.com", "github.com", "medium.com", "imdb.com",
}

MEGA_SITE_TABLE: Dict[str, MegaSiteEntry] = {}


def _register(domains: Set[str], entry: MegaSiteEntry) -> None:
    for domain in domains:
        uk = entry.uk_origin or domain.endswith(".uk")
        MEGA_SITE_TABLE[domain] = MegaSiteEntry(entry.category, entry.monthly_range, uk)


_register(SOCIAL_MEDIA, MegaSiteEntry(CATEGORY_SOCIAL, (200_000_000, 3_000_000_000)))
_register(SEARCH_ENGINES, MegaSiteEntry(CATEGORY_SEARCH, (500_000_000, 5_000_000_000)))
_register(VIDEO_PLATFORMS, MegaSiteEntry(CATEGORY_VIDEO, (100_000_000, 3_000_000_000)))
_register(NEWS_MEDIA, MegaSiteEntry(CATEGORY_NEWS, (50_000_000, 600_000_000)))
_register(UK_NEWS_MEDIA, MegaSiteEntry(CATEGORY_NEWS, (50_000_000, 600_000_000), uk_origin=True))
_register(MARKETPLACES, MegaSiteEntry(CATEGORY_ECOMMERCE, (100_000_000, 2_500_000_000)))
_register(REFERENCE_SITES, MegaSiteEntry(CATEGORY_REFERENCE, (50_000_000, 1_500_000_000)))


# =============================================================================
# PATTERNS
# =============================================================================

NEWS_THRESHOLD = 8
NEWS_DOMAIN_BONUS = 3
NEWS_DOMAIN_CUES = (
    "news", "times", "herald", "post", "gazette", "tribune", "daily", "chronicle",
)
NEWS_RANGE = (5_000_000, 200_000_000)
# Score at which a news site reaches the top of NEWS_RANGE
NEWS_SCORE_CEILING = 40

NEWS_RULES = (
    VocabularyRule("breaking news", 3, "news"),
    VocabularyRule("latest news", 2, "news"),
    VocabularyRule("headlines", 2, "news"),
    VocabularyRule("top stories", 2, "news"),
    VocabularyRule("live updates", 2, "news"),
    VocabularyRule("world news", 2, "news"),
    VocabularyRule("most read", 2, "news"),
    VocabularyRule("newsroom", 2, "news"),
    VocabularyRule("editorial", 1, "news"),
    VocabularyRule("journalist", 1, "news"),
    VocabularyRule("correspondent", 1, "news"),
    VocabularyRule("politics", 1, "news"),
    VocabularyRule("opinion", 1, "news"),
)

GOVERNMENT_SUFFIXES = (
    "gov", "mil", "gov.uk", "gov.au", "gc.ca", "govt.nz", "gov.in", "gov.za",
    "gov.br", "gov.sg", "gob.mx", "go.jp", "gouv.fr",
)
GOVERNMENT_RANGE = (1_000_000, 50_000_000)

EDUCATION_SUFFIXES = (
    "edu", "ac.uk", "edu.au", "ac.nz", "ac.jp", "ac.za", "ac.in", "edu.sg",
)
EDUCATION_DOMAIN_CUES = ("university", "college", "academy")
EDUCATION_THRESHOLD = 8
EDUCATION_RANGE = (500_000, 20_000_000)

EDUCATION_RULES = (
    VocabularyRule("university", 2, "education"),
    VocabularyRule("undergraduate", 2, "education"),
    VocabularyRule("postgraduate", 2, "education"),
    VocabularyRule("admissions", 2, "education"),
    VocabularyRule("campus", 1, "education"),
    VocabularyRule("faculty", 1, "education"),
    VocabularyRule("students", 1, "education"),
    VocabularyRule("alumni", 1, "education"),
    VocabularyRule("research", 1, "education"),
    VocabularyRule("courses", 1, "education"),
    VocabularyRule("degree", 1, "education"),
    VocabularyRule("scholarships", 1, "education"),
)

SOCIAL_THRESHOLD = 10
SOCIAL_RANGE = (1_000_000, 100_000_000)

SOCIAL_RULES = (
    VocabularyRule("news feed", 2, "social"),
    VocabularyRule("followers", 2, "social"),
    VocabularyRule("direct messages", 2, "social"),
    VocabularyRule("community guidelines", 2, "social"),
    VocabularyRule("trending", 2, "social"),
    VocabularyRule("hashtags", 2, "social"),
    VocabularyRule("friend requests", 2, "social"),
    VocabularyRule("create account", 1, "social"),
    VocabularyRule("sign up", 1, "social"),
    VocabularyRule("log in", 1, "social"),
    VocabularyRule("profile", 1, "social"),
    VocabularyRule("timeline", 1, "social"),
)


def _has_suffix(domain: str, suffixes: Tuple[str, ...]) -> bool:
    return any(domain == s or domain.endswith("." + s) for s in suffixes)


def is_uk_domain(domain: str) -> bool:
    return normalize_domain(domain).endswith(".uk")


# =============================================================================
# DETECTOR
# =============================================================================


class MegaSiteDetector:
    """
    Recognize mega-sites and build their traffic profile.

    Usage:
        detector = MegaSiteDetector()
        profile = detector.detect_by_domain("bbc.co.uk")
        profile = detector.detect_by_content("news-example.com", html)
    """

    def __init__(self, table: Optional[Dict[str, MegaSiteEntry]] = None):
        self.table = table if table is not None else MEGA_SITE_TABLE

    def lookup(self, domain: str) -> Optional[Tuple[str, MegaSiteEntry]]:
        """Exact or subdomain match against the table."""
        domain = normalize_domain(domain)
        if domain in self.table:
            return domain, self.table[domain]

        for known, entry in self.table.items():
            if domain_matches(domain, known):
                return known, entry
        return None

    def detect_by_domain(self, domain: str) -> Optional[MegaSiteProfile]:
        """Table-only detection, for when no usable HTML exists."""
        domain = normalize_domain(domain)
        match = self.lookup(domain)
        if match is None:
            return None

        known, entry = match
        logger.info(f"Mega-site table match: {domain} -> {known} ({entry.category})")
        return self._build_profile(
            domain,
            entry.category,
            entry.monthly_range,
            uk_weighted=entry.uk_origin or is_uk_domain(domain),
            source=ProfileSource.TABLE,
        )

    def detect_by_content(self, domain: str, html: str) -> Optional[MegaSiteProfile]:
        """Table first, then news, government, education and social patterns."""
        domain = normalize_domain(domain)

        profile = self.detect_by_domain(domain)
        if profile is not None:
            return profile

        html = html or ""
        uk_weighted = is_uk_domain(domain)

        news_score = self.score_news(domain, html)
        if news_score >= NEWS_THRESHOLD:
            logger.info(f"News pattern match for {domain} (score {news_score})")
            return self._build_profile(
                domain, CATEGORY_NEWS, NEWS_RANGE, uk_weighted, ProfileSource.PATTERN,
                scale=min(1.0, news_score / NEWS_SCORE_CEILING),
            )

        if _has_suffix(domain, GOVERNMENT_SUFFIXES):
            logger.info(f"Government TLD match for {domain}")
            return self._build_profile(
                domain, CATEGORY_GOVERNMENT, GOVERNMENT_RANGE, uk_weighted, ProfileSource.PATTERN
            )

        if self.is_education(domain, html):
            logger.info(f"Education match for {domain}")
            return self._build_profile(
                domain, CATEGORY_EDUCATION, EDUCATION_RANGE, uk_weighted, ProfileSource.PATTERN
            )

        social_score = score_against_vocabularies(html, SOCIAL_RULES).get("social", 0)
        if social_score >= SOCIAL_THRESHOLD:
            logger.info(f"Social platform pattern match for {domain} (score {social_score})")
            return self._build_profile(
                domain, CATEGORY_SOCIAL, SOCIAL_RANGE, uk_weighted, ProfileSource.PATTERN
            )

        return None

    @staticmethod
    def score_news(domain: str, html: str) -> int:
        score = score_against_vocabularies(html, NEWS_RULES).get("news", 0)
        label = domain_label(domain)
        if any(cue in label for cue in NEWS_DOMAIN_CUES):
            score += NEWS_DOMAIN_BONUS
        return score

    @staticmethod
    def is_education(domain: str, html: str) -> bool:
        if _has_suffix(domain, EDUCATION_SUFFIXES):
            return True

        label = domain_label(domain)
        if not any(cue in label for cue in EDUCATION_DOMAIN_CUES):
            return False
        return score_against_vocabularies(html, EDUCATION_RULES).get("education", 0) >= EDUCATION_THRESHOLD

    @staticmethod
    def _build_profile(
        domain: str,
        category: str,
        monthly_range: Tuple[int, int],
        uk_weighted: bool,
        source: ProfileSource,
        scale: float = 1.0,
    ) -> MegaSiteProfile:
        low, high = monthly_range
        organic_ratio = ORGANIC_RATIOS.get(category, DEFAULT_ORGANIC_RATIO)

        # Floor lifted so organic (total x ratio) stays inside the declared range
        floor = min(high, math.ceil(low / organic_ratio))
        r = seeded_random(domain_seed(domain), OFFSET_MEGA_TOTAL)
        total = int(round(floor + r * (high - floor) * scale))

        geo: List[Tuple[str, float]] = list(UK_WEIGHTED_GEO if uk_weighted else GLOBAL_GEO)

        return MegaSiteProfile(
            domain=domain,
            category=category,
            monthly_total=total,
            monthly_range=monthly_range,
            organic_ratio=organic_ratio,
            geo_distribution=geo,
            source=source,
        )
