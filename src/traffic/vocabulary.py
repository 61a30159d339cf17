"""
Weighted Vocabularies

Declarative (term, weight, category) tables and the single routine that scores
text against them. Both business-type and business-size scoring go through
score_against_vocabularies().
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Hashable, Iterable, List, Pattern, Sequence, Tuple

from .models import BusinessType


@dataclass(frozen=True)
class VocabularyRule:
    """One weighted term. Matches at most once per text."""
    term: str
    weight: int
    category: Hashable


@lru_cache(maxsize=None)
def _term_pattern(term: str) -> Pattern:
    # Lookarounds instead of \b so terms ending in punctuation ("inc.") still anchor
    return re.compile(r"(?<!\w)" + re.escape(term.lower()) + r"(?!\w)")


def term_present(text: str, term: str) -> bool:
    """Case-insensitive whole-word presence check. text must already be lowercase."""
    return _term_pattern(term).search(text) is not None


def score_against_vocabularies(text: str, rules: Iterable[VocabularyRule]) -> Dict[Hashable, int]:
    """
    Score text against a vocabulary table.

    Args:
        text: Text to search (any case)
        rules: Vocabulary rules

    Returns:
        Total weight per category. Every category in rules is present, even at 0.
    """
    lower_text = (text or "").lower()
    scores: Dict[Hashable, int] = {}

    for rule in rules:
        scores.setdefault(rule.category, 0)
        if term_present(lower_text, rule.term):
            scores[rule.category] += rule.weight

    return scores


def matched_terms(text: str, rules: Iterable[VocabularyRule]) -> List[str]:
    """Terms from rules found in text, in table order."""
    lower_text = (text or "").lower()
    return [rule.term for rule in rules if term_present(lower_text, rule.term)]


def rules_for(
    terms: Sequence[str], weight: int, category: Hashable
) -> Tuple[VocabularyRule, ...]:
    return tuple(VocabularyRule(term, weight, category) for term in terms)


# =============================================================================
# BUSINESS TYPE
# =============================================================================

ENTERPRISE_TERMS = [
    "enterprise", "corporation", "multinational", "global", "worldwide",
    "fortune 500", "public company", "nasdaq", "nyse", "ftse",
    "subsidiaries", "headquarters", "annual report", "investor relations",
    "board of directors", "ceo", "cfo", "enterprise solutions",
    "b2b", "saas platform", "api", "white paper", "case studies",
]

BUSINESS_TERMS = [
    "services", "solutions", "consulting", "professional", "company",
    "business", "clients", "customers", "portfolio", "testimonials",
    "about us", "contact us", "team", "staff", "office", "location",
    "phone", "email", "address", "consultation", "quote",
    "pricing", "packages", "plans", "terms", "privacy policy",
]

BLOG_TERMS = [
    "blog", "article", "post", "category", "tag", "archive",
    "recent posts", "read more", "comments", "author",
    "published", "updated", "share", "social media",
    "subscribe", "newsletter", "rss", "wordpress", "medium",
]

PERSONAL_TERMS = [
    "personal", "portfolio", "resume", "cv", "about me",
    "my name is", "i am", "my work", "my projects",
    "hobby", "interests", "family", "travel", "photography",
    "diary", "journal", "my blog", "hello world",
]

ENTERPRISE_STRUCTURES = ["corp", "plc", "gmbh"]
BUSINESS_STRUCTURES = ["ltd", "llc", "inc", "pty"]
TECH_TERMS = ["api", "sdk", "integration", "webhook", "oauth", "saas"]
ECOMMERCE_TERMS = ["shop", "store", "cart", "checkout", "payment", "buy now", "add to cart"]

# Enterprise phrases longer than this many characters weigh more
LONG_PHRASE_LENGTH = 10

TYPE_RULES: Tuple[VocabularyRule, ...] = (
    tuple(
        VocabularyRule(term, 3 if len(term) > LONG_PHRASE_LENGTH else 2, BusinessType.ENTERPRISE)
        for term in ENTERPRISE_TERMS
    )
    + rules_for(BUSINESS_TERMS, 1, BusinessType.BUSINESS)
    + rules_for(BLOG_TERMS, 1, BusinessType.BLOG)
    + rules_for(PERSONAL_TERMS, 2, BusinessType.PERSONAL)
    + rules_for(ENTERPRISE_STRUCTURES, 2, BusinessType.ENTERPRISE)
    + rules_for(BUSINESS_STRUCTURES, 2, BusinessType.BUSINESS)
    + rules_for(TECH_TERMS, 1, BusinessType.ENTERPRISE)
    + rules_for(TECH_TERMS, 1, BusinessType.BUSINESS)
    + rules_for(ECOMMERCE_TERMS, 2, BusinessType.BUSINESS)
)


# =============================================================================
# BUSINESS SIZE
# =============================================================================

SIZE = "size"

LARGE_SIZE_TERMS = [
    "fortune", "nasdaq", "ftse", "public company", "subsidiary", "subsidiaries",
    "headquarters", "hq", "offices worldwide", "global", "international",
    "annual report", "investor relations", "board of directors",
    "employees", "staff members", "team of", "established 19", "founded 19",
]

MEDIUM_SIZE_TERMS = [
    "branches", "locations", "offices", "regional", "nationwide",
    "award-winning", "certified", "accredited", "years of experience",
    "professional team", "experts", "specialists", "consultants",
]

SMALL_SIZE_TERMS = [
    "local", "family business", "small business", "freelance", "independent",
    "boutique", "personal service", "one-on-one", "personalized",
]

SOCIAL_PLATFORM_TERMS = [
    "facebook", "twitter", "instagram", "linkedin", "youtube", "tiktok", "pinterest",
]

SIZE_RULES: Tuple[VocabularyRule, ...] = (
    rules_for(LARGE_SIZE_TERMS, 6, SIZE)
    + rules_for(MEDIUM_SIZE_TERMS, 3, SIZE)
    + rules_for(SMALL_SIZE_TERMS, -2, SIZE)
    + rules_for(SOCIAL_PLATFORM_TERMS, 1, SIZE)
)
