"""
Business Classifier

Classifies a site's business type from weighted vocabularies plus domain and
content-volume cues, then sizes it in an independent pass.

Thresholds below were calibrated by hand against a small set of known sites;
they may misclassify domains unlike that sample.
"""

import logging
from typing import Dict, Optional

from src.utils.domains import domain_label, is_commercial_registration, normalize_domain

from .models import BusinessClassification, BusinessSize, BusinessType, SiteSignals
from .signals import count_internal_links
from .vocabulary import SIZE, SIZE_RULES, TYPE_RULES, score_against_vocabularies

logger = logging.getLogger(__name__)


# =============================================================================
# THRESHOLDS
# =============================================================================

# Minimum score a type needs to win (personal needs none)
TYPE_GATES = {
    BusinessType.ENTERPRISE: 5,
    BusinessType.BUSINESS: 3,
    BusinessType.BLOG: 3,
    BusinessType.PERSONAL: 0,
}

# Tie-break order
TYPE_PRIORITY = [
    BusinessType.ENTERPRISE,
    BusinessType.BUSINESS,
    BusinessType.BLOG,
    BusinessType.PERSONAL,
]

# Domain cues
BLOG_DOMAIN_CUES = ("blog", "wordpress")
PERSONAL_DOMAIN_CUES = ("personal", "portfolio")
DOMAIN_CUE_BONUS = 3
COMMERCIAL_REGISTRATION_BONUS = 1

# Content volume cues
MANY_ARTICLES = 3
ARTICLE_BONUS = 3
MANY_PARAGRAPHS = 20
PARAGRAPH_BONUS = 1

# Size buckets (lower bounds)
SIZE_MASSIVE = 40
SIZE_LARGE = 20
SIZE_MEDIUM = 10

# Size: domain label length
SHORT_LABEL_LENGTH = 8
SHORT_LABEL_BONUS = 3
LONG_LABEL_LENGTH = 15
LONG_LABEL_PENALTY = -2

# Size: (minimum html length, points), largest first
CONTENT_LENGTH_TIERS = [
    (200_000, 12),
    (100_000, 8),
    (50_000, 5),
    (20_000, 2),
]

# Size: (minimum internal links, points), largest first
INTERNAL_LINK_TIERS = [
    (200, 10),
    (100, 6),
    (50, 4),
    (20, 2),
]


# =============================================================================
# TYPE
# =============================================================================


def score_business_type(signals: SiteSignals, html: str, domain: str) -> Dict[BusinessType, int]:
    """Per-type scores for a page."""
    scores = score_against_vocabularies(html, TYPE_RULES)
    domain = normalize_domain(domain)

    if any(cue in domain for cue in BLOG_DOMAIN_CUES):
        scores[BusinessType.BLOG] += DOMAIN_CUE_BONUS
    if any(cue in domain for cue in PERSONAL_DOMAIN_CUES):
        scores[BusinessType.PERSONAL] += DOMAIN_CUE_BONUS
    if is_commercial_registration(domain):
        scores[BusinessType.BUSINESS] += COMMERCIAL_REGISTRATION_BONUS

    if signals.article_count > MANY_ARTICLES:
        scores[BusinessType.BLOG] += ARTICLE_BONUS
    if signals.paragraph_count > MANY_PARAGRAPHS:
        scores[BusinessType.BUSINESS] += PARAGRAPH_BONUS

    return {t: scores.get(t, 0) for t in TYPE_PRIORITY}


def select_business_type(scores: Dict[BusinessType, int]) -> BusinessType:
    """
    Pick the winning type.

    Types are tried by score (highest first, ties in priority order); the first
    one clearing its gate wins. Anything else is personal.
    """
    if max(scores.values(), default=0) <= 0:
        return BusinessType.PERSONAL

    ranked = sorted(TYPE_PRIORITY, key=lambda t: (-scores.get(t, 0), TYPE_PRIORITY.index(t)))
    for business_type in ranked:
        score = scores.get(business_type, 0)
        if score > 0 and score >= TYPE_GATES[business_type]:
            return business_type

    return BusinessType.PERSONAL


# =============================================================================
# SIZE
# =============================================================================


def score_business_size(html: str, domain: str) -> int:
    """Size score from vocabulary, domain label length, content length and internal links."""
    html = html or ""
    score = score_against_vocabularies(html, SIZE_RULES).get(SIZE, 0)

    label = domain_label(domain)
    if label and len(label) <= SHORT_LABEL_LENGTH:
        score += SHORT_LABEL_BONUS
    elif len(label) >= LONG_LABEL_LENGTH:
        score += LONG_LABEL_PENALTY

    for minimum, points in CONTENT_LENGTH_TIERS:
        if len(html) > minimum:
            score += points
            break

    internal_links = count_internal_links(html)
    for minimum, points in INTERNAL_LINK_TIERS:
        if internal_links >= minimum:
            score += points
            break

    return score


def size_bucket(size_score: int) -> BusinessSize:
    if size_score >= SIZE_MASSIVE:
        return BusinessSize.MASSIVE
    if size_score >= SIZE_LARGE:
        return BusinessSize.LARGE
    if size_score >= SIZE_MEDIUM:
        return BusinessSize.MEDIUM
    return BusinessSize.SMALL


# =============================================================================
# ENTRY POINT
# =============================================================================


def classify(signals: Optional[SiteSignals], html: str, domain: str) -> BusinessClassification:
    """
    Classify a site's business type and size.

    Args:
        signals: Extracted page signals
        html: Raw HTML the signals came from
        domain: Site domain

    Returns:
        BusinessClassification with per-type scores and the size score
    """
    signals = signals or SiteSignals()

    type_scores = score_business_type(signals, html, domain)
    business_type = select_business_type(type_scores)

    size_score = score_business_size(html, domain)
    business_size = size_bucket(size_score)

    breakdown = {t.value: s for t, s in type_scores.items()}
    logger.debug(f"Classification for {domain}: scores={breakdown}, size_score={size_score}")
    logger.info(f"Classified {domain} as {business_type.value}/{business_size.value}")

    return BusinessClassification(
        type=business_type,
        size=business_size,
        score=type_scores,
        size_score=size_score,
    )
