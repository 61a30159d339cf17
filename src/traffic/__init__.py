"""
Traffic & Business-Classification Estimation Engine

Given a domain and its scraped HTML:
1. Extracts page signals
2. Classifies business type and size
3. Detects mega-sites (platforms, news, government, education)
4. Synthesizes a seeded, reproducible monthly traffic estimate
5. Reconciles branded traffic against keyword volumes and SERP rankings
"""

from .exceptions import (
    TrafficEngineError,
    GeographyError,
    BrandedTrafficError,
    BrandedTrafficConfigError,
)
from .models import (
    BusinessType,
    BusinessSize,
    SiteQuality,
    DataSource,
    Confidence,
    ProfileSource,
    SiteSignals,
    BusinessClassification,
    MegaSiteProfile,
    CountryShare,
    CountryTraffic,
    TrendPoint,
    TrafficEstimate,
)
from .seeding import fnv1a_32, domain_seed, derive_seed, seeded_random
from .signals import extract_signals
from .vocabulary import VocabularyRule, score_against_vocabularies
from .classifier import classify, score_business_size
from .mega_sites import MegaSiteDetector
from .geography import GeographyInferrer
from .estimator import TrafficEstimator
from .branded import (
    BrandedTrafficReconciler,
    BrandedEstimate,
    cap_branded,
    extract_main_brand,
    generate_brand_keywords,
)
from .pipeline import PipelineState, TrafficEstimationPipeline, estimate_traffic

__all__ = [
    # Errors
    "TrafficEngineError",
    "GeographyError",
    "BrandedTrafficError",
    "BrandedTrafficConfigError",

    # Models
    "BusinessType",
    "BusinessSize",
    "SiteQuality",
    "DataSource",
    "Confidence",
    "ProfileSource",
    "SiteSignals",
    "BusinessClassification",
    "MegaSiteProfile",
    "CountryShare",
    "CountryTraffic",
    "TrendPoint",
    "TrafficEstimate",

    # Seeding
    "fnv1a_32",
    "domain_seed",
    "derive_seed",
    "seeded_random",

    # Components
    "extract_signals",
    "VocabularyRule",
    "score_against_vocabularies",
    "classify",
    "score_business_size",
    "MegaSiteDetector",
    "GeographyInferrer",
    "TrafficEstimator",
    "BrandedTrafficReconciler",
    "BrandedEstimate",
    "cap_branded",
    "extract_main_brand",
    "generate_brand_keywords",

    # Pipeline
    "PipelineState",
    "TrafficEstimationPipeline",
    "estimate_traffic",
]
