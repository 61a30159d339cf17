"""
Traffic Estimation Pipeline

Coordinates one estimation run with demotion on failure:

    SCRAPING -> CLASSIFYING -> ESTIMATING -> DONE
    SCRAPING -> MEGA_SITE_BY_DOMAIN -> DONE | BASIC_ESTIMATE -> DONE
    CLASSIFYING -> DONE                      (mega-site found in content)
    CLASSIFYING | ESTIMATING -> BASIC_ESTIMATE -> DONE

Only GeographyError escapes. Branded reconciliation failures keep the heuristic
branded figure and lower confidence.
"""

import logging
from datetime import date
from enum import Enum
from typing import List, Optional

from src.collector.fetcher import PageFetcher, ScrapedPage
from src.collector.keywords_everywhere import KeywordsEverywhereClient
from src.collector.valueserp import ValueSerpClient
from src.utils.config import Settings, get_settings
from src.utils.domains import normalize_domain

from .branded import BrandedTrafficReconciler, cap_branded
from .classifier import classify
from .estimator import TrafficEstimator
from .exceptions import BrandedTrafficError, GeographyError
from .geography import country_code
from .mega_sites import MegaSiteDetector
from .models import Confidence, TrafficEstimate
from .signals import extract_signals

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """States visited by one run, recorded on TrafficEstimate.estimation_path."""
    SCRAPING = "scraping"
    CLASSIFYING = "classifying"
    ESTIMATING = "estimating"
    MEGA_SITE_BY_DOMAIN = "mega_site_by_domain"
    BASIC_ESTIMATE = "basic_estimate"
    DONE = "done"


class TrafficEstimationPipeline:
    """
    Scrape, classify and estimate traffic for one domain.

    Usage:
        async with TrafficEstimationPipeline.from_settings() as pipeline:
            estimate = await pipeline.run("example.co.uk")
            print(estimate.to_dict())
    """

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        detector: Optional[MegaSiteDetector] = None,
        estimator: Optional[TrafficEstimator] = None,
        reconciler: Optional[BrandedTrafficReconciler] = None,
        default_country: str = "gb",
    ):
        self.fetcher = fetcher or PageFetcher()
        self.detector = detector or MegaSiteDetector()
        self.estimator = estimator or TrafficEstimator()
        self.reconciler = reconciler
        self.default_country = default_country

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "TrafficEstimationPipeline":
        """Build a pipeline with branded clients when both API keys are set."""
        settings = settings or get_settings()

        reconciler = None
        if settings.has_branded_apis:
            reconciler = BrandedTrafficReconciler(
                keyword_client=KeywordsEverywhereClient(
                    settings.KEYWORDS_EVERYWHERE_API_KEY, timeout=settings.API_TIMEOUT
                ),
                serp_client=ValueSerpClient(settings.VALUESERP_API_KEY, timeout=settings.API_TIMEOUT),
                timeout=settings.BRANDED_LOOKUP_TIMEOUT,
            )
        else:
            logger.info("Branded traffic APIs not configured - using heuristic branded share")

        return cls(
            fetcher=PageFetcher(timeout=settings.FETCH_TIMEOUT, min_html_length=settings.MIN_HTML_LENGTH),
            reconciler=reconciler,
            default_country=settings.DEFAULT_COUNTRY,
        )

    async def run(
        self,
        domain: str,
        page: Optional[ScrapedPage] = None,
        as_of: Optional[date] = None,
    ) -> TrafficEstimate:
        """
        Estimate traffic for a domain.

        Args:
            domain: Domain or URL
            page: Already-scraped page; fetched when None
            as_of: Date the trend ends before (default: today)

        Returns:
            TrafficEstimate with the visited states in estimation_path

        Raises:
            GeographyError: Geography inference failed
        """
        domain = normalize_domain(domain)
        as_of = as_of or date.today()
        path: List[PipelineState] = [PipelineState.SCRAPING]

        logger.info(f"Starting traffic estimation for {domain}")

        if page is None:
            page = await self.fetcher.fetch(domain)

        if page.failed:
            logger.warning(f"Scrape failed for {domain} ({page.failure_reason}) - trying domain-only detection")
            estimate = self._estimate_without_content(domain, as_of, path)
            return self._finish(estimate, path)

        path.append(PipelineState.CLASSIFYING)
        try:
            signals = extract_signals(page.html, page.headers)
            classification = classify(signals, page.html, domain)
            profile = self.detector.detect_by_content(domain, page.html)
        except GeographyError:
            raise
        except Exception as e:
            logger.warning(f"Classification failed for {domain}: {e} - using basic estimate")
            path.append(PipelineState.BASIC_ESTIMATE)
            return self._finish(self.estimator.basic_estimate(domain, as_of), path)

        if profile is not None:
            estimate = self.estimator.estimate_mega_site(profile, as_of)
            estimate.classification = classification
            return self._finish(estimate, path)

        path.append(PipelineState.ESTIMATING)
        try:
            estimate = self.estimator.estimate(classification, signals, domain, page.html, as_of)
        except GeographyError:
            raise
        except Exception as e:
            logger.warning(f"Estimation failed for {domain}: {e} - using basic estimate")
            path.append(PipelineState.BASIC_ESTIMATE)
            return self._finish(self.estimator.basic_estimate(domain, as_of), path)

        await self._reconcile_branded(estimate)
        return self._finish(estimate, path)

    def _estimate_without_content(
        self, domain: str, as_of: date, path: List[PipelineState]
    ) -> TrafficEstimate:
        path.append(PipelineState.MEGA_SITE_BY_DOMAIN)
        profile = self.detector.detect_by_domain(domain)
        if profile is not None:
            return self.estimator.estimate_mega_site(profile, as_of)

        path.append(PipelineState.BASIC_ESTIMATE)
        return self.estimator.basic_estimate(domain, as_of)

    async def _reconcile_branded(self, estimate: TrafficEstimate) -> None:
        """Replace the heuristic branded figure with a keyword/SERP estimate when possible."""
        if self.reconciler is None or not self.reconciler.configured:
            return

        country = self.default_country
        if estimate.top_countries:
            country = country_code(estimate.top_countries[0].country, self.default_country)

        try:
            branded = await self.reconciler.estimate_branded(estimate.domain, country)
        except BrandedTrafficError as e:
            logger.warning(f"Branded reconciliation failed for {estimate.domain}: {e}")
            estimate.confidence = Confidence.LOW
            return
        except Exception as e:
            logger.error(f"Unexpected branded reconciliation error for {estimate.domain}: {e}")
            estimate.confidence = Confidence.LOW
            return

        estimate.branded_traffic = branded.traffic
        estimate.branded_source = "reconciled"
        estimate.api_usage = estimate.api_usage + branded.usage

    @staticmethod
    def _finish(estimate: TrafficEstimate, path: List[PipelineState]) -> TrafficEstimate:
        estimate.branded_traffic = cap_branded(estimate.branded_traffic, estimate.monthly_organic)
        path.append(PipelineState.DONE)
        estimate.estimation_path = [state.value for state in path]

        logger.info(
            f"Traffic estimation complete for {estimate.domain}: "
            f"{estimate.data_source.value}/{estimate.confidence.value} via {' -> '.join(estimate.estimation_path)}"
        )
        return estimate

    async def close(self):
        """Close branded API clients."""
        if self.reconciler is None:
            return
        for client in (self.reconciler.keyword_client, self.reconciler.serp_client):
            if client is not None:
                await client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


async def estimate_traffic(
    domain: str,
    page: Optional[ScrapedPage] = None,
    as_of: Optional[date] = None,
    settings: Optional[Settings] = None,
) -> TrafficEstimate:
    """One-shot estimate using settings from the environment."""
    async with TrafficEstimationPipeline.from_settings(settings) as pipeline:
        return await pipeline.run(domain, page=page, as_of=as_of)
