"""
Integration Tests for the Traffic Estimation Pipeline

Walks each path through the pipeline: full analysis, mega-sites found by
content or by domain, and the basic-estimate fallbacks.
"""

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from src.collector import KeywordsEverywhereClient, KeywordsEverywhereError, ScrapedPage
from src.traffic.branded import BrandedTrafficReconciler
from src.traffic.estimator import TrafficEstimator
from src.traffic.exceptions import GeographyError
from src.traffic.mega_sites import CATEGORY_NEWS
from src.traffic.models import Confidence, DataSource
from src.traffic.pipeline import TrafficEstimationPipeline, estimate_traffic
from src.utils.config import Settings


FULL_PATH = ["scraping", "classifying", "estimating", "done"]


# =============================================================================
# FULL ANALYSIS
# =============================================================================


class TestFullAnalysis:
    """SCRAPING -> CLASSIFYING -> ESTIMATING -> DONE"""

    @pytest.mark.asyncio
    async def test_uk_small_business(self, failed_fetcher, scenario_page, as_of):
        pipeline = TrafficEstimationPipeline(fetcher=failed_fetcher)
        result = await pipeline.run("example.co.uk", page=scenario_page, as_of=as_of)

        assert result.estimation_path == FULL_PATH
        assert result.data_source == DataSource.ANALYSIS
        assert result.classification.type.value == "business"
        assert result.classification.size.value == "small"
        assert 30 <= result.monthly_organic <= 143
        assert result.monthly_paid <= result.monthly_organic * 0.10
        assert result.top_countries[0].country == "United Kingdom"
        assert result.trend[0].month == "Sep 2024"
        assert result.trend[-1].month == "Feb 2025"
        assert result.branded_source == "heuristic"

    @pytest.mark.asyncio
    async def test_supplied_page_skips_fetch(self, failed_fetcher, scenario_page, as_of):
        pipeline = TrafficEstimationPipeline(fetcher=failed_fetcher)
        await pipeline.run("example.co.uk", page=scenario_page, as_of=as_of)
        failed_fetcher.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_fetches_when_no_page(self, scenario_html, as_of):
        fetcher = MagicMock()

        async def fetch(domain):
            return ScrapedPage(domain=domain, html=scenario_html)

        fetcher.fetch = MagicMock(side_effect=fetch)
        pipeline = TrafficEstimationPipeline(fetcher=fetcher)
        result = await pipeline.run("https://www.example.co.uk/", as_of=as_of)

        fetcher.fetch.assert_called_once_with("example.co.uk")
        assert result.estimation_path == FULL_PATH

    @pytest.mark.asyncio
    async def test_byte_identical_across_runs(self, failed_fetcher, scenario_page, as_of):
        first = await TrafficEstimationPipeline(fetcher=failed_fetcher).run(
            "example.co.uk", page=scenario_page, as_of=as_of
        )
        second = await TrafficEstimationPipeline(fetcher=failed_fetcher).run(
            "example.co.uk", page=scenario_page, as_of=as_of
        )
        assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)


# =============================================================================
# MEGA-SITES
# =============================================================================


class TestMegaSitePaths:
    """Mega-sites short-circuit estimation."""

    @pytest.mark.asyncio
    async def test_failed_scrape_of_known_site(self, failed_fetcher, as_of):
        pipeline = TrafficEstimationPipeline(fetcher=failed_fetcher)
        result = await pipeline.run("bbc.co.uk", as_of=as_of)

        assert result.estimation_path == ["scraping", "mega_site_by_domain", "done"]
        assert result.data_source == DataSource.MEGA_SITE
        assert result.mega_site.category == CATEGORY_NEWS
        assert result.top_countries[0].country == "United Kingdom"
        assert result.top_countries[0].percentage == 70.0
        assert result.classification is None

    @pytest.mark.asyncio
    async def test_known_site_with_content(self, failed_fetcher, scenario_html, as_of):
        page = ScrapedPage(domain="facebook.com", html=scenario_html)
        result = await TrafficEstimationPipeline(fetcher=failed_fetcher).run(
            "facebook.com", page=page, as_of=as_of
        )

        assert result.estimation_path == ["scraping", "classifying", "done"]
        assert result.data_source == DataSource.MEGA_SITE
        assert result.classification is not None

    @pytest.mark.asyncio
    async def test_news_pattern(self, failed_fetcher, news_html, as_of):
        page = ScrapedPage(domain="news-example.com", html=news_html)
        result = await TrafficEstimationPipeline(fetcher=failed_fetcher).run(
            "news-example.com", page=page, as_of=as_of
        )

        assert result.data_source == DataSource.MEGA_SITE
        assert result.confidence == Confidence.LOW
        assert result.to_dict()["megaSite"]["category"] == "Major News Media"
        total = result.mega_site.monthly_total
        assert 5_000_000 <= total <= 53_750_000
        assert result.monthly_organic == int(round(total * 0.92))


# =============================================================================
# FALLBACKS
# =============================================================================


class TestFallbacks:
    """Demotion to the basic estimate."""

    @pytest.mark.asyncio
    async def test_failed_scrape_unknown_site(self, failed_fetcher, as_of):
        result = await TrafficEstimationPipeline(fetcher=failed_fetcher).run("example.co.uk", as_of=as_of)

        assert result.estimation_path == ["scraping", "mega_site_by_domain", "basic_estimate", "done"]
        assert result.data_source == DataSource.ESTIMATED
        assert result.confidence == Confidence.LOW
        assert 80 <= result.monthly_total <= 300

    @pytest.mark.asyncio
    async def test_thin_page_is_a_failed_scrape(self, failed_fetcher, as_of):
        page = ScrapedPage(domain="example.co.uk", html="<html></html>")
        result = await TrafficEstimationPipeline(fetcher=failed_fetcher).run(
            "example.co.uk", page=page, as_of=as_of
        )
        assert "mega_site_by_domain" in result.estimation_path
        assert result.data_source == DataSource.ESTIMATED

    @pytest.mark.asyncio
    async def test_classification_failure(self, failed_fetcher, scenario_page, as_of):
        with patch("src.traffic.pipeline.classify", side_effect=ValueError("bad html")):
            result = await TrafficEstimationPipeline(fetcher=failed_fetcher).run(
                "example.co.uk", page=scenario_page, as_of=as_of
            )

        assert result.estimation_path == ["scraping", "classifying", "basic_estimate", "done"]
        assert result.data_source == DataSource.ESTIMATED

    @pytest.mark.asyncio
    async def test_estimation_failure(self, failed_fetcher, scenario_page, as_of):
        estimator = TrafficEstimator()
        pipeline = TrafficEstimationPipeline(fetcher=failed_fetcher, estimator=estimator)

        with patch.object(estimator, "estimate", side_effect=ZeroDivisionError("boom")):
            result = await pipeline.run("example.co.uk", page=scenario_page, as_of=as_of)

        assert result.estimation_path == [
            "scraping", "classifying", "estimating", "basic_estimate", "done",
        ]

    @pytest.mark.asyncio
    async def test_geography_error_propagates(
        self, failed_fetcher, scenario_page, bad_geography_estimator, as_of
    ):
        pipeline = TrafficEstimationPipeline(fetcher=failed_fetcher, estimator=bad_geography_estimator)
        with pytest.raises(GeographyError):
            await pipeline.run("example.co.uk", page=scenario_page, as_of=as_of)

    @pytest.mark.asyncio
    async def test_geography_error_propagates_from_basic_estimate(
        self, failed_fetcher, bad_geography_estimator, as_of
    ):
        pipeline = TrafficEstimationPipeline(fetcher=failed_fetcher, estimator=bad_geography_estimator)
        with pytest.raises(GeographyError):
            await pipeline.run("example.co.uk", as_of=as_of)


# =============================================================================
# BRANDED RECONCILIATION
# =============================================================================


class TestBrandedReconciliation:
    """Keyword/SERP refinement of branded traffic."""

    @pytest.mark.asyncio
    async def test_reconciled_and_capped(
        self, failed_fetcher, scenario_page, mock_keyword_client, mock_serp_client, as_of
    ):
        reconciler = BrandedTrafficReconciler(mock_keyword_client, mock_serp_client)
        pipeline = TrafficEstimationPipeline(fetcher=failed_fetcher, reconciler=reconciler)
        result = await pipeline.run("example.co.uk", page=scenario_page, as_of=as_of)

        # 420 branded visits exceed this site's organic traffic
        assert result.branded_source == "reconciled"
        assert result.branded_traffic == int(round(result.monthly_organic * 0.80))
        assert result.branded_traffic <= result.monthly_organic
        assert result.to_dict()["apiUsage"] == {"keywordCredits": 5, "serpSearches": 1}
        mock_serp_client.check_ranking.assert_awaited_once_with("example", "gb", top_n=10)

    @pytest.mark.asyncio
    async def test_failure_lowers_confidence(
        self, failed_fetcher, rich_html, mock_keyword_client, mock_serp_client, as_of
    ):
        page = ScrapedPage(domain="acme-widgets.com", html=rich_html)

        baseline = await TrafficEstimationPipeline(fetcher=failed_fetcher).run(
            "acme-widgets.com", page=page, as_of=as_of
        )
        assert baseline.confidence == Confidence.MEDIUM

        mock_keyword_client.lookup_volumes.side_effect = KeywordsEverywhereError("quota exceeded")
        reconciler = BrandedTrafficReconciler(mock_keyword_client, mock_serp_client)
        result = await TrafficEstimationPipeline(fetcher=failed_fetcher, reconciler=reconciler).run(
            "acme-widgets.com", page=page, as_of=as_of
        )

        assert result.confidence == Confidence.LOW
        assert result.branded_source == "heuristic"
        assert result.branded_traffic == baseline.branded_traffic
        assert result.monthly_organic == baseline.monthly_organic

    @pytest.mark.asyncio
    async def test_malformed_keyword_data_does_not_escape(
        self, failed_fetcher, rich_html, mock_serp_client, as_of
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": [{"keyword": "acme", "vol": "n/a"}]})

        page = ScrapedPage(domain="acme-widgets.com", html=rich_html)
        async with KeywordsEverywhereClient("k", transport=httpx.MockTransport(handler)) as keywords:
            reconciler = BrandedTrafficReconciler(keywords, mock_serp_client)
            result = await TrafficEstimationPipeline(fetcher=failed_fetcher, reconciler=reconciler).run(
                "acme-widgets.com", page=page, as_of=as_of
            )

        assert result.estimation_path == FULL_PATH
        assert result.confidence == Confidence.LOW
        assert result.branded_source == "heuristic"

    @pytest.mark.asyncio
    async def test_unexpected_reconciler_error_does_not_escape(
        self, failed_fetcher, scenario_page, mock_keyword_client, mock_serp_client, as_of
    ):
        mock_keyword_client.lookup_volumes.side_effect = RuntimeError("unexpected")
        reconciler = BrandedTrafficReconciler(mock_keyword_client, mock_serp_client)
        result = await TrafficEstimationPipeline(fetcher=failed_fetcher, reconciler=reconciler).run(
            "example.co.uk", page=scenario_page, as_of=as_of
        )

        assert result.confidence == Confidence.LOW
        assert result.branded_traffic <= result.monthly_organic

    @pytest.mark.asyncio
    async def test_unconfigured_reconciler_is_skipped(self, failed_fetcher, rich_html, as_of):
        page = ScrapedPage(domain="acme-widgets.com", html=rich_html)
        pipeline = TrafficEstimationPipeline(fetcher=failed_fetcher, reconciler=BrandedTrafficReconciler())
        result = await pipeline.run("acme-widgets.com", page=page, as_of=as_of)

        assert result.confidence == Confidence.MEDIUM
        assert result.branded_source == "heuristic"

    @pytest.mark.asyncio
    async def test_not_run_for_mega_sites(
        self, failed_fetcher, mock_keyword_client, mock_serp_client, as_of
    ):
        reconciler = BrandedTrafficReconciler(mock_keyword_client, mock_serp_client)
        pipeline = TrafficEstimationPipeline(fetcher=failed_fetcher, reconciler=reconciler)
        await pipeline.run("bbc.co.uk", as_of=as_of)

        mock_keyword_client.lookup_volumes.assert_not_called()


# =============================================================================
# CONSTRUCTION
# =============================================================================


class TestConstruction:
    """Settings wiring."""

    @pytest.mark.asyncio
    async def test_from_settings_without_keys(self):
        settings = Settings(KEYWORDS_EVERYWHERE_API_KEY=None, VALUESERP_API_KEY=None)
        pipeline = TrafficEstimationPipeline.from_settings(settings)
        assert pipeline.reconciler is None
        await pipeline.close()

    @pytest.mark.asyncio
    async def test_from_settings_with_keys(self):
        settings = Settings(
            KEYWORDS_EVERYWHERE_API_KEY="ke-key",
            VALUESERP_API_KEY="vs-key",
            BRANDED_LOOKUP_TIMEOUT=12.0,
        )
        async with TrafficEstimationPipeline.from_settings(settings) as pipeline:
            assert pipeline.reconciler.configured
            assert pipeline.reconciler.timeout == 12.0

    @pytest.mark.asyncio
    async def test_estimate_traffic_helper(self, scenario_page, as_of):
        settings = Settings(KEYWORDS_EVERYWHERE_API_KEY=None, VALUESERP_API_KEY=None)
        result = await estimate_traffic("example.co.uk", page=scenario_page, as_of=as_of, settings=settings)
        assert result.estimation_path == FULL_PATH
