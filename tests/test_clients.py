"""
Tests for External Collaborators

Keywords Everywhere, ValueSERP and the page fetcher, driven through
httpx.MockTransport so no network is touched.
"""

import json

import httpx
import pytest

from src.collector import (
    ApiUsage,
    KeywordsEverywhereClient,
    KeywordsEverywhereError,
    PageFetcher,
    RetryConfig,
    ScrapedPage,
    ValueSerpClient,
    ValueSerpError,
)


NO_WAIT = RetryConfig(max_retries=1, initial_delay=0.0, max_delay=0.0)


# =============================================================================
# USAGE
# =============================================================================


class TestApiUsage:
    """Per-call usage accounting."""

    def test_addition(self):
        total = ApiUsage(keyword_credits=3) + ApiUsage(keyword_credits=2, serp_searches=1)
        assert total == ApiUsage(keyword_credits=5, serp_searches=1)

    def test_to_dict(self):
        assert ApiUsage(1, 2).to_dict() == {"keywordCredits": 1, "serpSearches": 2}


# =============================================================================
# KEYWORDS EVERYWHERE
# =============================================================================


class TestKeywordsEverywhere:
    """Search volume lookups."""

    @pytest.mark.asyncio
    async def test_lookup_volumes(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "data": [
                    {"keyword": "acme", "vol": 1000, "cpc": {"value": "1.50"}, "competition": 0.3},
                    {"keyword": "acme website", "vol": 90, "cpc": {"value": "0"}, "competition": 0},
                ],
                "credits_consumed": 2,
            })

        async with KeywordsEverywhereClient("test-key", transport=httpx.MockTransport(handler)) as client:
            lookup = await client.lookup_volumes(["acme", "acme website"], "gb")

        assert seen["path"] == "/v1/get_keyword_data"
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["country"] == "UK"
        assert seen["body"]["currency"] == "GBP"
        assert seen["body"]["kw"] == ["acme", "acme website"]
        assert lookup.total_volume == 1090
        assert lookup.volumes[0].cpc == 1.5
        assert lookup.usage == ApiUsage(keyword_credits=2)

    @pytest.mark.asyncio
    async def test_batches_of_100(self):
        batches = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            batches.append(len(body["kw"]))
            return httpx.Response(200, json={
                "data": [{"keyword": kw, "vol": 1} for kw in body["kw"]],
            })

        async with KeywordsEverywhereClient("k", transport=httpx.MockTransport(handler)) as client:
            lookup = await client.lookup_volumes([f"term {i}" for i in range(150)], "us")

        assert batches == [100, 50]
        assert lookup.total_volume == 150
        # Credits default to one per keyword when not reported
        assert lookup.usage.keyword_credits == 150

    @pytest.mark.asyncio
    async def test_empty_terms_skip_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with KeywordsEverywhereClient("k", transport=httpx.MockTransport(handler)) as client:
            lookup = await client.lookup_volumes([])
        assert lookup.total_volume == 0

    @pytest.mark.asyncio
    async def test_api_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"error": "Invalid API key"})

        async with KeywordsEverywhereClient("k", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(KeywordsEverywhereError, match="Invalid API key"):
                await client.lookup_volumes(["acme"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"data": [{"keyword": "acme", "vol": "n/a"}]},
        {"data": [{"keyword": "acme", "vol": 10, "competition": "high"}]},
        {"data": ["acme"]},
        {"data": [{"keyword": "acme", "vol": 10}], "credits_consumed": "lots"},
    ])
    async def test_malformed_data_raises_client_error(self, body):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        async with KeywordsEverywhereClient("k", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(KeywordsEverywhereError, match="malformed") as exc_info:
                await client.lookup_volumes(["acme"])

        assert exc_info.value.response == body

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(401, json={"message": "unauthorized"})

        async with KeywordsEverywhereClient(
            "k", retry_config=NO_WAIT, transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(KeywordsEverywhereError) as exc_info:
                await client.lookup_volumes(["acme"])

        assert exc_info.value.status_code == 401
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_error_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, text="unavailable")

        async with KeywordsEverywhereClient(
            "k", retry_config=NO_WAIT, transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(KeywordsEverywhereError):
                await client.lookup_volumes(["acme"])

        assert len(calls) == 2

    def test_missing_key(self):
        with pytest.raises(KeywordsEverywhereError):
            KeywordsEverywhereClient("")

    @pytest.mark.asyncio
    async def test_closed_client_raises(self):
        client = KeywordsEverywhereClient("k", transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        await client.close()
        with pytest.raises(KeywordsEverywhereError, match="closed"):
            await client.lookup_volumes(["acme"])


# =============================================================================
# VALUESERP
# =============================================================================


class TestValueSerp:
    """Organic ranking lookups."""

    @pytest.mark.asyncio
    async def test_check_ranking(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={
                "request_info": {"success": True, "credits_used": 1},
                "organic_results": [
                    {"position": 2, "domain": "www.other.com", "link": "https://www.other.com/"},
                    {"position": 1, "link": "https://www.example.co.uk/about", "title": "Example"},
                ],
            })

        async with ValueSerpClient("vs-key", transport=httpx.MockTransport(handler)) as client:
            lookup = await client.check_ranking("example", "gb", top_n=10)

        assert seen["path"] == "/search"
        assert seen["params"]["q"] == "example"
        assert seen["params"]["location"] == "United Kingdom"
        assert seen["params"]["google_domain"] == "google.co.uk"
        assert seen["params"]["num"] == "10"
        assert seen["params"]["api_key"] == "vs-key"

        assert [r.domain for r in lookup.results] == ["example.co.uk", "other.com"]
        assert lookup.results[0].title == "Example"
        assert lookup.usage == ApiUsage(serp_searches=1)

    @pytest.mark.asyncio
    async def test_unsuccessful_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "request_info": {"success": False, "message": "Out of credits"},
            })

        async with ValueSerpClient("k", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ValueSerpError, match="Out of credits"):
                await client.check_ranking("example")

    @pytest.mark.asyncio
    async def test_results_truncated_to_top_n(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "request_info": {"success": True},
                "organic_results": [
                    {"position": i, "link": f"https://site{i}.com/"} for i in range(1, 16)
                ],
            })

        async with ValueSerpClient("k", transport=httpx.MockTransport(handler)) as client:
            lookup = await client.check_ranking("example", "us", top_n=10)

        assert len(lookup.results) == 10
        assert lookup.results[-1].position == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"request_info": {"success": True}, "organic_results": [{"position": "first", "link": "https://a.com/"}]},
        {"request_info": {"success": True}, "organic_results": ["https://a.com/"]},
        {"request_info": {"success": True, "credits_used": "one"}, "organic_results": []},
    ])
    async def test_malformed_results_raise_client_error(self, body):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        async with ValueSerpClient("k", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ValueSerpError, match="malformed"):
                await client.check_ranking("example")

    def test_missing_key(self):
        with pytest.raises(ValueSerpError):
            ValueSerpClient(None)


# =============================================================================
# PAGE FETCHER
# =============================================================================


class TestPageFetcher:
    """Homepage fetching never raises."""

    @pytest.mark.asyncio
    async def test_successful_fetch(self):
        html = "<html><body>" + "<p>content</p>" * 20 + "</body></html>"

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url == "https://example.co.uk"
            return httpx.Response(200, text=html, headers={"Server": "nginx"})

        page = await PageFetcher(transport=httpx.MockTransport(handler)).fetch("www.example.co.uk")

        assert not page.failed
        assert page.html == html
        assert page.headers["server"] == "nginx"
        assert page.domain == "example.co.uk"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="not found")

        page = await PageFetcher(transport=httpx.MockTransport(handler)).fetch("example.co.uk")

        assert page.failed
        assert "404" in page.failure_reason

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        page = await PageFetcher(transport=httpx.MockTransport(handler)).fetch("example.co.uk")

        assert page.failed
        assert page.html == ""
        assert "Connection refused" in page.failure_reason

    def test_thin_page_counts_as_failed(self):
        page = ScrapedPage(domain="example.co.uk", html="<html></html>")
        assert page.failed
        assert page.failure_reason.startswith("content too thin")
        assert page.url == "https://example.co.uk"

    def test_min_length_configurable(self):
        page = ScrapedPage(domain="example.co.uk", html="<p>ok</p>", min_html_length=5)
        assert not page.failed
        assert page.failure_reason is None
