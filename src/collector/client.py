"""
External API Client Base

Async HTTP client shared by the keyword-volume and SERP services, with:
- Automatic retry with exponential backoff
- Graceful error handling
- Request/response logging
- Per-call usage accounting (no shared counters)
"""

import asyncio
import httpx
import logging
from typing import Any, Dict, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 2
    initial_delay: float = 1.0
    max_delay: float = 10.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple = (429, 500, 502, 503, 504)


@dataclass(frozen=True)
class ApiUsage:
    """
    Usage consumed by one or more external calls.

    Every client call returns its own usage; callers add them up.
    """
    keyword_credits: int = 0
    serp_searches: int = 0

    def __add__(self, other: "ApiUsage") -> "ApiUsage":
        return ApiUsage(
            keyword_credits=self.keyword_credits + other.keyword_credits,
            serp_searches=self.serp_searches + other.serp_searches,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "keywordCredits": self.keyword_credits,
            "serpSearches": self.serp_searches,
        }


class APIClientError(Exception):
    """Base exception for external API errors."""
    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class BaseAPIClient:
    """
    Async client base for JSON APIs.

    Subclasses set BASE_URL and ERROR_CLASS and build their own auth headers.
    """

    BASE_URL = ""
    ERROR_CLASS = APIClientError
    SERVICE_NAME = "API"

    def __init__(
        self,
        headers: Optional[Dict[str, str]] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize client.

        Args:
            headers: Default request headers
            retry_config: Retry configuration (optional)
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests)
        """
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers=headers or {},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

        self._closed = False

    async def request(
        self,
        method: str,
        url: str,
        retry: bool = True,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """
        Make a request and return the decoded JSON body.

        Raises:
            ERROR_CLASS: On HTTP, timeout or API-level error
        """
        if self._closed:
            raise self.ERROR_CLASS(f"{self.SERVICE_NAME} client is closed")

        if retry:
            return await self._request_with_retry(method, url, **kwargs)
        return await self._make_request(method, url, **kwargs)

    async def _make_request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Make a single HTTP request."""
        logger.debug(f"{method} {url}")

        response = await self._client.request(method, url, **kwargs)

        if response.status_code != 200:
            raise self.ERROR_CLASS(
                f"{self.SERVICE_NAME} request failed: {response.status_code}",
                status_code=response.status_code,
                response=self._safe_json(response),
            )

        try:
            return response.json()
        except ValueError as e:
            raise self.ERROR_CLASS(f"{self.SERVICE_NAME} returned invalid JSON: {e}")

    @staticmethod
    def _safe_json(response: httpx.Response) -> Optional[dict]:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text[:500]}

    async def _request_with_retry(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Make request with automatic retry on failure."""
        last_exception = None
        delay = self.retry_config.initial_delay

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                return await self._make_request(method, url, **kwargs)

            except APIClientError as e:
                last_exception = e

                # Don't retry client errors (4xx except 429)
                if e.status_code and 400 <= e.status_code < 500 and e.status_code != 429:
                    raise
                if e.status_code is None:
                    raise

            except httpx.TimeoutException as e:
                last_exception = self.ERROR_CLASS(f"{self.SERVICE_NAME} request timed out: {e}")

            except httpx.HTTPError as e:
                last_exception = self.ERROR_CLASS(f"{self.SERVICE_NAME} HTTP error: {e}")

            if attempt < self.retry_config.max_retries:
                logger.warning(
                    f"{self.SERVICE_NAME} request failed (attempt {attempt + 1}/"
                    f"{self.retry_config.max_retries + 1}): {last_exception}. "
                    f"Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)
                delay = min(
                    delay * self.retry_config.exponential_base,
                    self.retry_config.max_delay
                )

        raise last_exception

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
