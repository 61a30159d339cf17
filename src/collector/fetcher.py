"""
Page Fetcher

Fetches a site's homepage for signal extraction. Failures never raise: they
are recorded on the returned ScrapedPage so the estimation pipeline can demote
to its fallback paths.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from src.utils.domains import normalize_domain

logger = logging.getLogger(__name__)


# Pages shorter than this are treated as failed scrapes
MIN_HTML_LENGTH = 100

USER_AGENT = "Mozilla/5.0 (compatible; SiteAuditTraffic/1.0)"


@dataclass
class ScrapedPage:
    """A fetched page as consumed by the estimation engine."""
    domain: str
    html: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    url: str = ""
    error: Optional[str] = None
    min_html_length: int = MIN_HTML_LENGTH

    def __post_init__(self):
        self.headers = {k.lower(): v for k, v in (self.headers or {}).items()}
        if not self.url and self.domain:
            self.url = f"https://{self.domain}"

    @property
    def failed(self) -> bool:
        """Fetch failed or returned too little content to analyze."""
        return self.error is not None or len(self.html or "") < self.min_html_length

    @property
    def failure_reason(self) -> Optional[str]:
        if self.error is not None:
            return self.error
        if self.failed:
            return f"content too thin ({len(self.html or '')} chars)"
        return None


class PageFetcher:
    """
    Fetch https://<domain> with a bounded timeout.

    Usage:
        fetcher = PageFetcher(timeout=10.0)
        page = await fetcher.fetch("example.co.uk")
        if page.failed:
            ...
    """

    def __init__(
        self,
        timeout: float = 10.0,
        min_html_length: int = MIN_HTML_LENGTH,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.min_html_length = min_html_length
        self._transport = transport

    async def fetch(self, domain: str) -> ScrapedPage:
        domain = normalize_domain(domain)
        url = f"https://{domain}"

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
                transport=self._transport,
            ) as client:
                response = await client.get(url)

            if response.status_code != 200:
                raise httpx.HTTPStatusError(
                    f"HTTP {response.status_code}",
                    request=response.request,
                    response=response,
                )

            page = ScrapedPage(
                domain=domain,
                html=response.text,
                headers=dict(response.headers),
                url=str(response.url),
                min_html_length=self.min_html_length,
            )
            logger.info(f"Fetched {url}: {len(page.html)} chars")
            return page

        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch {url}: {e}")
            return ScrapedPage(
                domain=domain,
                url=url,
                error=str(e) or e.__class__.__name__,
                min_html_length=self.min_html_length,
            )
