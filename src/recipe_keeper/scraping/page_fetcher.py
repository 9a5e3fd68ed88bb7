"""Plain HTTP page fetcher for recipe websites."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import aiohttp

from ..domain.errors import PageConnectionError, PageFetchTimeoutError, PageHTTPError
from ..observability.logger import get_logger

logger = get_logger(__name__)

_BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "pl-PL,pl;q=0.9,en;q=0.8",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


@dataclass(frozen=True)
class FetchedPage:
    url: str
    html: str
    status: int


class PageFetcher:
    """Scraping layer.

    Responsibilities:
    - Fetch raw HTML with a browser-like request signature
    - Enforce a hard timeout
    - Classify failures (timeout, connection, HTTP status, empty body)
    - No parsing, no storage
    """

    def __init__(self, *, timeout_seconds: float, user_agent: str):
        self._timeout_seconds = float(timeout_seconds)
        self._headers = {"User-Agent": user_agent, **_BROWSER_HEADERS}

    async def fetch(self, url: str) -> FetchedPage:
        timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
        try:
            # Fresh session per request: no cookies survive between fetches.
            async with aiohttp.ClientSession(timeout=timeout, headers=self._headers) as session:
                async with session.get(url) as resp:
                    if not 200 <= resp.status < 300:
                        raise PageHTTPError(
                            f"The recipe page responded with HTTP {resp.status}",
                            http_status=resp.status,
                            detail=url,
                        )
                    html = await resp.text(errors="replace")
                    status = resp.status
        except asyncio.TimeoutError as e:
            raise PageFetchTimeoutError(
                "Request timeout - the webpage took too long to respond", detail=url
            ) from e
        except aiohttp.ClientConnectorError as e:
            raise PageConnectionError("Network error - unable to reach the webpage", detail=str(e)) from e
        except aiohttp.ClientError as e:
            raise PageHTTPError(f"Failed to fetch webpage content: {e}", http_status=None, detail=url) from e

        if not html.strip():
            raise PageHTTPError("Received empty content from the webpage", http_status=status, detail=url)

        logger.info("page_fetched", url=url, status=status, html_length=len(html))
        return FetchedPage(url=url, html=html, status=status)
