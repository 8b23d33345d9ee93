"""
Web page fetcher: plain HTTP GET of a crawl request, raw bytes out.
"""

import asyncio
import aiohttp
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional
from aiohttp import ClientSession, ClientTimeout, ClientError

from .url_frontier import CrawlRequest


class FetchError(Exception):
    """Raised when a page cannot be fetched or its body read."""
    pass


@dataclass
class PageContent:
    """Raw body of a fetched page."""
    url: str
    body: bytes


class WebFetcher:
    """
    Fetches web pages with a shared aiohttp session.

    No custom headers are sent and redirects follow the client defaults.
    """

    def __init__(self, request_timeout: Optional[float] = None):
        self.request_timeout = request_timeout
        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            # total=None disables aiohttp's default 5 minute limit
            timeout = ClientTimeout(total=self.request_timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, request: CrawlRequest) -> PageContent:
        """
        Fetch a single URL.

        Args:
            request: The crawl request to fetch

        Returns:
            PageContent holding the raw response body

        Raises:
            FetchError: on transport failure or if the body cannot be read
        """
        if self.session is None:
            raise RuntimeError("WebFetcher session not started")

        start_time = time.time()
        self.stats['total_requests'] += 1
        self.logger.info(f"Sending GET request to {request.url}")

        try:
            async with self.session.get(request.url) as response:
                try:
                    body = await response.read()
                except (ClientError, asyncio.TimeoutError) as e:
                    self.stats['failed_requests'] += 1
                    raise FetchError(f"Requested URL {request.url} failed to read body: {e!r}") from e

                self.stats['successful_requests'] += 1
                self.stats['total_bytes_downloaded'] += len(body)
                self.logger.debug(
                    f"Fetched {request.url}: {response.status} "
                    f"({len(body)} bytes in {time.time() - start_time:.2f}s)"
                )
                return PageContent(url=request.url, body=body)

        except FetchError:
            raise
        except (ClientError, asyncio.TimeoutError, ValueError) as e:
            # ValueError covers URLs aiohttp refuses to build a request for
            self.stats['failed_requests'] += 1
            raise FetchError(f"Requested URL {request.url} produced an error: {e!r}") from e

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
