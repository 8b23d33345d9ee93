"""
Crawler scheduler that wires the fetch, parse and control stages together.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from .controller import FrontierController
from .fetcher import FetchError, PageContent, WebFetcher
from .parser import ContentParser, InvalidPageURLError, MalformedDocumentError, ParsedPage
from .shutdown import ShutdownCoordinator
from .stats import CrawlStats
from .url_frontier import CrawlRequest, URLFrontier
from ..storage.context import CrawlContext
from ..utils.config import Config


class CrawlerScheduler:
    """
    Main scheduler that coordinates all crawler components.

    Stages run as asyncio tasks connected by queues: the bounded request
    queue throttles the controller to the fetch stage's real throughput.
    A worker that dies with an exception ends the crawl without a
    checkpoint; the controller finishing means a graceful stop.
    """

    def __init__(self, config: Config, context: CrawlContext,
                 fetcher: Optional[WebFetcher] = None,
                 parser: Optional[ContentParser] = None):
        self.config = config
        self.context = context
        self.logger = logging.getLogger(__name__)

        self.fetcher = fetcher or WebFetcher(request_timeout=config.crawler.request_timeout)
        self.parser = parser or ContentParser()
        self.frontier: Optional[URLFrontier] = None
        self.controller: Optional[FrontierController] = None

        self.stats = CrawlStats()
        self.workers: List[asyncio.Task] = []

    async def initialize(self, fresh: bool = False):
        """
        Restore the frontier from the checkpoint, or seed it.

        Args:
            fresh: Ignore any existing checkpoint
        """
        state = None if fresh else self.context.checkpoint_store.load()
        if state is None:
            seed_url = self.config.crawler.seed_url
            self.frontier = URLFrontier()
            self.frontier.add_url(seed_url)
            self.logger.info(f"Starting anew from source url: {seed_url}")
        else:
            self.frontier = URLFrontier(state)
            self.logger.info(f"Resuming crawl with {len(self.frontier)} URLs waiting")

        await self.fetcher.start()
        self.logger.info("Crawler scheduler initialized successfully")

    async def run(self, shutdown: ShutdownCoordinator):
        """
        Run the pipeline until shutdown is requested or a stage fails.

        Raises:
            Whatever fatal error stopped a worker or the controller
        """
        if self.frontier is None:
            raise RuntimeError("Scheduler not initialized")

        crawler_config = self.config.crawler
        requests: asyncio.Queue[CrawlRequest] = asyncio.Queue(maxsize=crawler_config.request_queue_size)
        contents: asyncio.Queue[PageContent] = asyncio.Queue()
        parsed: asyncio.Queue[ParsedPage] = asyncio.Queue()

        self.stats = CrawlStats()
        self.controller = FrontierController(
            self.frontier, requests, parsed,
            checkpoint_store=self.context.checkpoint_store,
            history=self.context.history,
            shutdown=shutdown,
            stats=self.stats,
            stats_interval=crawler_config.stats_interval
        )

        self.workers = [
            asyncio.create_task(self._fetch_worker(f"fetch-{i}", requests, contents))
            for i in range(crawler_config.fetch_workers)
        ] + [
            asyncio.create_task(self._parse_worker(f"parse-{i}", contents, parsed))
            for i in range(crawler_config.parse_workers)
        ]
        controller_task = asyncio.create_task(self.controller.run())

        self.logger.info(
            f"Started crawling with {crawler_config.fetch_workers} fetch and "
            f"{crawler_config.parse_workers} parse workers"
        )

        try:
            done, _ = await asyncio.wait(
                [controller_task, *self.workers],
                return_when=asyncio.FIRST_COMPLETED
            )

            if controller_task in done:
                controller_task.result()
                return

            controller_task.cancel()
            await asyncio.gather(controller_task, return_exceptions=True)

            failed = done.pop()
            error = failed.exception()
            if error is None:
                raise RuntimeError(f"Worker {failed.get_name()} stopped unexpectedly")
            self.logger.critical(f"Fatal error in pipeline, no checkpoint saved: {error}")
            raise error

        finally:
            if not controller_task.done():
                controller_task.cancel()
                await asyncio.gather(controller_task, return_exceptions=True)
            await self._cleanup_workers()
            self._log_final_stats()

    async def _fetch_worker(self, worker_id: str,
                            requests: 'asyncio.Queue[CrawlRequest]',
                            contents: 'asyncio.Queue[PageContent]'):
        """Fetch requested pages, store them and pass them to the parse stage."""
        self.logger.debug(f"Worker {worker_id} started")

        while True:
            request = await requests.get()
            try:
                page = await self.fetcher.fetch(request)
            except FetchError as e:
                self.stats.fetch_errors += 1
                self.logger.warning(str(e))
                continue

            # StorageError is fatal and deliberately not caught here
            self.context.content_store.store(page.url, page.body)
            self.stats.pages_fetched += 1
            self.stats.bytes_downloaded += len(page.body)

            await contents.put(page)

    async def _parse_worker(self, worker_id: str,
                            contents: 'asyncio.Queue[PageContent]',
                            parsed: 'asyncio.Queue[ParsedPage]'):
        """Parse fetched pages and pass the results to the controller."""
        self.logger.debug(f"Worker {worker_id} started")

        while True:
            page = await contents.get()
            try:
                parsed_page = await asyncio.to_thread(self.parser.parse, page)
            except InvalidPageURLError as e:
                self.stats.pages_dropped += 1
                self.logger.warning(str(e))
                continue
            except MalformedDocumentError as e:
                if self.config.crawler.halt_on_malformed_document:
                    self.logger.error(f"Halting on malformed document: {e}")
                    raise
                self.stats.pages_dropped += 1
                self.logger.warning(f"Skipping malformed document: {e}")
                continue

            await parsed.put(parsed_page)

    async def _cleanup_workers(self):
        """Cancel and cleanup worker tasks."""
        if self.workers:
            for worker in self.workers:
                if not worker.done():
                    worker.cancel()

            await asyncio.gather(*self.workers, return_exceptions=True)
            self.workers.clear()

    def _log_final_stats(self):
        """Log final crawl statistics."""
        self.logger.info("=== CRAWL STOPPED ===")
        self.logger.info(f"Requests dispatched: {self.stats.requests_dispatched}")
        self.logger.info(f"Pages fetched: {self.stats.pages_fetched}")
        self.logger.info(f"Pages parsed: {self.stats.pages_parsed}")
        self.logger.info(f"Fetch errors: {self.stats.fetch_errors}")
        self.logger.info(f"Pages dropped: {self.stats.pages_dropped}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")
        self.logger.info(f"Data downloaded: {self.stats.bytes_downloaded / 1024 / 1024:.1f} MB")
        if self.frontier is not None:
            self.logger.info(f"URLs remaining in queue: {len(self.frontier)}")
        self.logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")
        self.logger.info(f"Storage stats: {self.context.content_store.get_stats()}")

    async def close(self):
        """Close all connections and cleanup resources."""
        await self._cleanup_workers()
        await self.fetcher.close()
        self.logger.info("Crawler scheduler closed")

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        stats = self.stats.to_dict()
        if self.frontier is not None:
            stats.update(self.frontier.get_stats())
        return stats
