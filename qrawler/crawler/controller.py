"""
Frontier controller: the single owner of the crawl frontier.

The controller reacts to three events:

* a parsed page arriving: unseen neighbors are appended to the frontier and
  the page is recorded in the crawl history;
* the request queue having room while the frontier is non-empty: the head of
  the frontier is dispatched to the fetch stage;
* a shutdown request: requests still waiting in the request queue are
  returned to the head of the frontier, which is checkpointed, and the
  loop ends.

When the frontier is empty no dispatch is attempted and the controller only
waits for parsed pages or shutdown.
"""

import asyncio
import logging
import time
from typing import Optional

from .parser import ParsedPage
from .shutdown import ShutdownCoordinator
from .stats import CrawlStats
from .url_frontier import CrawlRequest, URLFrontier
from ..storage.checkpoint import CheckpointStore
from ..storage.history import CrawlHistory


RUNNING = 'running'
TERMINATED = 'terminated'


class FrontierController:
    """Merges parsed pages into the frontier and dispatches crawl requests."""

    def __init__(self, frontier: URLFrontier,
                 requests: 'asyncio.Queue[CrawlRequest]',
                 parsed: 'asyncio.Queue[ParsedPage]',
                 checkpoint_store: CheckpointStore,
                 history: CrawlHistory,
                 shutdown: ShutdownCoordinator,
                 stats: Optional[CrawlStats] = None,
                 stats_interval: float = 30.0):
        self.frontier = frontier
        self.requests = requests
        self.parsed = parsed
        self.checkpoint_store = checkpoint_store
        self.history = history
        self.shutdown = shutdown
        self.stats = stats if stats is not None else CrawlStats()
        self.stats_interval = stats_interval
        self.state = RUNNING
        self.logger = logging.getLogger(__name__)
        self._last_report = time.monotonic()

    def merge(self, page: ParsedPage) -> int:
        """
        Enqueue the unseen neighbors of a parsed page and record the page.

        Returns the number of newly enqueued URLs.
        """
        added = self.frontier.add_urls(page.neighbors)
        self.stats.pages_parsed += 1
        self.stats.links_discovered += len(page.neighbors)
        self.stats.urls_enqueued += added
        self.history.append(page)

        self.logger.debug(f"Queued {added} new URLs from {page.url}")
        self._maybe_report()
        return added

    def checkpoint(self):
        """Save the frontier and stop accepting events."""
        self.checkpoint_store.save(self.frontier.state)
        self.state = TERMINATED
        self.logger.info("States successfully saved")

    async def run(self):
        """Run the control loop until shutdown is requested."""
        if self.state != RUNNING:
            raise RuntimeError("Controller has already terminated")

        shutdown_task = asyncio.create_task(self.shutdown.wait())
        get_task: Optional[asyncio.Task] = None
        put_task: Optional[asyncio.Task] = None

        try:
            while True:
                if get_task is None:
                    get_task = asyncio.create_task(self.parsed.get())

                # The head is only removed once the put has completed, so a
                # pending dispatch never loses or duplicates a URL.
                if put_task is None and not self.frontier.is_empty():
                    put_task = asyncio.create_task(self.requests.put(self.frontier.peek()))

                waiters = {get_task, shutdown_task}
                if put_task is not None:
                    waiters.add(put_task)

                done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)

                if put_task in done:
                    put_task.result()
                    request = self.frontier.pop()
                    self.stats.requests_dispatched += 1
                    self.logger.debug(f"Dispatched {request.url}")
                    put_task = None

                if get_task in done:
                    self.merge(get_task.result())
                    get_task = None

                if shutdown_task in done:
                    if put_task is not None:
                        await self._abort_dispatch(put_task)
                        put_task = None
                    self.reclaim_requests()
                    self.checkpoint()
                    break

        finally:
            pending = [t for t in (shutdown_task, get_task, put_task) if t is not None and not t.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    async def _abort_dispatch(self, put_task: asyncio.Task):
        """Cancel a pending put, committing the head if it got through anyway."""
        put_task.cancel()
        await asyncio.gather(put_task, return_exceptions=True)
        if not put_task.cancelled():
            self.frontier.pop()
            self.stats.requests_dispatched += 1

    def reclaim_requests(self) -> int:
        """
        Move requests no fetch worker has taken yet back to the head of the frontier.

        Returns the number of reclaimed URLs.
        """
        reclaimed = []
        while True:
            try:
                reclaimed.append(self.requests.get_nowait().url)
            except asyncio.QueueEmpty:
                break

        self.frontier.requeue(reclaimed)
        if reclaimed:
            self.logger.info(f"Returned {len(reclaimed)} undispatched requests to the frontier")
        return len(reclaimed)

    def _maybe_report(self):
        now = time.monotonic()
        if now - self._last_report < self.stats_interval:
            return
        self._last_report = now
        self.log_progress()

    def log_progress(self):
        """Log current crawl statistics."""
        frontier_stats = self.frontier.get_stats()
        self.logger.info(
            f"Crawl Progress: "
            f"Dispatched={self.stats.requests_dispatched}, "
            f"Fetched={self.stats.pages_fetched}, "
            f"Parsed={self.stats.pages_parsed}, "
            f"Queued={frontier_stats['total_queued']}, "
            f"Seen={frontier_stats['total_seen']}, "
            f"Errors={self.stats.fetch_errors}, "
            f"Dropped={self.stats.pages_dropped}, "
            f"Rate={self.stats.pages_per_minute:.1f} pages/min"
        )
