"""
URL Frontier: the waiting queue and seen set driving breadth-first crawling.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, Optional, Set


class FrontierEmptyError(Exception):
    """Raised when dequeuing from an empty frontier."""
    pass


@dataclass(frozen=True)
class CrawlRequest:
    """A single URL handed to the fetch stage."""
    url: str


@dataclass
class FrontierState:
    """
    Waiting URLs in FIFO order plus every URL ever enqueued.

    Every URL in ``waiting`` is also in ``seen``.
    """
    waiting: Deque[str] = field(default_factory=deque)
    seen: Set[str] = field(default_factory=set)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'WaitingQueue': list(self.waiting),
            'QueuedSet': {url: True for url in self.seen}
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'FrontierState':
        """Create FrontierState from dictionary."""
        waiting = data.get('WaitingQueue') or []
        queued = data.get('QueuedSet') or {}
        if not isinstance(waiting, list) or not isinstance(queued, dict):
            raise ValueError("WaitingQueue must be a list and QueuedSet a mapping")
        if not all(isinstance(url, str) for url in waiting):
            raise ValueError("WaitingQueue must contain only strings")

        seen = {url for url, present in queued.items() if present}
        missing = [url for url in waiting if url not in seen]
        if missing:
            raise ValueError(f"{len(missing)} waiting URLs are missing from QueuedSet, e.g. {missing[0]}")

        return cls(waiting=deque(waiting), seen=seen)


class URLFrontier:
    """
    Manages URLs to be crawled.

    Owned by a single controller; nothing else reads or mutates it.
    """

    def __init__(self, state: Optional[FrontierState] = None):
        self.state = state if state is not None else FrontierState()
        self.logger = logging.getLogger(__name__)

    def add_url(self, url: str) -> bool:
        """
        Add a URL to the tail of the waiting queue.
        Returns True if URL was added, False if it was seen before.
        """
        if url in self.state.seen:
            return False

        self.state.waiting.append(url)
        self.state.seen.add(url)
        self.logger.debug(f"Added URL to frontier: {url}")
        return True

    def add_urls(self, urls: Iterable[str]) -> int:
        """Add multiple URLs to the frontier. Returns count of added URLs."""
        added_count = 0
        for url in urls:
            if self.add_url(url):
                added_count += 1
        return added_count

    def peek(self) -> CrawlRequest:
        """Return the next request without removing it."""
        if not self.state.waiting:
            raise FrontierEmptyError("frontier has no waiting URLs")
        return CrawlRequest(url=self.state.waiting[0])

    def pop(self) -> CrawlRequest:
        """Remove and return the next request."""
        if not self.state.waiting:
            raise FrontierEmptyError("frontier has no waiting URLs")
        url = self.state.waiting.popleft()
        self.logger.debug(f"Retrieved URL from frontier: {url}")
        return CrawlRequest(url=url)

    def requeue(self, urls: Iterable[str]):
        """
        Put previously popped URLs back at the head of the waiting queue,
        keeping their order. They are already in the seen set.
        """
        urls = list(urls)
        missing = [url for url in urls if url not in self.state.seen]
        if missing:
            raise ValueError(f"Cannot requeue URLs that were never enqueued: {missing[0]}")
        self.state.waiting.extendleft(reversed(urls))

    def is_empty(self) -> bool:
        """Check if the waiting queue is empty."""
        return not self.state.waiting

    def is_seen(self, url: str) -> bool:
        return url in self.state.seen

    def __len__(self) -> int:
        return len(self.state.waiting)

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        return {
            'total_queued': len(self.state.waiting),
            'total_seen': len(self.state.seen)
        }
