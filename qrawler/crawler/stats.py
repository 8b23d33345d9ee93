"""
Counters shared by the pipeline stages.
"""

import time
from dataclasses import asdict, dataclass, field


@dataclass
class CrawlStats:
    """Statistics for crawl operations."""
    start_time: float = field(default_factory=time.time)
    requests_dispatched: int = 0
    pages_fetched: int = 0
    fetch_errors: int = 0
    bytes_downloaded: int = 0
    pages_parsed: int = 0
    pages_dropped: int = 0
    links_discovered: int = 0
    urls_enqueued: int = 0

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    @property
    def pages_per_minute(self) -> float:
        elapsed_minutes = self.elapsed_time / 60
        return self.pages_parsed / elapsed_minutes if elapsed_minutes > 0 else 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data['elapsed_time'] = self.elapsed_time
        data['pages_per_minute'] = self.pages_per_minute
        return data
