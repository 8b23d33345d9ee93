"""
Process-wide storage handles with an explicit open/close lifecycle.
"""

import logging
from dataclasses import dataclass

from .checkpoint import CheckpointStore
from .content_store import ContentStore
from .history import CrawlHistory
from ..utils.config import StorageConfig


@dataclass
class CrawlContext:
    """Handles opened once at startup and closed at shutdown."""
    content_store: ContentStore
    checkpoint_store: CheckpointStore
    history: CrawlHistory

    @classmethod
    def open(cls, config: StorageConfig) -> 'CrawlContext':
        """Create the storage components and open the history log."""
        content_store = ContentStore(config.content_directory)
        content_store.initialize()

        history = CrawlHistory(config.history_file)
        history.open()

        logging.getLogger(__name__).debug("Crawl context opened")
        return cls(
            content_store=content_store,
            checkpoint_store=CheckpointStore(config.checkpoint_file),
            history=history
        )

    def close(self):
        self.history.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
