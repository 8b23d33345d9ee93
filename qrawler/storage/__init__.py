"""
Storage layer: page content, crawl history and frontier checkpoints.
"""

from .content_store import ContentStore, StorageError
from .checkpoint import CheckpointStore, CheckpointError
from .history import CrawlHistory
from .context import CrawlContext

__all__ = [
    'ContentStore', 'StorageError',
    'CheckpointStore', 'CheckpointError',
    'CrawlHistory', 'CrawlContext'
]
