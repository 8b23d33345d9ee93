"""
qrawler

A resumable single-process web crawler.
"""

__version__ = "1.0.0"
__description__ = "A resumable breadth-first web crawler with checkpointed frontier state"
