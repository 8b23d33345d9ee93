"""
Append-only crawl history: one JSON line per parsed page.
"""

import json
import logging
from pathlib import Path
from typing import IO, Optional

from ..crawler.parser import ParsedPage


class CrawlHistory:
    """Append-only log of parsed pages, kept open for the whole run."""

    def __init__(self, path: str):
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)
        self._file: Optional[IO[str]] = None
        self.records_written = 0

    def open(self):
        """Open the history file for appending."""
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, 'a', encoding='utf-8')
            self.logger.info(f"Crawl history opened at {self.path}")

    def append(self, page: ParsedPage):
        """Write one page record and flush it."""
        if self._file is None:
            raise RuntimeError("Crawl history is not open")

        record = {
            'url': page.url,
            'text': page.text,
            'neighbors': page.neighbors
        }
        self._file.write(json.dumps(record, ensure_ascii=False) + '\n')
        self._file.flush()
        self.records_written += 1

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None
            self.logger.info(f"Crawl history closed ({self.records_written} records written)")

    @property
    def closed(self) -> bool:
        return self._file is None
