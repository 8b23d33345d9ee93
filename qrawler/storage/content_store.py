"""
File-based storage for raw page bodies, laid out as <root>/<host>/<path>.
"""

import logging
from pathlib import Path
from typing import Dict, Any
from urllib.parse import unquote, urlsplit


DEFAULT_FILENAME = '__default'


def _decode_segment(segment: str) -> str:
    """Percent-decode one path segment unless that would change the path's shape."""
    decoded = unquote(segment)
    if decoded in ('.', '..') or '/' in decoded or '\x00' in decoded:
        return segment
    return decoded


class StorageError(Exception):
    """Custom exception for content storage operations."""
    pass


class ContentStore:
    """Persists raw page bytes under one directory per host."""

    def __init__(self, data_directory: str):
        self.data_directory = Path(data_directory)
        self.logger = logging.getLogger(__name__)
        self.stats = {
            'total_stored': 0,
            'total_size_bytes': 0
        }

    def initialize(self):
        """Create the root directory."""
        try:
            self.data_directory.mkdir(parents=True, exist_ok=True)
            self.logger.info(f"Content storage initialized at {self.data_directory}")
        except OSError as e:
            raise StorageError(f"Failed to initialize content storage: {e}") from e

    def get_file_path(self, url: str) -> Path:
        """Map a URL to its file under the storage root."""
        try:
            parsed = urlsplit(url)
        except ValueError as e:
            raise StorageError(f"Failed to parse url to save to disk: {url}") from e

        host = parsed.hostname
        if not host:
            raise StorageError(f"URL has no host: {url}")

        path = parsed.path or '/'
        if path.endswith('/'):
            path += DEFAULT_FILENAME

        parts = [part for part in path.split('/') if part]
        if any(part in ('.', '..') for part in parts):
            raise StorageError(f"Refusing to store URL with relative path segments: {url}")

        return self.data_directory.joinpath(host, *(_decode_segment(part) for part in parts))

    def store(self, url: str, body: bytes):
        """
        Write a page body to disk, creating intermediate directories.

        Raises:
            StorageError: if the file cannot be written
        """
        file_path = self.get_file_path(url)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(body)
        except OSError as e:
            raise StorageError(f"Error storing content for {url} at {file_path}: {e}") from e

        self.stats['total_stored'] += 1
        self.stats['total_size_bytes'] += len(body)
        self.logger.debug(f"Stored content to {file_path}")

    def get_stats(self) -> Dict[str, Any]:
        """Get storage statistics."""
        return self.stats.copy()
