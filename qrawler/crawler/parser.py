"""
Web page parser for extracting text fragments and outbound links.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from bs4.element import NavigableString, PreformattedString, Tag

from .fetcher import PageContent
from .url_normalizer import URLNormalizationError, URLParseError, parse_url, resolve


class ParseError(Exception):
    """Base exception for pages that cannot be parsed."""
    pass


class InvalidPageURLError(ParseError):
    """Raised when the page's own URL is malformed, so links have no base."""
    pass


class MalformedDocumentError(ParseError):
    """Raised when the HTML builder rejects a document."""
    pass


@dataclass
class ParsedPage:
    """Text and links extracted from one page."""
    url: str
    text: List[str] = field(default_factory=list)
    neighbors: List[str] = field(default_factory=list)


class ContentParser:
    """
    Parses HTML content into text fragments and absolute neighbor links.
    """

    def __init__(self, features: str = 'lxml'):
        self.features = features
        self.logger = logging.getLogger(__name__)

    def parse(self, page: PageContent) -> ParsedPage:
        """
        Parse a fetched page.

        Args:
            page: Fetched page content

        Returns:
            ParsedPage with text nodes and links in document order.
            Links may repeat; dedup is left to the frontier.

        Raises:
            InvalidPageURLError: if the page URL cannot be parsed
            MalformedDocumentError: if the document cannot be parsed
        """
        try:
            parse_url(page.url)
        except URLParseError as e:
            raise InvalidPageURLError(f"URL is malformed, page causing it is {page.url}") from e

        try:
            soup = BeautifulSoup(page.body, self.features)
        except ParserRejectedMarkup as e:
            raise MalformedDocumentError(f"Could not parse document {page.url}: {e}") from e

        parsed_page = ParsedPage(url=page.url)
        dropped = 0

        # descendants yields nodes depth-first in document order
        for node in soup.descendants:
            if isinstance(node, Tag):
                if node.name != 'a':
                    continue
                href = node.get('href')
                if href is None:
                    continue
                try:
                    parsed_page.neighbors.append(resolve(page.url, href))
                except URLNormalizationError as e:
                    dropped += 1
                    self.logger.debug(f"Dropping link on {page.url}: {e}")
            elif isinstance(node, NavigableString) and not isinstance(node, PreformattedString):
                # PreformattedString covers comments, doctypes, CDATA and declarations
                parsed_page.text.append(str(node))

        self.logger.debug(
            f"Parsed {page.url}: {len(parsed_page.text)} text nodes, "
            f"{len(parsed_page.neighbors)} links, {dropped} links dropped"
        )
        return parsed_page
