"""
Web crawler core components.
"""

from .url_frontier import URLFrontier, FrontierState, CrawlRequest, FrontierEmptyError
from .fetcher import WebFetcher, PageContent, FetchError
from .parser import ContentParser, ParsedPage, ParseError
from .url_normalizer import resolve, URLNormalizationError, URLParseError, URLSchemeRejectedError

__all__ = [
    'URLFrontier', 'FrontierState', 'CrawlRequest', 'FrontierEmptyError',
    'WebFetcher', 'PageContent', 'FetchError',
    'ContentParser', 'ParsedPage', 'ParseError',
    'resolve', 'URLNormalizationError', 'URLParseError', 'URLSchemeRejectedError'
]
