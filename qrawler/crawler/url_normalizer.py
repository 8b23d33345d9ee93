"""
URL normalization: resolving links found on a page into canonical absolute URLs.
"""

import re
from urllib.parse import SplitResult, quote, urljoin, urlsplit, urlunsplit


REJECTED_SCHEMES = ('javascript:',)

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')
_BAD_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')

# Existing escapes (%) and reserved characters are left as they are
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + '?'


class URLNormalizationError(Exception):
    """Base exception for links that cannot be normalized."""
    pass


class URLParseError(URLNormalizationError):
    """Raised for syntactically invalid URLs."""
    pass


class URLSchemeRejectedError(URLNormalizationError):
    """Raised for links using a scheme the crawler never follows."""
    pass


def parse_url(url: str) -> SplitResult:
    """
    Parse and validate a URL string.

    Rejects control characters, malformed percent escapes outside the query,
    unbalanced IPv6 brackets and invalid ports.
    """
    if _CONTROL_CHARS.search(url):
        raise URLParseError(f"invalid control character in URL: {url!r}")

    try:
        parts = urlsplit(url)
        parts.port  # validates the port component
    except ValueError as e:
        raise URLParseError(f"cannot parse URL {url!r}: {e}") from e

    for component in (parts.netloc, parts.path, parts.fragment):
        if _BAD_ESCAPE.search(component):
            raise URLParseError(f"invalid percent escape in URL: {url!r}")

    return parts


def remove_dot_segments(path: str) -> str:
    """Remove ``.`` and ``..`` segments from a URL path (RFC 3986 section 5.2.4)."""
    if '.' not in path:
        return path

    output = []
    segments = path.split('/')
    for segment in segments:
        if segment == '.':
            continue
        if segment == '..':
            # Never climb above the root
            if len(output) > 1 or (output and output[0] != ''):
                output.pop()
            continue
        output.append(segment)

    # A trailing dot segment still names a directory
    if segments[-1] in ('.', '..'):
        output.append('')

    result = '/'.join(output)
    if path.startswith('/') and not result.startswith('/'):
        result = '/' + result
    return result


def resolve(base: str, relative: str) -> str:
    """
    Resolve a link against the URL of the page it was found on.

    Dot segments are removed and characters outside the URL alphabet are
    percent-encoded, so one page always maps to one string.

    Args:
        base: Absolute URL of the page
        relative: Raw href value

    Returns:
        Absolute URL with the fragment removed

    Raises:
        URLSchemeRejectedError: for javascript: links
        URLParseError: if either URL is malformed
    """
    if relative.lower().startswith(REJECTED_SCHEMES):
        raise URLSchemeRejectedError(f"can't clean URL beginning with javascript: {relative!r}")

    parse_url(relative)
    absolute = urljoin(base, relative)

    # Re-validate: joining can surface a bad authority from either side
    parts = parse_url(absolute)
    path = quote(remove_dot_segments(parts.path), safe=_PATH_SAFE)
    query = quote(parts.query, safe=_QUERY_SAFE)
    return urlunsplit((parts.scheme, parts.netloc, path, query, ''))
