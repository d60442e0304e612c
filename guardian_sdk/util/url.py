"""
Base URL helpers for the Guardian API.

Guardian tenants served from a first-party host already point at the API
root. Every other origin (custom domains, on-premises appliances) serves the
API under an extra path segment that has to be appended.
"""

import re
from typing import Iterable, Pattern, Sequence, Union
from urllib.parse import ParseResult, urlparse, urlunparse


DEFAULT_PATH_SEGMENT = "appliance-mfa"

DEFAULT_FIRST_PARTY_HOST_PATTERNS = (
    r"^.*\.guardian\.auth0\.com$",
    r"^.*guardian\.[^.]*\.auth0\.com$",
)


def validate_url(url: str) -> bool:
    """Validate absolute http(s) URL format."""
    if not url or not isinstance(url, str):
        return False

    try:
        result = urlparse(url)
    except ValueError:
        return False
    return result.scheme in ('http', 'https') and bool(result.netloc)


def compile_host_patterns(patterns: Iterable[Union[str, Pattern]]) -> Sequence[Pattern]:
    """Compile host patterns, matching is case-insensitive."""
    return tuple(
        p if isinstance(p, re.Pattern) else re.compile(p, re.IGNORECASE)
        for p in patterns
    )


def path_segments(path: str):
    """Non-empty segments of a URL path."""
    return [segment for segment in path.split('/') if segment]


def is_normalized(url: ParseResult,
                  path_segment: str = DEFAULT_PATH_SEGMENT,
                  host_patterns: Iterable[Union[str, Pattern]] = DEFAULT_FIRST_PARTY_HOST_PATTERNS) -> bool:
    """
    Tell whether a parsed base URL already points at the Guardian API root.

    True when the host is first party, or the path already ends with or
    contains ``path_segment`` as a full component. Trailing slashes are
    ignored.
    """
    host = url.hostname or ""
    if any(pattern.match(host) for pattern in compile_host_patterns(host_patterns)):
        return True

    return path_segment in path_segments(url.path)


def normalize_base_url(url: str,
                       path_segment: str = DEFAULT_PATH_SEGMENT,
                       host_patterns: Iterable[Union[str, Pattern]] = DEFAULT_FIRST_PARTY_HOST_PATTERNS) -> str:
    """
    Return the Guardian API root for ``url``, always ending with ``/``.

    Idempotent: normalizing a normalized URL returns it unchanged.
    """
    if not validate_url(url):
        raise ValueError(f"Invalid Guardian URL: {url!r}")

    parsed = urlparse(url)
    segments = path_segments(parsed.path)
    if not is_normalized(parsed, path_segment, host_patterns):
        segments.append(path_segment)

    path = '/' + '/'.join(segments)
    if not path.endswith('/'):
        path += '/'
    return urlunparse((parsed.scheme, parsed.netloc, path, '', '', ''))


def url_from_domain(domain: str) -> str:
    """Build an https URL from a bare domain name."""
    domain = domain.strip().strip('/')
    if not domain:
        raise ValueError("Domain must not be empty")
    return f"https://{domain}/"


def join_path(base_url: str, *segments: str) -> str:
    """Append path segments to a base URL ending with ``/``."""
    base = base_url if base_url.endswith('/') else base_url + '/'
    return base + '/'.join(segment.strip('/') for segment in segments)
