"""
Link follow policy and URL helpers shared by the extractors and the spider.
"""
from enum import Enum
from typing import Optional
from urllib.parse import urljoin, urlsplit


class FollowMode(Enum):
    UNRESTRICTED = 'unrestricted'
    SAME_ORIGIN_ONLY = 'same_origin_only'


def host_of(url: str) -> str:
    """Return the lowercased host[:port] of a URL, or "" if it cannot be parsed."""
    try:
        parsed = urlsplit(url)
        parsed.port  # Raises ValueError on a malformed port
    except ValueError:
        return ''
    return parsed.netloc.lower()


def resolve_url(base_url: str, href: str) -> Optional[str]:
    """
    Resolve href against base_url.

    Returns None when the result is malformed or is not an http(s) URL
    with a host.
    """
    try:
        absolute = urljoin(base_url, href.strip())
        parsed = urlsplit(absolute)
        parsed.port
    except ValueError:
        return None
    if parsed.scheme not in ('http', 'https') or not parsed.hostname:
        return None
    return absolute


def should_follow(candidate_url: str, origin_host: str, mode: FollowMode) -> bool:
    """
    Decide whether a discovered link should be visited.

    origin_host is the host of the seed URL the current page was reached
    from; it is fixed when the crawl starts and carried along, not
    recomputed per hop.
    """
    if mode is FollowMode.UNRESTRICTED:
        return True
    candidate_host = host_of(candidate_url)
    if not candidate_host:
        return False
    return candidate_host == origin_host.lower()
