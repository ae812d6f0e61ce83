"""
Page classification by URL shape.
"""
import re
from enum import Enum
from urllib.parse import urlsplit

# Path segments that introduce a single catalog item (/boardgame/13/catan, /thing/13)
ITEM_TYPE_SEGMENTS = ('boardgame', 'boardgameexpansion', 'boardgameaccessory', 'thing', 'item')

_SEGMENTS = '|'.join(ITEM_TYPE_SEGMENTS)
# /<type>/<id or slug>, optionally followed by one more slug segment
ITEM_PATH_PATTERN = re.compile(r'^/(?:%s)/[\w.-]+(?:/[\w.-]+)?/?$' % _SEGMENTS, re.IGNORECASE)

# Anchors that point at item pages, for use inside listing rows
ITEM_LINK_SELECTOR = ', '.join(f'a[href*="/{segment}/"]' for segment in ITEM_TYPE_SEGMENTS)


class PageKind(Enum):
    LISTING = 'listing'
    ITEM_DETAIL = 'item_detail'


def classify(url: str) -> PageKind:
    """
    Decide whether a URL is an item detail page or a listing page.

    Only the path is inspected. Anything that does not look like an item
    path, including URLs that fail to parse, is treated as a listing.
    """
    try:
        path = urlsplit(url).path
    except ValueError:
        return PageKind.LISTING
    if ITEM_PATH_PATTERN.match(path):
        return PageKind.ITEM_DETAIL
    return PageKind.LISTING
