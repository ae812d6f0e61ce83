"""
Pure extraction functions for BGG pages.

These take a Scrapy response or parsel Selector and never perform I/O.
Each field is looked up through an ordered chain of CSS selectors: the first
selector whose first match has non-empty text wins, otherwise the field is "".
Selectors using ::attr()/::text yield the selected value; element selectors
yield the element's full text.
"""
import re
from datetime import datetime, timezone
from typing import List

from bgg_trends.classifier import ITEM_LINK_SELECTOR, ITEM_TYPE_SEGMENTS
from bgg_trends.items import ItemRecord, ListingRow
from bgg_trends.links import resolve_url

DESCRIPTION_MAX_LENGTH = 2000

# /boardgame/13, /boardgame/13/catan or /boardgame/catan/13
ITEM_ID_PATTERN = re.compile(
    r'/(?:%s)/(?:(\d+)\b|.*/(\d+)\b)' % '|'.join(ITEM_TYPE_SEGMENTS), re.IGNORECASE
)

ID_URL_CHAIN = (
    'link[rel="canonical"]::attr(href)',
    'meta[property="og:url"]::attr(content)',
    'meta[name="og:url"]::attr(content)',
)
NAME_CHAIN = (
    '#mainbody h1',
    '.game-title',
    '.header-title',
    'meta[property="og:title"]::attr(content)',
)
YEAR_CHAIN = ('.gameplay .year', '.game-title .year')
AVERAGE_RATING_CHAIN = (
    '.gameplay .rating .rating-value',
    '.game_rating .value',
    '[itemprop="ratingValue"]::attr(content)',
)
NUM_RATERS_CHAIN = ('a[href$="/ratings"]', '[itemprop="ratingCount"]::attr(content)')
GEEK_RATING_CHAIN = ('.gameplay .geek-rating .rating-value', '.game_rating .geek-value')
DESCRIPTION_CHAIN = (
    '#mainbody #description',
    '#overview',
    '.game-description',
    'meta[name="description"]::attr(content)',
)
DESIGNERS_CHAIN = ('.gameplay .designer a', '.wiki_rightcol a[href*="designer"]')
MECHANICS_CHAIN = ('.gameplay .mechanic a', 'a[href*="/boardgamemechanic/"]')
CATEGORIES_CHAIN = ('.gameplay .category a', 'a[href*="/boardgamecategory/"]')

# Listing pages
ROW_CONTAINER_SELECTORS = ('.collection_table tr', '.table tr', '.ranked-item', '.hot-item')
RANK_CHAIN = ('.collection_rank', '.rank')
CHANGE_INDICATOR_CHAIN = ('.hotness', '.post_hotness', '.rank_change')


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def digits_only(text: str) -> str:
    return re.sub(r'[^\d]', '', text)


def decimal_only(text: str) -> str:
    """Return the first decimal number in text ("7.9 / 10" -> "7.9"), or ""."""
    match = re.search(r'\d+(?:\.\d+)?', text)
    return match.group(0) if match else ''


def _texts(selection, css: str) -> List[str]:
    if '::' in css:
        return [(value or '').strip() for value in selection.getall()]
    return [(node.xpath('string()').get() or '').strip() for node in selection]


def first_text(doc, chain) -> str:
    """Resolve a single-valued field through an ordered selector chain."""
    for css in chain:
        matches = doc.css(css)
        if not matches:
            continue
        value = _texts(matches[:1], css)[0]
        if value:
            return value
    return ''


def all_texts(doc, chain) -> List[str]:
    """
    Resolve a multi-valued field: the first selector matching at least one
    non-empty element wins, one entry per element, duplicates kept.
    """
    for css in chain:
        values = [value for value in _texts(doc.css(css), css) if value]
        if values:
            return values
    return []


def parse_item_id(url: str) -> str:
    match = ITEM_ID_PATTERN.search(url or '')
    if not match:
        return ''
    return match.group(1) or match.group(2) or ''


def extract_item_id(doc) -> str:
    """Try each identifier-bearing URL in turn until one yields an id."""
    for css in ID_URL_CHAIN:
        item_id = parse_item_id(doc.css(css).get(default='').strip())
        if item_id:
            return item_id
    return ''


def extract_item(doc, url: str) -> ItemRecord:
    """
    Extract an ItemRecord from a game detail page.

    Never raises for missing content: unresolved fields are "" (or [] for
    lists), including the identifier.
    """
    record = ItemRecord()
    record['external_id'] = extract_item_id(doc)
    record['name'] = first_text(doc, NAME_CHAIN)
    record['year_published'] = digits_only(first_text(doc, YEAR_CHAIN))
    record['description'] = first_text(doc, DESCRIPTION_CHAIN)[:DESCRIPTION_MAX_LENGTH]
    record['average_rating'] = decimal_only(first_text(doc, AVERAGE_RATING_CHAIN))
    record['num_raters'] = digits_only(first_text(doc, NUM_RATERS_CHAIN))
    record['geek_rating'] = decimal_only(first_text(doc, GEEK_RATING_CHAIN))
    record['min_players'] = ''
    record['max_players'] = ''
    record['playing_time'] = ''
    record['designers'] = all_texts(doc, DESIGNERS_CHAIN)
    record['mechanics'] = all_texts(doc, MECHANICS_CHAIN)
    record['categories'] = all_texts(doc, CATEGORIES_CHAIN)
    record['source_url'] = url
    record['extracted_at'] = utc_now()
    return record


def extract_rows(doc, listing_url: str) -> List[ListingRow]:
    """
    Extract one ListingRow per listing row that links to an item.

    Rows come from the union of ROW_CONTAINER_SELECTORS in document order.
    Rows whose item link is missing or does not resolve to an absolute
    http(s) URL are skipped entirely.
    """
    rows = []
    extracted_at = utc_now()
    for container in doc.css(', '.join(ROW_CONTAINER_SELECTORS)):
        link = container.css(ITEM_LINK_SELECTOR)[:1]
        href = link.attrib.get('href') if link else None
        absolute_url = resolve_url(listing_url, href) if href else None
        if not absolute_url:
            continue

        row = ListingRow()
        row['name'] = (link.xpath('string()').get() or '').strip()
        row['absolute_url'] = absolute_url
        row['rank'] = digits_only(first_text(container, RANK_CHAIN))
        row['change_indicator'] = first_text(container, CHANGE_INDICATOR_CHAIN)
        row['source_listing_url'] = listing_url
        row['extracted_at'] = extracted_at
        rows.append(row)
    return rows
