"""
Merge an HTML-derived ItemRecord with the XML API view of the same game.
"""
from typing import Any, Dict, Optional

from bgg_trends.bgg_api import normalize_thing
from bgg_trends.items import ItemRecord

# API value wins when non-empty
SCALAR_ENRICHMENT_FIELDS = (
    'geek_rating',
    'average_rating',
    'num_raters',
    'min_players',
    'max_players',
    'playing_time',
)
# API list replaces the HTML list when non-empty, never merged
COLLECTION_FIELDS = ('designers', 'mechanics', 'categories')


def reconcile(record: ItemRecord, payload: Optional[Dict[str, Any]]) -> ItemRecord:
    """
    Apply API enrichment to a record scraped from HTML.

    Returns the input record itself when there is no payload (or no item in
    it), otherwise a new record. Name, year and description always keep the
    HTML values; the API only fills the enrichment fields above.
    """
    if payload is None:
        return record
    thing = normalize_thing(payload)
    if thing is None:
        return record

    merged = record.copy()
    for name in SCALAR_ENRICHMENT_FIELDS:
        api_value = getattr(thing, name)
        merged[name] = api_value if api_value else record.get(name, '')
    for name in COLLECTION_FIELDS:
        api_values = getattr(thing, name)
        merged[name] = list(api_values or record.get(name, []))
    return merged
