"""
Scrapy items for the records this project emits.
"""
import scrapy


class ItemRecord(scrapy.Item):
    """One game's metadata, built from its detail page and optionally the API."""
    external_id = scrapy.Field()  # BGG id, "" when it cannot be resolved
    name = scrapy.Field()
    year_published = scrapy.Field()
    description = scrapy.Field()  # Truncated to DESCRIPTION_MAX_LENGTH
    # Numeric values kept as raw text
    average_rating = scrapy.Field()
    num_raters = scrapy.Field()
    geek_rating = scrapy.Field()
    min_players = scrapy.Field()  # Only the API fills these three
    max_players = scrapy.Field()
    playing_time = scrapy.Field()
    # Lists of display names, in discovery order
    designers = scrapy.Field()
    mechanics = scrapy.Field()
    categories = scrapy.Field()
    # Provenance
    source_url = scrapy.Field()
    extracted_at = scrapy.Field()  # ISO timestamp (UTC)


class ListingRow(scrapy.Item):
    """Lightweight pointer to a game seen on a hot/browse listing page."""
    name = scrapy.Field()
    absolute_url = scrapy.Field()
    rank = scrapy.Field()  # Digits only, or ""
    change_indicator = scrapy.Field()  # Hotness / rank delta marker
    source_listing_url = scrapy.Field()
    extracted_at = scrapy.Field()


class RawApiPayload(scrapy.Item):
    """Unmodified parsed XML API response, stored in the blob store."""
    external_id = scrapy.Field()
    payload = scrapy.Field()  # Nested dict/list/str tree
    content_type = scrapy.Field()
