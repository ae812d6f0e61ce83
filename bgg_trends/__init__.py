"""
BoardGameGeek trend scraper: Scrapy project that collects hot/browse listings
and per-game metadata, optionally enriched from the BGG XML API2.
"""
