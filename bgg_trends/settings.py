"""
Scrapy settings for bgg_trends project.
"""
import os

BOT_NAME = 'bgg_trends'

SPIDER_MODULES = ['bgg_trends.spiders']
NEWSPIDER_MODULE = 'bgg_trends.spiders'

USER_AGENT = 'bgg_trends (+read-only trend collection)'

ROBOTSTXT_OBEY = True

# Configure pipelines
# Order matters: raw API payloads are stored before records are appended
ITEM_PIPELINES = {
    'bgg_trends.pipelines.BlobStoragePipeline': 200,
    'bgg_trends.pipelines.DatasetPipeline': 300,
}

# Overridden from the crawl input's concurrency
CONCURRENT_REQUESTS = 10
CONCURRENT_REQUESTS_PER_DOMAIN = 10

# Be respectful: BGG rate-limits its XML API aggressively
DOWNLOAD_DELAY = 1.0
RANDOMIZE_DOWNLOAD_DELAY = True

AUTOTHROTTLE_ENABLED = True
AUTOTHROTTLE_START_DELAY = 1.0
AUTOTHROTTLE_MAX_DELAY = 10.0
AUTOTHROTTLE_TARGET_CONCURRENCY = 2.0

# Retry settings for temporary errors
RETRY_ENABLED = True
RETRY_TIMES = 2
RETRY_HTTP_CODES = [408, 429, 500, 502, 503, 504]
RETRY_PRIORITY_ADJUST = -1

DOWNLOAD_TIMEOUT = 30

# BGG XML API2
BGG_API_URL = os.environ.get('BGG_API_URL', 'https://boardgamegeek.com/xmlapi2')
BGG_API_TIMEOUT = float(os.environ.get('BGG_API_TIMEOUT', '10'))

# Crawl input (see bgg_trends.config.CrawlInput); set by bgg_trends.main
CRAWL_INPUT = {}

# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
