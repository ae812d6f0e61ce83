"""
BoardGameGeek trend spider.
Visits hot/browse listings, records each listed game and follows links to
game pages, whose metadata is optionally enriched from the XML API2.
"""
import scrapy
from scrapy.utils.project import get_project_settings

from bgg_trends.bgg_api import DEFAULT_API_URL, DEFAULT_TIMEOUT, ApiResult, BggApiClient
from bgg_trends.classifier import PageKind, classify
from bgg_trends.config import CrawlInput
from bgg_trends.extractors import extract_item, extract_rows
from bgg_trends.items import RawApiPayload
from bgg_trends.links import host_of, resolve_url, should_follow
from bgg_trends.reconcile import reconcile


class BggTrendSpider(scrapy.Spider):
    """
    Config-driven BGG spider.
    Reads a CrawlInput (or its dict form) from the crawl_input argument or
    the CRAWL_INPUT setting:
    - start_urls: seed listing or game URLs
    - max_requests_per_crawl: page request budget (API calls not counted)
    - use_browser: render pages through scrapy-playwright
    - use_bgg_api: enrich game records from the XML API
    - follow_internal_only: stay on each seed's host
    """
    name = 'bgg_trends'

    def __init__(self, crawl_input=None, api_client=None, *args, **kwargs):
        super(BggTrendSpider, self).__init__(*args, **kwargs)
        settings = get_project_settings()
        if crawl_input is None:
            crawl_input = settings.getdict('CRAWL_INPUT')
        if isinstance(crawl_input, dict):
            crawl_input = CrawlInput.from_dict(crawl_input)
        self.config = crawl_input

        self.start_urls = list(self.config.start_urls)
        self.follow_mode = self.config.follow_mode
        self.api_client = api_client or BggApiClient(
            settings.get('BGG_API_URL') or DEFAULT_API_URL,
            settings.getfloat('BGG_API_TIMEOUT', DEFAULT_TIMEOUT),
        )
        self.pages_scheduled = 0

        self.logger.info(
            f'Spider initialized with {len(self.start_urls)} start URLs, '
            f'budget {self.config.max_requests_per_crawl}, API enrichment: {self.config.use_bgg_api}'
        )

    def _inc_stat(self, key):
        crawler = getattr(self, 'crawler', None)
        if crawler is not None and crawler.stats is not None:
            crawler.stats.inc_value(key)

    def _page_request(self, url, origin_host):
        """Build a page request, or return None once the visit budget is spent."""
        if self.pages_scheduled >= self.config.max_requests_per_crawl:
            self._inc_stat('bgg/budget_exhausted')
            return None
        meta = {'origin_host': origin_host}
        if self.config.use_browser:
            meta.update(browser_meta())
        request = scrapy.Request(url=url, callback=self.parse, meta=meta)
        self.pages_scheduled += 1
        return request

    def start_requests(self):
        """Generate initial requests from start_urls."""
        if not self.start_urls:
            self.logger.warning('No start URLs configured')
            return

        for url in self.start_urls:
            try:
                request = self._page_request(url, host_of(url))
            except ValueError as e:
                self.logger.warning(f'Skipping invalid start URL {url!r}: {e}')
                continue
            if request is None:
                return
            self.logger.info(f'Starting crawl from: {url}')
            yield request

    def parse(self, response):
        """Dispatch a page to the listing or game handler by its URL shape."""
        if classify(response.url) is PageKind.ITEM_DETAIL:
            yield from self.parse_item(response)
        else:
            yield from self.parse_listing(response)

    def parse_listing(self, response):
        """
        Emit one ListingRow per listed game, then follow game links found on
        the page. Links leaving the seed's host are dropped in same-origin mode.
        """
        origin_host = response.meta.get('origin_host') or host_of(response.url)

        rows = extract_rows(response, response.url)
        self.logger.info(f'Found {len(rows)} listing rows on {response.url}')
        yield from rows

        seen_urls = set()
        for href in response.css('a::attr(href)').getall():
            url = resolve_url(response.url, href)
            if not url or url in seen_urls:
                continue
            seen_urls.add(url)
            if classify(url) is not PageKind.ITEM_DETAIL:
                continue
            if not should_follow(url, origin_host, self.follow_mode):
                continue
            request = self._page_request(url, origin_host)
            if request is None:
                self.logger.info('Visit budget exhausted, not following more links')
                return
            yield request

    def parse_item(self, response):
        """Extract a game page and, when enabled, ask the XML API for more."""
        record = extract_item(response, response.url)
        item_id = record['external_id']
        if not item_id:
            self.logger.warning(f'No BGG id found on {response.url}')

        if not (self.config.use_bgg_api and item_id):
            yield record
            return

        yield scrapy.Request(
            url=self.api_client.detail_url(item_id),
            callback=self.parse_api,
            errback=self.api_failed,
            cb_kwargs={'record': record},
            meta={'download_timeout': self.api_client.timeout, 'dont_retry': True},
            # Repeat visits to a game still need their own API call
            dont_filter=True,
        )

    def parse_api(self, response, record):
        result = self.api_client.parse(response.status, response.body)
        yield from self._finish_item(record, result)

    def api_failed(self, failure):
        """Timeouts, DNS errors and non-2xx answers: keep the HTML-only record."""
        record = failure.request.cb_kwargs['record']
        result = ApiResult.failed(repr(failure.value))
        yield from self._finish_item(record, result)

    def _finish_item(self, record, result):
        if result.payload is None:
            self.logger.info(
                f"BGG API {result.outcome.value} for {record['external_id']} ({result.reason}), "
                f'keeping HTML-only record'
            )
            self._inc_stat('bgg/api_unavailable')
            yield record
            return

        self._inc_stat('bgg/api_enriched')
        yield reconcile(record, result.payload)
        yield RawApiPayload(
            external_id=record['external_id'],
            payload=result.payload,
            content_type='application/json',
        )


def browser_meta():
    """Request meta that makes scrapy-playwright render the page and let it settle."""
    from scrapy_playwright.page import PageMethod

    return {
        'playwright': True,
        'playwright_page_methods': [PageMethod('wait_for_load_state', 'networkidle', timeout=5000)],
    }
