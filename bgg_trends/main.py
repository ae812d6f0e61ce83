"""
Command line entry point: load crawl input and run the BGG spider once.
"""
import argparse
import logging
import os
import sys

from dotenv import load_dotenv
from scrapy.crawler import CrawlerProcess
from scrapy.utils.project import get_project_settings

from bgg_trends.config import ConfigError, CrawlInput, load_input
from bgg_trends.spiders.bgg_spider import BggTrendSpider

logger = logging.getLogger(__name__)


def build_settings(crawl_input: CrawlInput):
    """Project settings adjusted to the crawl input."""
    os.environ.setdefault('SCRAPY_SETTINGS_MODULE', 'bgg_trends.settings')
    settings = get_project_settings()
    settings.set('CRAWL_INPUT', crawl_input.to_dict())
    settings.set('CONCURRENT_REQUESTS', crawl_input.concurrency)
    settings.set('CONCURRENT_REQUESTS_PER_DOMAIN', crawl_input.concurrency)

    if crawl_input.use_browser:
        # Pages are rendered by Playwright; XML API requests still go through the plain handler
        settings.set('DOWNLOAD_HANDLERS', {
            'http': 'scrapy_playwright.handler.ScrapyPlaywrightDownloadHandler',
            'https': 'scrapy_playwright.handler.ScrapyPlaywrightDownloadHandler',
        })
        settings.set('TWISTED_REACTOR', 'twisted.internet.asyncioreactor.AsyncioSelectorReactor')
        settings.set('PLAYWRIGHT_BROWSER_TYPE', 'chromium')
    return settings


def run(crawl_input: CrawlInput):
    settings = build_settings(crawl_input)
    process = CrawlerProcess(settings)
    process.crawl(BggTrendSpider, crawl_input=crawl_input)
    process.start()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Scrape BoardGameGeek hot/browse pages and game metadata.')
    parser.add_argument(
        '--input',
        default=os.getenv('CRAWL_INPUT_PATH'),
        help='JSON file with crawl input (default: $CRAWL_INPUT_PATH, else built-in defaults)',
    )
    return parser.parse_args(argv)


def main(argv=None):
    load_dotenv()
    args = parse_args(argv)

    try:
        crawl_input = load_input(args.input) if args.input else CrawlInput()
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f'Invalid crawl input: {e}')
        return 2

    run(crawl_input)
    return 0


if __name__ == '__main__':
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print('\nCrawl stopped by user')
        sys.exit(0)
