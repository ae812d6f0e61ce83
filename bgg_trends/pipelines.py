"""
Scrapy pipelines that route items to storage.

Both pipelines are best-effort: a storage failure is logged and counted in
the crawler stats, and the item is passed on unchanged.
"""
import logging

from bgg_trends.items import ItemRecord, ListingRow, RawApiPayload
from bgg_trends.storage import StorageError, get_blob_storage, get_dataset_storage

logger = logging.getLogger(__name__)


def blob_key(external_id: str) -> str:
    return f'items/{external_id}'


def _inc_stat(spider, key):
    crawler = getattr(spider, 'crawler', None)
    if crawler is not None and crawler.stats is not None:
        crawler.stats.inc_value(key)


class BlobStoragePipeline:
    """
    Stores RawApiPayload items in the blob store under items/<external_id>.
    Other items pass through untouched.
    """

    def __init__(self, storage=None, crawler=None):
        self.crawler = crawler
        self.storage = storage
        self.blobs_count = 0

    @classmethod
    def from_crawler(cls, crawler):
        """Create pipeline instance from crawler (Scrapy's standard way)."""
        return cls(crawler=crawler)

    def open_spider(self, spider=None):
        """Initialize storage when spider starts."""
        if self.storage is None:
            self.storage = get_blob_storage()
        (spider.logger if spider else logger).info(
            f'BlobStoragePipeline: Using {type(self.storage).__name__}'
        )

    def process_item(self, item, spider=None):
        if not isinstance(item, RawApiPayload):
            return item
        log = spider.logger if spider else logger

        key = blob_key(item['external_id'])
        try:
            path = self.storage.put_blob(key, item['payload'], item.get('content_type', 'application/json'))
        except StorageError as e:
            # Don't fail the item if the payload could not be saved
            log.warning(f'Failed to save BGG API payload {key}: {e}')
            _inc_stat(spider, 'bgg/blob_write_failed')
            return item

        self.blobs_count += 1
        log.debug(f'Saved BGG API payload to {path}')
        return item


class DatasetPipeline:
    """
    Appends ItemRecord and ListingRow items to the dataset.
    RawApiPayload items are not part of the dataset and pass through.
    """

    def __init__(self, storage=None, crawler=None):
        self.crawler = crawler
        self.storage = storage
        self.items_count = 0

    @classmethod
    def from_crawler(cls, crawler):
        """Create pipeline instance from crawler (Scrapy's standard way)."""
        return cls(crawler=crawler)

    def open_spider(self, spider=None):
        if self.storage is None:
            self.storage = get_dataset_storage()
        (spider.logger if spider else logger).info(
            f'DatasetPipeline: Using {type(self.storage).__name__}'
        )

    def close_spider(self, spider=None):
        """Close storage when spider finishes."""
        if self.storage is not None:
            self.storage.close()
        (spider.logger if spider else logger).info(f'DatasetPipeline: Appended {self.items_count} records')

    def process_item(self, item, spider=None):
        if isinstance(item, ItemRecord):
            kind = 'item'
        elif isinstance(item, ListingRow):
            kind = 'listing_row'
        else:
            return item
        log = spider.logger if spider else logger

        try:
            self.storage.append_record(kind, dict(item))
        except StorageError as e:
            log.warning(f'Failed to append {kind} record: {e}')
            _inc_stat(spider, 'bgg/dataset_write_failed')
            return item

        self.items_count += 1
        if self.items_count % 50 == 0:
            log.info(f'DatasetPipeline: Appended {self.items_count} records so far')
        return item
