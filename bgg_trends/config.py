"""
Crawl input: which pages to start from and how far to go.

Input is a JSON object using the keys below (camelCase, as in the actor
input this replaces; snake_case is accepted too):

    startUrls            list of seed URLs (or a single URL string)
    maxRequestsPerCrawl  maximum number of page requests to schedule
    useBrowser           render pages with a headless browser
    useBggApi            enrich game records from the XML API
    followInternalOnly   only follow links on the seed's host
    concurrency          maximum concurrent requests
"""
import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from bgg_trends.links import FollowMode

DEFAULT_START_URLS = ['https://boardgamegeek.com/hot', 'https://boardgamegeek.com/browse/boardgame']

_KEYS = {
    'startUrls': 'start_urls',
    'maxRequestsPerCrawl': 'max_requests_per_crawl',
    'useBrowser': 'use_browser',
    'useBggApi': 'use_bgg_api',
    'followInternalOnly': 'follow_internal_only',
    'concurrency': 'concurrency',
}


class ConfigError(ValueError):
    """Invalid crawl input."""


@dataclass
class CrawlInput:
    start_urls: List[str] = field(default_factory=lambda: list(DEFAULT_START_URLS))
    max_requests_per_crawl: int = 500
    use_browser: bool = False
    use_bgg_api: bool = True
    follow_internal_only: bool = True
    concurrency: int = 10

    @property
    def follow_mode(self) -> FollowMode:
        return FollowMode.SAME_ORIGIN_ONLY if self.follow_internal_only else FollowMode.UNRESTRICTED

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CrawlInput':
        if not isinstance(data, dict):
            raise ConfigError(f'Crawl input must be an object, got {type(data).__name__}')
        values = {}
        for key, value in data.items():
            name = _KEYS.get(key, key)
            if name not in _KEYS.values():
                raise ConfigError(f'Unknown input option: {key}')
            values[name] = value

        crawl_input = cls()
        if 'start_urls' in values:
            urls = values['start_urls']
            if isinstance(urls, str):
                urls = [urls]
            elif urls is None:
                urls = []
            elif not isinstance(urls, list):
                raise ConfigError(f'startUrls must be a URL or a list of URLs, got {urls!r}')
            crawl_input.start_urls = [_start_url(u) for u in urls]
        for name in ('max_requests_per_crawl', 'concurrency'):
            if name in values:
                setattr(crawl_input, name, _positive_int(name, values[name]))
        for name in ('use_browser', 'use_bgg_api', 'follow_internal_only'):
            if name in values:
                if not isinstance(values[name], bool):
                    raise ConfigError(f'{name} must be true or false, got {values[name]!r}')
                setattr(crawl_input, name, values[name])
        return crawl_input

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _start_url(entry) -> str:
    # Apify-style {"url": ...} entries are accepted as well
    if isinstance(entry, dict):
        entry = entry.get('url')
    if not isinstance(entry, str):
        raise ConfigError(f'start URL entries must be strings or {{"url": ...}} objects, got {entry!r}')
    return entry


def _positive_int(name, value) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f'{name} must be an integer, got {value!r}')
    if number < 1:
        raise ConfigError(f'{name} must be at least 1, got {number}')
    return number


def load_input(path: str) -> CrawlInput:
    """Load crawl input from a JSON file."""
    try:
        data = json.loads(Path(path).read_text(encoding='utf-8'))
    except OSError as e:
        raise ConfigError(f'Cannot read input file {path}: {e}')
    except json.JSONDecodeError as e:
        raise ConfigError(f'Input file {path} is not valid JSON: {e}')
    return CrawlInput.from_dict(data)
