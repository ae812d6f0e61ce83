"""
Tests for crawl input parsing and the command line entry point.
"""
import json

import pytest

from bgg_trends import main as main_module
from bgg_trends.config import DEFAULT_START_URLS, ConfigError, CrawlInput, load_input
from bgg_trends.links import FollowMode


class TestCrawlInput:

    def test_defaults(self):
        crawl_input = CrawlInput()
        assert crawl_input.start_urls == DEFAULT_START_URLS
        assert crawl_input.max_requests_per_crawl == 500
        assert crawl_input.use_browser is False
        assert crawl_input.use_bgg_api is True
        assert crawl_input.follow_mode is FollowMode.SAME_ORIGIN_ONLY
        assert crawl_input.concurrency == 10

    def test_camel_case_keys(self):
        crawl_input = CrawlInput.from_dict({
            'startUrls': ['https://boardgamegeek.com/hot'],
            'maxRequestsPerCrawl': 20,
            'useBrowser': True,
            'useBggApi': False,
            'followInternalOnly': False,
            'concurrency': 2,
        })
        assert crawl_input.start_urls == ['https://boardgamegeek.com/hot']
        assert crawl_input.max_requests_per_crawl == 20
        assert crawl_input.use_browser is True
        assert crawl_input.use_bgg_api is False
        assert crawl_input.follow_mode is FollowMode.UNRESTRICTED
        assert crawl_input.concurrency == 2

    def test_round_trips_through_settings_dict(self):
        crawl_input = CrawlInput(concurrency=3)
        assert CrawlInput.from_dict(crawl_input.to_dict()) == crawl_input

    def test_single_url_and_request_objects(self):
        assert CrawlInput.from_dict({'startUrls': 'https://x.test/hot'}).start_urls == ['https://x.test/hot']
        assert CrawlInput.from_dict({'startUrls': [{'url': 'https://x.test/a'}]}).start_urls == ['https://x.test/a']

    @pytest.mark.parametrize('data', [
        {'unknownOption': 1},
        {'concurrency': 0},
        {'maxRequestsPerCrawl': 'lots'},
        {'useBggApi': 'yes'},
        ['https://x.test'],
        {'startUrls': [{'foo': 1}]},
        {'startUrls': [42]},
        {'startUrls': 42},
    ])
    def test_invalid_input(self, data):
        with pytest.raises(ConfigError):
            CrawlInput.from_dict(data)


class TestLoadInput:

    def test_from_file(self, tmp_path):
        path = tmp_path / 'input.json'
        path.write_text(json.dumps({'maxRequestsPerCrawl': 5}), encoding='utf-8')
        assert load_input(str(path)).max_requests_per_crawl == 5

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'input.json'
        path.write_text('{not json', encoding='utf-8')
        with pytest.raises(ConfigError):
            load_input(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_input(str(tmp_path / 'missing.json'))


class TestMain:

    @pytest.fixture(autouse=True)
    def settings_module(self, monkeypatch):
        monkeypatch.setenv('SCRAPY_SETTINGS_MODULE', 'bgg_trends.settings')

    def test_build_settings(self):
        settings = main_module.build_settings(CrawlInput(concurrency=4))
        assert settings.getint('CONCURRENT_REQUESTS') == 4
        assert settings.getdict('CRAWL_INPUT')['concurrency'] == 4
        assert 'bgg_trends.pipelines.DatasetPipeline' in settings.getdict('ITEM_PIPELINES')
        assert not settings.getdict('DOWNLOAD_HANDLERS')

    def test_build_settings_with_browser(self):
        settings = main_module.build_settings(CrawlInput(use_browser=True))
        assert settings.getdict('DOWNLOAD_HANDLERS')['https'].startswith('scrapy_playwright')
        assert 'asyncio' in settings.get('TWISTED_REACTOR')

    def test_runs_with_input_file(self, monkeypatch, tmp_path):
        path = tmp_path / 'input.json'
        path.write_text(json.dumps({'useBggApi': False}), encoding='utf-8')
        run = mock_run(monkeypatch)

        assert main_module.main(['--input', str(path)]) == 0
        assert run.calls[0].use_bgg_api is False

    def test_invalid_input_exits_without_crawling(self, monkeypatch, tmp_path):
        path = tmp_path / 'input.json'
        path.write_text(json.dumps({'concurrency': -1}), encoding='utf-8')
        run = mock_run(monkeypatch)

        assert main_module.main(['--input', str(path)]) == 2
        assert run.calls == []


def mock_run(monkeypatch):
    def run(crawl_input):
        run.calls.append(crawl_input)
    run.calls = []
    monkeypatch.setattr(main_module, 'run', run)
    return run
