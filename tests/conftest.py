"""
Shared fixtures: in-memory Scrapy responses, no network access.
"""
from pathlib import Path

import pytest
import scrapy
from scrapy.http import HtmlResponse, TextResponse, XmlResponse

FIXTURES = Path(__file__).parent / 'fixtures'


@pytest.fixture
def make_html_response():
    def _make(url, html, meta=None):
        request = scrapy.Request(url, meta=meta or {})
        return HtmlResponse(url=url, body=html.encode('utf-8'), encoding='utf-8', request=request)
    return _make


@pytest.fixture
def make_api_response():
    def _make(request, body=b'', status=200):
        cls = XmlResponse if body else TextResponse
        return cls(url=request.url, status=status, body=body, encoding='utf-8', request=request)
    return _make


@pytest.fixture
def game_page_html():
    return (FIXTURES / 'game_page.html').read_text(encoding='utf-8')


@pytest.fixture
def hot_page_html():
    return (FIXTURES / 'hot_page.html').read_text(encoding='utf-8')


@pytest.fixture
def thing_xml():
    return (FIXTURES / 'thing_13.xml').read_bytes()
