"""
Tests for page classification and the link follow policy.
"""
import pytest

from bgg_trends.classifier import PageKind, classify
from bgg_trends.links import FollowMode, host_of, resolve_url, should_follow


@pytest.mark.parametrize('url', [
    'https://boardgamegeek.com/boardgame/13/catan',
    'https://boardgamegeek.com/boardgame/13',
    'https://boardgamegeek.com/boardgameexpansion/926/catan-seafarers',
    'https://boardgamegeek.com/thing/13',
    'https://example.test/item/42',
    'https://example.test/item/some-slug',
    'https://boardgamegeek.com/boardgame/13/catan/',
])
def test_item_detail_urls(url):
    assert classify(url) is PageKind.ITEM_DETAIL


@pytest.mark.parametrize('url', [
    'https://boardgamegeek.com/hot',
    'https://boardgamegeek.com/browse/boardgame',
    'https://boardgamegeek.com/browse/boardgame/page/2',
    'https://boardgamegeek.com/boardgame/13/catan/ratings',
    'https://boardgamegeek.com/boardgame/13/catan/forums/0',
    'https://boardgamegeek.com/boardgame',
    'https://boardgamegeek.com/',
    'http://[broken/boardgame/13',
    '',
])
def test_listing_and_ambiguous_urls(url):
    assert classify(url) is PageKind.LISTING


class TestResolveUrl:

    def test_relative(self):
        assert resolve_url('https://example.test/hot', '/item/42') == 'https://example.test/item/42'

    def test_absolute(self):
        assert resolve_url('https://example.test/hot', 'https://other.test/x') == 'https://other.test/x'

    def test_malformed(self):
        assert resolve_url('https://example.test/hot', 'http://[broken/item/1') is None

    def test_non_http(self):
        assert resolve_url('https://example.test/hot', 'mailto:someone@example.test') is None
        assert resolve_url('https://example.test/hot', 'javascript:void(0)') is None


class TestShouldFollow:

    def test_same_host_followed(self):
        assert should_follow('https://example.test/item/1', 'example.test', FollowMode.SAME_ORIGIN_ONLY)

    def test_host_compare_is_case_insensitive(self):
        assert should_follow('https://EXAMPLE.test/item/1', 'example.test', FollowMode.SAME_ORIGIN_ONLY)

    def test_other_host_rejected(self):
        assert not should_follow('https://other.test/item/1', 'example.test', FollowMode.SAME_ORIGIN_ONLY)

    def test_subdomain_rejected(self):
        assert not should_follow('https://www.example.test/item/1', 'example.test', FollowMode.SAME_ORIGIN_ONLY)

    def test_port_is_part_of_host(self):
        assert not should_follow('https://example.test:8443/item/1', 'example.test', FollowMode.SAME_ORIGIN_ONLY)

    @pytest.mark.parametrize('candidate', ['http://[broken/item/1', 'https://example.test:notaport/', 'not a url'])
    def test_unparsable_rejected(self, candidate):
        assert not should_follow(candidate, 'example.test', FollowMode.SAME_ORIGIN_ONLY)

    def test_unrestricted_follows_other_hosts(self):
        assert should_follow('https://other.test/item/1', 'example.test', FollowMode.UNRESTRICTED)


def test_host_of():
    assert host_of('https://BoardGameGeek.com/hot') == 'boardgamegeek.com'
    assert host_of('http://[broken') == ''
