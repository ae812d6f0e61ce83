"""
Client and parser for the BoardGameGeek XML API2 "thing" endpoint.

The XML is first turned into a loose tree (attributes merged onto the same
dict as child elements, repeated children as lists, text-only elements as
plain strings). That tree is what gets stored verbatim in the blob store.
normalize_thing() then maps it onto ApiThing, the typed shape the reconciler
works with.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlencode

import requests
from bs4 import BeautifulSoup, Comment, ParserRejectedMarkup, Tag

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://boardgamegeek.com/xmlapi2'
DEFAULT_TIMEOUT = 10.0

# link/@type -> ApiThing attribute
LINK_TYPES = {
    'boardgamedesigner': 'designers',
    'boardgamemechanic': 'mechanics',
    'boardgamecategory': 'categories',
}


class ApiOutcome(Enum):
    OK = 'ok'
    ABSENT = 'absent'  # Answered, but nothing usable (queued, unknown id)
    FAILED = 'failed'  # Transport error, timeout, bad status or unparsable body


@dataclass
class ApiResult:
    outcome: ApiOutcome
    payload: Optional[Dict[str, Any]] = None
    reason: str = ''

    @classmethod
    def ok(cls, payload):
        return cls(ApiOutcome.OK, payload)

    @classmethod
    def absent(cls, reason):
        return cls(ApiOutcome.ABSENT, reason=reason)

    @classmethod
    def failed(cls, reason):
        return cls(ApiOutcome.FAILED, reason=reason)


@dataclass
class ApiThing:
    external_id: str = ''
    name: str = ''
    year_published: str = ''
    description: str = ''
    min_players: str = ''
    max_players: str = ''
    playing_time: str = ''
    geek_rating: str = ''
    average_rating: str = ''
    num_raters: str = ''
    designers: List[str] = field(default_factory=list)
    mechanics: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)


def as_list(value) -> list:
    """Coerce a one-or-many tree value to a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _node_to_tree(tag: Tag) -> Union[str, Dict[str, Any]]:
    children = [child for child in tag.children if isinstance(child, Tag)]
    text = ''.join(
        str(s) for s in tag.find_all(string=True, recursive=False) if not isinstance(s, Comment)
    ).strip()
    if not children and not tag.attrs:
        return text

    node: Dict[str, Any] = dict(tag.attrs)
    for child in children:
        value = _node_to_tree(child)
        if child.name not in node:
            node[child.name] = value
        elif isinstance(node[child.name], list):
            node[child.name].append(value)
        else:
            node[child.name] = [node[child.name], value]
    if text:
        node['_'] = text
    return node


def parse_thing_xml(text: Union[str, bytes]) -> Optional[Dict[str, Any]]:
    """Parse an API response into {root_name: tree}, or None if there is no root element."""
    soup = BeautifulSoup(text, 'xml')
    root = soup.find(True)
    if root is None:
        return None
    return {root.name: _node_to_tree(root)}


def _value(node) -> str:
    """Scalar value of a tree node: its value attribute, its text, or ""."""
    if isinstance(node, list):
        return _value(node[0]) if node else ''
    if isinstance(node, dict):
        return str(node.get('value', node.get('_', '')))
    if node is None:
        return ''
    return str(node)


def _child(node, *path):
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def find_thing(payload) -> Optional[Dict[str, Any]]:
    """Locate the single item in a parsed payload (<items><item> or a bare <thing>)."""
    if not isinstance(payload, dict):
        return None
    thing = payload.get('thing')
    if thing is None:
        items = as_list(_child(payload, 'items', 'item'))
        thing = items[0] if items else None
    return thing if isinstance(thing, dict) else None


def normalize_thing(payload) -> Optional[ApiThing]:
    t = find_thing(payload)
    if t is None:
        return None

    names = as_list(t.get('name'))
    ratings = _child(t, 'statistics', 'ratings')
    thing = ApiThing(
        external_id=str(t.get('id', '')),
        name=_value(names[0]) if names else '',
        year_published=_value(t.get('yearpublished')),
        description=_value(t.get('description')),
        min_players=_value(t.get('minplayers')),
        max_players=_value(t.get('maxplayers')),
        playing_time=_value(t.get('playingtime')),
        geek_rating=_value(_child(ratings, 'bayesaverage')),
        average_rating=_value(_child(ratings, 'average')),
        num_raters=_value(_child(ratings, 'usersrated')),
    )

    for link in as_list(t.get('link')):
        if not isinstance(link, dict):
            continue
        attr = LINK_TYPES.get(link.get('type'))
        value = link.get('value') or link.get('name') or ''
        if attr and value:
            getattr(thing, attr).append(value)
    return thing


class BggApiClient:
    """
    Builds request URLs for the thing endpoint and turns responses into
    ApiResult values. Nothing here raises to the caller.
    """

    def __init__(self, base_url: str = DEFAULT_API_URL, timeout: float = DEFAULT_TIMEOUT, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def detail_url(self, item_id: str) -> str:
        return f"{self.base_url}/thing?{urlencode({'id': item_id, 'stats': 1})}"

    def fetch_detail(self, item_id: str) -> ApiResult:
        """Blocking fetch, for use outside the crawler."""
        url = self.detail_url(item_id)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f'BGG API request failed for {item_id}: {e}')
            return ApiResult.failed(f'request error: {e}')
        return self.parse(response.status_code, response.content)

    def parse(self, status: int, body: Union[str, bytes]) -> ApiResult:
        # TODO: retry 202 (request queued) answers with backoff instead of giving up on enrichment
        if status == 202:
            return ApiResult.absent('processing')
        if status != 200:
            return ApiResult.failed(f'HTTP {status}')
        if not body or not body.strip():
            return ApiResult.absent('empty response')

        try:
            payload = parse_thing_xml(body)
        except (ParserRejectedMarkup, ValueError) as e:
            return ApiResult.failed(f'parse error: {e}')
        if payload is None:
            return ApiResult.failed('parse error: no root element')
        if 'errors' in payload or 'error' in payload:
            return ApiResult.failed('API returned an error document')
        if 'message' in payload:
            # Returned while BGG is still building the response
            return ApiResult.absent('processing')
        if find_thing(payload) is None:
            return ApiResult.absent('no item in response')
        return ApiResult.ok(payload)
