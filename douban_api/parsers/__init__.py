"""
Douban HTML parsers – public API.

Usage::

    from douban_api.parsers import HtmlParser
    from douban_api.models import ResourceKind

    parser = HtmlParser(rules)
    movie = parser.parse(html, ResourceKind.MOVIE_BRIEF)

The page-specific functions (``parse_search_page`` …) can also be called
directly.
"""

from __future__ import annotations

import logging
from typing import Any, Union

from douban_api.models import ResourceKind
from douban_api.parsers.search_parser import parse_search_page
from douban_api.parsers.movie_parser import parse_movie_page
from douban_api.parsers.celebrity_parser import parse_celebrities_page, parse_celebrity_page
from douban_api.parsers.photo_parser import parse_wallpapers_page
from douban_api.selectors import DEFAULT_RULES, SelectorRuleSet

logger = logging.getLogger(__name__)

_PARSERS = {
    ResourceKind.SEARCH: parse_search_page,
    ResourceKind.MOVIE_BRIEF: parse_movie_page,
    ResourceKind.MOVIE_FULL: parse_movie_page,
    ResourceKind.CELEBRITIES: parse_celebrities_page,
    ResourceKind.CELEBRITY: parse_celebrity_page,
    ResourceKind.WALLPAPERS: parse_wallpapers_page,
}


def parse_document(body: Union[str, bytes], rules: SelectorRuleSet, kind: ResourceKind) -> Any:
    """Parse *body* as the page type behind *kind*.

    Raises:
        ValueError: *kind* has no HTML representation (``PHOTO``).
        ParseError: the document lacks required fields or is not HTML.
    """
    try:
        parser = _PARSERS[kind]
    except KeyError:
        raise ValueError(f'{kind.value} resources are not parsed') from None
    return parser(body, rules)


class HtmlParser:
    """Binds a ``SelectorRuleSet`` to ``parse_document``."""

    def __init__(self, rules: SelectorRuleSet = DEFAULT_RULES):
        self.rules = rules

    def parse(self, body: Union[str, bytes], kind: ResourceKind) -> Any:
        return parse_document(body, self.rules, kind)


__all__ = [
    'HtmlParser',
    'parse_document',
    'parse_search_page',
    'parse_movie_page',
    'parse_celebrities_page',
    'parse_celebrity_page',
    'parse_wallpapers_page',
]
