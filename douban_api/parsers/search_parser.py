"""
Search-results page parser (``https://www.douban.com/search?q=...``).

Only entries whose category is a movie are returned.  No result list on
the page is a valid, empty answer rather than an error.
"""

from __future__ import annotations

import logging
from typing import List, Union

from douban_api.models import MovieSummary
from douban_api.parsers.common import load_document, select_scope, extract_records, build_model
from douban_api.selectors import DEFAULT_RULES, SelectorRuleSet

logger = logging.getLogger(__name__)


def parse_search_page(
    html_content: Union[str, bytes],
    rules: SelectorRuleSet = DEFAULT_RULES,
) -> List[MovieSummary]:
    """Parse a search page and return movie hits in document order."""
    record_rules = rules['search']
    soup = load_document(html_content)

    scope = select_scope(soup, record_rules)
    if scope is None:
        logger.debug('No result list found on search page')
        return []

    movies = [build_model(MovieSummary, values) for values in extract_records(scope, record_rules, 'search')]
    logger.debug('Parsed %d search results', len(movies))
    return movies
