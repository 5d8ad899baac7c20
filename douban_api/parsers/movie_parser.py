"""
Movie subject-page parser (``/subject/{sid}/``).

``sid`` and ``name`` are required; every other field falls back to its
rule default (empty string) when the page does not carry it.  The cast
list is not read from the subject page: the full variant embeds the
separately scraped celebrities page instead.
"""

from __future__ import annotations

import logging
from typing import Union

from douban_api.models import MovieDetail
from douban_api.parsers.common import load_document, select_scope, extract_record, build_model
from douban_api.selectors import DEFAULT_RULES, SelectorRuleSet

logger = logging.getLogger(__name__)


def parse_movie_page(
    html_content: Union[str, bytes],
    rules: SelectorRuleSet = DEFAULT_RULES,
) -> MovieDetail:
    """Parse a movie subject page into a *MovieDetail*.

    Raises:
        ParseMissingField: the page has no movie id or title.
        ParseMalformedDocument: the body is not HTML.
    """
    record_rules = rules['movie']
    soup = load_document(html_content)
    scope = select_scope(soup, record_rules)

    detail = build_model(MovieDetail, extract_record(scope, record_rules, 'movie'))

    logger.debug(
        'Parsed movie: sid=%s, name=%s, year=%s',
        detail.sid,
        detail.name[:40],
        detail.year,
    )
    return detail
