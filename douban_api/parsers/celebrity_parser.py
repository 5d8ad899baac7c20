"""
Celebrity parsers: the per-movie cast list (``/subject/{sid}/celebrities``)
and a single person's page (``/celebrity/{id}/``).
"""

from __future__ import annotations

import logging
from typing import List, Union

from douban_api.models import CastMember, CelebrityDetail
from douban_api.parsers.common import (
    load_document,
    select_scope,
    extract_record,
    extract_records,
    build_model,
)
from douban_api.selectors import DEFAULT_RULES, SelectorRuleSet

logger = logging.getLogger(__name__)


def parse_celebrities_page(
    html_content: Union[str, bytes],
    rules: SelectorRuleSet = DEFAULT_RULES,
) -> List[CastMember]:
    """Return the cast of a movie in page order.

    Only directors, voice actors and actors are kept, capped by the rule
    set's ``limit``.  Entries without a person id are skipped.
    """
    record_rules = rules['celebrities']
    soup = load_document(html_content)
    scope = select_scope(soup, record_rules)

    cast = [build_model(CastMember, values) for values in extract_records(scope, record_rules, 'celebrities')]
    logger.debug('Parsed %d cast members', len(cast))
    return cast


def parse_celebrity_page(
    html_content: Union[str, bytes],
    rules: SelectorRuleSet = DEFAULT_RULES,
) -> CelebrityDetail:
    """Parse a celebrity page.  ``id`` and ``name`` are required."""
    record_rules = rules['celebrity']
    soup = load_document(html_content)
    scope = select_scope(soup, record_rules)
    return build_model(CelebrityDetail, extract_record(scope, record_rules, 'celebrity'))
