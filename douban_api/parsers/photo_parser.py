"""
Wallpaper listing parser (``/subject/{sid}/photos?type=W``).
"""

from __future__ import annotations

import logging
from typing import List, Union

from douban_api.models import Wallpaper
from douban_api.parsers.common import load_document, select_scope, extract_records
from douban_api.selectors import DEFAULT_RULES, SelectorRuleSet

logger = logging.getLogger(__name__)

PHOTO_URL_TEMPLATE = 'https://img1.doubanio.com/view/photo/{size}/public/p{id}.jpg'


def _split_size(size: str):
    """``'1920x1080'`` → ``('1920', '1080')``; anything else → blanks."""
    width, sep, height = size.partition('x')
    if not sep:
        return '', ''
    return width.strip(), height.strip()


def parse_wallpapers_page(
    html_content: Union[str, bytes],
    rules: SelectorRuleSet = DEFAULT_RULES,
) -> List[Wallpaper]:
    record_rules = rules['wallpapers']
    soup = load_document(html_content)
    scope = select_scope(soup, record_rules)

    wallpapers = []
    for values in extract_records(scope, record_rules, 'wallpapers'):
        photo_id = values['id']
        size = values.get('size', '')
        width, height = _split_size(size)
        wallpapers.append(Wallpaper(
            id=photo_id,
            small=PHOTO_URL_TEMPLATE.format(size='s', id=photo_id),
            medium=PHOTO_URL_TEMPLATE.format(size='m', id=photo_id),
            large=PHOTO_URL_TEMPLATE.format(size='l', id=photo_id),
            size=size,
            width=width,
            height=height,
        ))
    logger.debug('Parsed %d wallpapers', len(wallpapers))
    return wallpapers
