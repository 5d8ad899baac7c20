"""
Shared parsing utilities used by every page parser.

Field values are always looked up through a ``SelectorRule``; this module
is the only place that interprets those rules against a BeautifulSoup tree.
"""

from __future__ import annotations

import re
import logging
from dataclasses import fields
from functools import lru_cache
from typing import Dict, Iterator, List, Optional, Type, TypeVar, Union

from bs4 import BeautifulSoup
from bs4.element import Tag

from douban_api.errors import ParseMalformedDocument, ParseMissingField
from douban_api.selectors import RecordRules, SelectorRule

logger = logging.getLogger(__name__)

T = TypeVar('T')


# ---------------------------------------------------------------------------
# Document loading
# ---------------------------------------------------------------------------

def load_document(html_content: Union[str, bytes]) -> BeautifulSoup:
    """Parse *html_content*, rejecting bodies with no markup at all."""
    if isinstance(html_content, bytes):
        html_content = html_content.decode('utf-8', errors='replace')
    if not html_content or not html_content.strip():
        raise ParseMalformedDocument('Empty document')

    soup = BeautifulSoup(html_content, 'html.parser')
    if soup.find() is None:
        raise ParseMalformedDocument('Document contains no HTML elements')
    return soup


def select_scope(soup: BeautifulSoup, rules: RecordRules) -> Optional[Tag]:
    """Return the node fields are resolved against (first match wins)."""
    if not rules.scope:
        return soup
    return soup.select_one(rules.scope)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------

def last_segment(text: str) -> str:
    """``'原名:乘风破浪 / 韩寒 / 2017'`` → ``'2017'``."""
    return text.split('/')[-1].strip()


def first_token(text: str) -> str:
    """``'邓超 Chao Deng'`` → ``'邓超'``."""
    parts = text.split()
    return parts[0] if parts else ''


def remove_copyright(text: str) -> str:
    return text.strip().replace('©豆瓣', '')


_TRANSFORMS = {
    'last_segment': last_segment,
    'first_token': first_token,
    'remove_copyright': remove_copyright,
}


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern)


# ---------------------------------------------------------------------------
# Field extraction
# ---------------------------------------------------------------------------

def _raw_value(node: Tag, rule: SelectorRule) -> Optional[str]:
    """Return the attribute / text addressed by *rule*, or *None*."""
    target = node.select_one(rule.selector) if rule.selector else node
    if target is None:
        return None
    if rule.attr is None:
        return target.get_text()
    value = target.get(rule.attr)
    if value is None:
        return None
    # Multi-valued attributes (class, rel) come back as lists.
    if isinstance(value, list):
        value = ' '.join(value)
    return value


def _apply_pattern(value: str, rule: SelectorRule) -> Optional[str]:
    regex = _compile(rule.pattern)
    if rule.last_match:
        matches = list(regex.finditer(value))
        return matches[-1].group(1) if matches else None
    match = regex.search(value)
    return match.group(1) if match else None


def extract_field(node: Optional[Tag], rule: SelectorRule) -> Optional[str]:
    """Resolve *rule* against *node*.

    Returns *None* when neither the rule nor any of its fallbacks produce a
    non-empty value; the caller decides between ``default`` and an error.
    """
    current: Optional[SelectorRule] = rule
    while current is not None:
        value = _raw_value(node, current) if node is not None else None
        if value is not None and current.pattern:
            value = _apply_pattern(value, current)
        if value is not None and current.transform:
            value = _TRANSFORMS[current.transform](value)
        if value is not None and current.strip:
            value = value.strip()
        if value:
            return value
        current = current.fallback
    return None


def extract_record(node: Optional[Tag], rules: RecordRules, record: str = '') -> Dict[str, str]:
    """Extract every field in *rules* from *node*.

    Raises:
        ParseMissingField: a required field has no value.
    """
    values = {}
    for name, rule in rules.fields.items():
        value = extract_field(node, rule)
        if value is None:
            if rule.required:
                raise ParseMissingField(name, record)
            value = rule.default
        values[name] = value
    return values


def iter_items(scope: Optional[Tag], rules: RecordRules) -> Iterator[Tag]:
    """Yield the repeated nodes of a list page in document order."""
    if scope is None:
        return
    for item in scope.select(rules.items):
        yield item


def extract_records(scope: Optional[Tag], rules: RecordRules, record: str = '') -> List[Dict[str, str]]:
    """Extract all list items, skipping incomplete ones.

    Items missing a required field are dropped (logged at DEBUG), items
    failing the ``keep`` allow-list are filtered, and ``limit`` is applied
    last so it counts kept items only.
    """
    results = []
    for index, item in enumerate(iter_items(scope, rules)):
        try:
            values = extract_record(item, rules, record)
        except ParseMissingField as exc:
            logger.debug('[%s] Skipping item %d: %s', record or 'list', index, exc)
            continue
        if any(values.get(name) not in allowed for name, allowed in rules.keep.items()):
            continue
        results.append(values)
        if rules.limit and len(results) >= rules.limit:
            break
    return results


def build_model(model_cls: Type[T], values: Dict[str, str]) -> T:
    """Instantiate *model_cls* from extracted values, ignoring extra keys
    that a customised rule set may define."""
    known = {f.name for f in fields(model_cls)}
    return model_cls(**{k: v for k, v in values.items() if k in known})
