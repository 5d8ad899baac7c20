"""
Declarative selector rules for every Douban page the service understands.

A ``SelectorRule`` says where one field lives (CSS selector, attribute or
text), how to clean it (regex, named transform) and what to use when the
page does not have it.  Rules are plain data: the parsers never hard-code
a selector, so adapting to upstream markup changes only means editing the
tables below or loading a replacement JSON file.

Usage::

    from douban_api.selectors import DEFAULT_RULES, load_rules

    rules = DEFAULT_RULES                      # built once at import
    rules = load_rules('my_selectors.json')    # or loaded from disk
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

#: Names accepted in ``SelectorRule.transform``; implemented in
#: ``douban_api.parsers.common``.
TRANSFORMS = ('last_segment', 'first_token', 'remove_copyright')


# ---------------------------------------------------------------------------
# Rule types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SelectorRule:
    """How to extract a single field.

    Attributes:
        selector: CSS selector relative to the record scope / list item.
            Empty string means the scope node itself.
        attr: Attribute to read; ``None`` reads the text content.
        pattern: Optional regex applied to the raw value; group 1 is kept.
        last_match: Keep the last regex match instead of the first.
        transform: Optional named post-filter (see ``TRANSFORMS``).
        strip: Strip surrounding whitespace from the final value.
        default: Value used when nothing matches.
        required: A missing value is an error instead of ``default``.
        fallback: Rule tried when this one yields nothing.
    """
    selector: str = ''
    attr: Optional[str] = None
    pattern: Optional[str] = None
    last_match: bool = False
    transform: Optional[str] = None
    strip: bool = True
    default: str = ''
    required: bool = False
    fallback: Optional['SelectorRule'] = None

    def __post_init__(self):
        if self.transform is not None and self.transform not in TRANSFORMS:
            raise ValueError(f'Unknown transform: {self.transform!r}')

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SelectorRule':
        values = dict(data)
        fallback = values.pop('fallback', None)
        if fallback is not None:
            values['fallback'] = cls.from_dict(fallback)
        return cls(**values)


@dataclass(frozen=True)
class RecordRules:
    """Rules for one page type.

    ``scope`` narrows the document before field lookup (first match wins).
    List pages set ``items`` to the selector of the repeated node; each item
    is then parsed with ``fields``.  ``keep`` restricts list items to those
    whose field value is in an allow-list, and ``limit`` caps the list
    (0 = unlimited).
    """
    fields: Mapping[str, SelectorRule]
    scope: str = ''
    items: str = ''
    keep: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    limit: int = 0

    def __post_init__(self):
        # Freeze the mappings so a shared rule set cannot be edited in place.
        object.__setattr__(self, 'fields', MappingProxyType(dict(self.fields)))
        object.__setattr__(
            self, 'keep',
            MappingProxyType({k: tuple(v) for k, v in self.keep.items()}),
        )

    @property
    def is_list(self) -> bool:
        return bool(self.items)

    def required_fields(self) -> Tuple[str, ...]:
        return tuple(name for name, rule in self.fields.items() if rule.required)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'RecordRules':
        return cls(
            fields={
                name: SelectorRule.from_dict(rule)
                for name, rule in data.get('fields', {}).items()
            },
            scope=data.get('scope', ''),
            items=data.get('items', ''),
            keep=data.get('keep', {}),
            limit=int(data.get('limit', 0)),
        )


class SelectorRuleSet:
    """Immutable table of ``RecordRules`` keyed by record name.

    Constructed once at start-up and shared by reference; it holds no
    mutable state, so concurrent readers need no locking.
    """

    def __init__(self, records: Mapping[str, RecordRules]):
        self._records = MappingProxyType(dict(records))

    def __getitem__(self, name: str) -> RecordRules:
        try:
            return self._records[name]
        except KeyError:
            raise KeyError(f'No selector rules for record {name!r}') from None

    def __contains__(self, name: str) -> bool:
        return name in self._records

    def __iter__(self):
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f'SelectorRuleSet({sorted(self._records)})'

    def with_overrides(self, records: Mapping[str, RecordRules]) -> 'SelectorRuleSet':
        """Return a new rule set with some records replaced."""
        merged = dict(self._records)
        merged.update(records)
        return SelectorRuleSet(merged)

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Any]]) -> 'SelectorRuleSet':
        return cls({name: RecordRules.from_dict(rec) for name, rec in data.items()})


# ---------------------------------------------------------------------------
# Default Douban tables
# ---------------------------------------------------------------------------

def _info(label: str) -> SelectorRule:
    """``#info`` line on a subject page, e.g. ``导演: 韩寒``."""
    return SelectorRule('#info', pattern=label + r': (.+?)\n')


def _celebrity_info(label: str) -> SelectorRule:
    """``div.info`` list entry on a celebrity page, value on its own line."""
    return SelectorRule('div.info', pattern=label + r':\s*\n(.+?)\n')


SEARCH_RULES = RecordRules(
    scope='div.result-list',
    items='.result',
    fields={
        'cat': SelectorRule('div.title > h3 > span', pattern=r'\[(.+?)\]', last_match=True),
        'sid': SelectorRule('div.title a', attr='onclick', pattern=r'sid: (\d+?),',
                            last_match=True, required=True),
        'name': SelectorRule('div.title a', required=True),
        'rating': SelectorRule('div.rating-info > .rating_nums', strip=False),
        'img': SelectorRule('a.nbg > img', attr='src'),
        'year': SelectorRule('div.rating-info > .subject-cast', transform='last_segment'),
    },
    keep={'cat': ('电影',)},
)

MOVIE_RULES = RecordRules(
    scope='#content',
    fields={
        'sid': SelectorRule(
            'a.lnk-sharing', attr='share-id', required=True,
            fallback=SelectorRule('a.nbgnbg', attr='href', pattern=r'/subject/(\d+)/'),
        ),
        'name': SelectorRule('h1 > span:first-child', required=True),
        'year': SelectorRule('h1 > span.year', pattern=r'\((\d+?)\)', last_match=True),
        'rating': SelectorRule('div.rating_self strong.rating_num'),
        'img': SelectorRule('a.nbgnbg > img', attr='src'),
        'intro': SelectorRule('div.indent > span', transform='remove_copyright'),
        'director': _info('导演'),
        'writer': _info('编剧'),
        'actor': _info('主演'),
        'genre': _info('类型'),
        'site': _info('官方网站'),
        'country': _info('制片国家/地区'),
        'language': _info('语言'),
        'screen': _info('上映日期'),
        'duration': _info('片长'),
        'subname': _info('又名'),
        'imdb': _info('IMDb'),
    },
)

CELEBRITIES_RULES = RecordRules(
    scope='#content',
    items='ul.celebrities-list li.celebrity',
    fields={
        'id': SelectorRule('div.info a.name', attr='href', pattern=r'/(\d+?)/',
                           last_match=True, required=True),
        'img': SelectorRule('div.avatar', attr='style', pattern=r'url\((.+?)\)',
                            last_match=True),
        'name': SelectorRule('div.info a.name', transform='first_token'),
        'role': SelectorRule('div.info span.role', transform='first_token'),
    },
    keep={'role': ('导演', '配音', '演员')},
    limit=15,
)

CELEBRITY_RULES = RecordRules(
    scope='#content',
    fields={
        'id': SelectorRule(
            'a.lnk-sharing', attr='share-id', required=True,
            fallback=SelectorRule('a[href*="douban.com/celebrity/"]', attr='href',
                                  pattern=r'/celebrity/(\d+)/'),
        ),
        'name': SelectorRule('h1', required=True),
        'img': SelectorRule('a.nbg > img', attr='src'),
        'intro': SelectorRule('#intro span.short',
                              fallback=SelectorRule('#intro div.bd')),
        'gender': _celebrity_info('性别'),
        'constellation': _celebrity_info('星座'),
        'birthdate': _celebrity_info('出生日期'),
        'birthplace': _celebrity_info('出生地'),
        'role': _celebrity_info('职业'),
        'nickname': _celebrity_info('更多外文名'),
        'family': _celebrity_info('家庭成员'),
        'imdb': _celebrity_info('imdb编号'),
    },
)

WALLPAPERS_RULES = RecordRules(
    items='.poster-col3 > li',
    fields={
        'id': SelectorRule('', attr='data-id', required=True),
        'size': SelectorRule('div.prop'),
    },
)

DEFAULT_RULES = SelectorRuleSet({
    'search': SEARCH_RULES,
    'movie': MOVIE_RULES,
    'celebrities': CELEBRITIES_RULES,
    'celebrity': CELEBRITY_RULES,
    'wallpapers': WALLPAPERS_RULES,
})


def load_rules(path: str, base: Optional[SelectorRuleSet] = None) -> SelectorRuleSet:
    """Load record rules from a JSON file on top of *base* (defaults).

    The file maps record names (``"movie"``, ``"search"`` …) to objects with
    the same keys as ``RecordRules``; records not present keep their
    default rules.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data: Dict[str, Any] = json.load(f)
    overrides = SelectorRuleSet.from_dict(data)
    logger.info('Loaded selector overrides for %s from %s', sorted(overrides), path)
    base = base or DEFAULT_RULES
    return base.with_overrides({name: overrides[name] for name in overrides})
