"""
Tests for douban_api.selectors rule tables.
"""
import os
import sys
import json
from dataclasses import FrozenInstanceError

import pytest

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from douban_api.selectors import (
    DEFAULT_RULES,
    RecordRules,
    SelectorRule,
    SelectorRuleSet,
    load_rules,
)


class TestSelectorRule:
    def test_defaults(self):
        rule = SelectorRule('h1')
        assert rule.attr is None
        assert rule.strip is True
        assert rule.default == ''
        assert rule.required is False

    def test_unknown_transform_rejected(self):
        with pytest.raises(ValueError):
            SelectorRule('h1', transform='uppercase')

    def test_frozen(self):
        rule = SelectorRule('h1')
        with pytest.raises(FrozenInstanceError):
            rule.selector = 'h2'

    def test_from_dict_with_fallback(self):
        rule = SelectorRule.from_dict({
            'selector': 'a.lnk-sharing',
            'attr': 'share-id',
            'required': True,
            'fallback': {'selector': 'a.nbgnbg', 'attr': 'href', 'pattern': r'/subject/(\d+)/'},
        })
        assert rule.required is True
        assert rule.fallback == SelectorRule('a.nbgnbg', attr='href', pattern=r'/subject/(\d+)/')


class TestRecordRules:
    def test_fields_are_read_only(self):
        rules = RecordRules(fields={'name': SelectorRule('h1')})
        with pytest.raises(TypeError):
            rules.fields['name'] = SelectorRule('h2')

    def test_source_dict_not_shared(self):
        source = {'name': SelectorRule('h1')}
        rules = RecordRules(fields=source)
        source['extra'] = SelectorRule('p')
        assert 'extra' not in rules.fields

    def test_is_list_and_required(self):
        assert DEFAULT_RULES['search'].is_list
        assert not DEFAULT_RULES['movie'].is_list
        assert set(DEFAULT_RULES['movie'].required_fields()) == {'sid', 'name'}

    def test_from_dict(self):
        rules = RecordRules.from_dict({
            'scope': '#content',
            'items': 'li',
            'keep': {'role': ['演员']},
            'limit': '5',
            'fields': {'id': {'selector': 'a', 'attr': 'href', 'required': True}},
        })
        assert rules.keep['role'] == ('演员',)
        assert rules.limit == 5
        assert rules.fields['id'].required is True


class TestSelectorRuleSet:
    def test_default_records(self):
        assert set(DEFAULT_RULES) == {'search', 'movie', 'celebrities', 'celebrity', 'wallpapers'}
        assert len(DEFAULT_RULES) == 5

    def test_missing_record(self):
        with pytest.raises(KeyError, match='book'):
            DEFAULT_RULES['book']

    def test_with_overrides_leaves_original(self):
        replacement = RecordRules(fields={'name': SelectorRule('h2', required=True)})
        updated = DEFAULT_RULES.with_overrides({'movie': replacement})
        assert updated['movie'] is replacement
        assert DEFAULT_RULES['movie'] is not replacement
        assert updated['search'] is DEFAULT_RULES['search']

    def test_cast_list_limits(self):
        rules = DEFAULT_RULES['celebrities']
        assert rules.limit == 15
        assert rules.keep['role'] == ('导演', '配音', '演员')


class TestLoadRules:
    def test_overrides_only_named_records(self, tmp_path):
        path = tmp_path / 'selectors.json'
        path.write_text(json.dumps({
            'movie': {
                'scope': '#wrapper',
                'fields': {
                    'sid': {'selector': 'a.share', 'attr': 'data-sid', 'required': True},
                    'name': {'selector': 'h1', 'required': True},
                },
            },
        }), encoding='utf-8')

        rules = load_rules(str(path))

        assert isinstance(rules, SelectorRuleSet)
        assert rules['movie'].scope == '#wrapper'
        assert rules['search'] is DEFAULT_RULES['search']

    def test_invalid_transform_in_file(self, tmp_path):
        path = tmp_path / 'selectors.json'
        path.write_text(json.dumps({
            'movie': {'fields': {'name': {'selector': 'h1', 'transform': 'shout'}}},
        }), encoding='utf-8')

        with pytest.raises(ValueError):
            load_rules(str(path))
