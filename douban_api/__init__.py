"""
Douban API – structured JSON for Douban movie pages.

This package fetches Douban HTML pages, extracts records with declarative
selector rules and serves them through a small FastAPI application backed
by a coalescing in-memory cache.

Quick start (Python)::

    from douban_api import DocumentFetcher, ScrapeService

    async with DocumentFetcher() as fetcher:
        service = ScrapeService(fetcher)
        movie = await service.movie('26862259', full=True)

Quick start (REST)::

    uvicorn douban_api.server:app --port 8080
"""

from douban_api.models import (
    ResourceKind,
    Variant,
    ResourceKey,
    CastMember,
    MovieSummary,
    MovieDetail,
    CelebrityDetail,
    Wallpaper,
    ImagePayload,
)
from douban_api.errors import (
    DoubanApiError,
    FetchError,
    FetchTimeout,
    FetchUpstreamError,
    ParseError,
    ParseMissingField,
    ParseMalformedDocument,
    ResourceNotFound,
    UpstreamUnavailable,
)
from douban_api.selectors import SelectorRule, RecordRules, SelectorRuleSet, DEFAULT_RULES
from douban_api.config import ServiceConfig, load_config
from douban_api.fetcher import DocumentFetcher, FetchOutcome, FetchStatus
from douban_api.parsers import HtmlParser, parse_document
from douban_api.cache import ResourceCache
from douban_api.service import ScrapeService

__version__ = '0.3.0'

__all__ = [
    # Models
    'ResourceKind',
    'Variant',
    'ResourceKey',
    'CastMember',
    'MovieSummary',
    'MovieDetail',
    'CelebrityDetail',
    'Wallpaper',
    'ImagePayload',
    # Errors
    'DoubanApiError',
    'FetchError',
    'FetchTimeout',
    'FetchUpstreamError',
    'ParseError',
    'ParseMissingField',
    'ParseMalformedDocument',
    'ResourceNotFound',
    'UpstreamUnavailable',
    # Pipeline
    'SelectorRule',
    'RecordRules',
    'SelectorRuleSet',
    'DEFAULT_RULES',
    'ServiceConfig',
    'load_config',
    'DocumentFetcher',
    'FetchOutcome',
    'FetchStatus',
    'HtmlParser',
    'parse_document',
    'ResourceCache',
    'ScrapeService',
]
