"""
ScrapeService – one method per logical API operation.

Each operation builds a ``ResourceKey``, asks ``ResourceCache`` for the
value and, on a miss, runs a population coroutine that chains
``DocumentFetcher`` → ``HtmlParser``.  Fetch outcomes and parse errors are
mapped to the two caller-visible failures:

- ``ResourceNotFound``  – HTTP 404 upstream or a page missing its id/name
- ``UpstreamUnavailable`` – timeouts, other HTTP errors, non-HTML bodies

Nothing is retried here; a failed population is simply not cached, so the
next request tries again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, List, Mapping, Optional
from urllib.parse import quote, urlsplit

from douban_api.cache import ResourceCache
from douban_api.config import ServiceConfig
from douban_api.errors import (
    DoubanApiError,
    FetchError,
    FetchTimeout,
    FetchUpstreamError,
    ParseMalformedDocument,
    ParseMissingField,
    ResourceNotFound,
    UpstreamUnavailable,
)
from douban_api.fetcher import DocumentFetcher, FetchOutcome, FetchStatus
from douban_api.models import (
    CastMember,
    CelebrityDetail,
    ImagePayload,
    MovieDetail,
    MovieSummary,
    ResourceKey,
    ResourceKind,
    Variant,
    Wallpaper,
)
from douban_api.parsers import HtmlParser
from douban_api.selectors import DEFAULT_RULES, SelectorRuleSet

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 3

# Hosts the image pass-through will fetch from, subdomains included.
IMAGE_HOSTS = ('doubanio.com', 'douban.com')


def is_douban_image_url(url: str) -> bool:
    """True for http(s) URLs on a Douban image or site host."""
    parts = urlsplit(url)
    if parts.scheme not in ('http', 'https'):
        return False
    host = (parts.hostname or '').lower()
    return any(host == domain or host.endswith('.' + domain) for domain in IMAGE_HOSTS)


def proxy_image_url(proxy: str, img: str) -> str:
    """Wrap *img* for the ``/proxy?url=`` endpoint at *proxy*."""
    if not proxy or not img:
        return img
    return f'{proxy}?url={quote(img, safe="")}'


class ScrapeService:
    """Orchestrates fetch, parse and cache for every API operation."""

    def __init__(
        self,
        fetcher: DocumentFetcher,
        rules: SelectorRuleSet = DEFAULT_RULES,
        cache: Optional[ResourceCache] = None,
        config: Optional[ServiceConfig] = None,
    ):
        self.config = config or fetcher.config
        self.fetcher = fetcher
        self.parser = HtmlParser(rules)
        self.cache = cache or ResourceCache(
            capacity=self.config.cache_capacity,
            ttl=self.config.cache_ttl,
        )

    async def aclose(self) -> None:
        await self.fetcher.aclose()

    # ------------------------------------------------------------------ #
    # URL building
    # ------------------------------------------------------------------ #
    def subject_url(self, sid: str) -> str:
        return f'{self.config.upstream_base}/subject/{quote(sid)}/'

    def celebrities_url(self, sid: str) -> str:
        return f'{self.config.upstream_base}/subject/{quote(sid)}/celebrities'

    def celebrity_url(self, cid: str) -> str:
        return f'{self.config.upstream_base}/celebrity/{quote(cid)}/'

    def photos_url(self, sid: str) -> str:
        return f'{self.config.upstream_base}/subject/{quote(sid)}/photos'

    # ------------------------------------------------------------------ #
    # Pipeline steps
    # ------------------------------------------------------------------ #
    async def _fetch(self, url: str, kind: ResourceKind,
                     params: Optional[Mapping[str, str]] = None) -> FetchOutcome:
        """Fetch *url*, raising the caller-visible error for any failure."""
        outcome = await self.fetcher.fetch(url, kind, params=params)
        if outcome.ok:
            return outcome
        if outcome.status is FetchStatus.NOT_FOUND:
            raise ResourceNotFound(f'{kind.value} not found: {url}')

        if outcome.status is FetchStatus.TIMEOUT:
            cause: FetchError = FetchTimeout(url)
        else:
            cause = FetchUpstreamError(url, outcome.status_code, outcome.cause)
        raise UpstreamUnavailable(str(cause)) from cause

    def _parse(self, outcome: FetchOutcome, kind: ResourceKind) -> Any:
        try:
            return self.parser.parse(outcome.text, kind)
        except ParseMissingField as exc:
            logger.info('Treating %s as not found: %s', outcome.url, exc)
            raise ResourceNotFound(str(exc)) from exc
        except ParseMalformedDocument as exc:
            logger.warning('Unusable document from %s: %s', outcome.url, exc)
            raise UpstreamUnavailable(str(exc)) from exc

    async def _fetch_and_parse(self, url: str, kind: ResourceKind,
                               params: Optional[Mapping[str, str]] = None) -> Any:
        outcome = await self._fetch(url, kind, params)
        return self._parse(outcome, kind)

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #
    async def search(self, q: str, count: int = 0, proxy: str = '') -> List[MovieSummary]:
        """Search movies by title.

        The full filtered result list is cached per query; *count* (falling
        back to ``DEFAULT_SEARCH_LIMIT``) and the *proxy* rewrite of image
        URLs are applied per request on copies.
        """
        if not q:
            return []
        key = ResourceKey(ResourceKind.SEARCH, q)

        async def populate() -> List[MovieSummary]:
            return await self._fetch_and_parse(
                self.config.search_url, ResourceKind.SEARCH, params={'q': q},
            )

        movies = await self.cache.get_or_populate(key, populate)
        limit = count if count > 0 else DEFAULT_SEARCH_LIMIT
        return [replace(m, img=proxy_image_url(proxy, m.img)) for m in movies[:limit]]

    async def search_full(self, q: str, count: int = 0) -> List[MovieDetail]:
        """Search, then expand every hit into its brief ``MovieDetail``.

        Hits whose detail page fails are dropped; order follows the search.
        """
        movies = await self.search(q, count)
        results = await asyncio.gather(
            *(self.movie(m.sid) for m in movies),
            return_exceptions=True,
        )
        details = []
        for summary, result in zip(movies, results):
            if isinstance(result, DoubanApiError):
                logger.warning('Dropping search hit %s: %s', summary.sid, result)
                continue
            if isinstance(result, BaseException):
                raise result
            details.append(result)
        return details

    async def movie(self, sid: str, full: bool = False) -> MovieDetail:
        """Movie detail; *full* also embeds the cast from the celebrities page."""
        if full:
            key = ResourceKey(ResourceKind.MOVIE_FULL, sid, Variant.FULL)
        else:
            key = ResourceKey(ResourceKind.MOVIE_BRIEF, sid, Variant.BRIEF)

        async def populate() -> MovieDetail:
            detail = await self._fetch_and_parse(self.subject_url(sid), key.kind)
            if not full:
                return detail
            try:
                cast = await self.celebrities(sid)
            except DoubanApiError as exc:
                logger.warning('Cast for %s unavailable, returning detail without it: %s', sid, exc)
                return replace(detail, celebrities=[], cast_complete=False)
            return replace(detail, celebrities=list(cast), cast_complete=True)

        # A detail without its cast is served but not cached, so the next
        # full request retries the celebrities page.
        return await self.cache.get_or_populate(
            key, populate, should_store=lambda detail: detail.cast_complete,
        )

    async def celebrities(self, sid: str) -> List[CastMember]:
        key = ResourceKey(ResourceKind.CELEBRITIES, sid)

        async def populate() -> List[CastMember]:
            return await self._fetch_and_parse(self.celebrities_url(sid), ResourceKind.CELEBRITIES)

        return await self.cache.get_or_populate(key, populate)

    async def celebrity(self, cid: str) -> CelebrityDetail:
        key = ResourceKey(ResourceKind.CELEBRITY, cid)

        async def populate() -> CelebrityDetail:
            return await self._fetch_and_parse(self.celebrity_url(cid), ResourceKind.CELEBRITY)

        return await self.cache.get_or_populate(key, populate)

    async def wallpapers(self, sid: str) -> List[Wallpaper]:
        key = ResourceKey(ResourceKind.WALLPAPERS, sid)
        params = {'type': 'W', 'start': '0', 'sortby': 'size', 'size': 'a', 'subtype': 'a'}

        async def populate() -> List[Wallpaper]:
            return await self._fetch_and_parse(self.photos_url(sid), ResourceKind.WALLPAPERS, params)

        return await self.cache.get_or_populate(key, populate)

    async def photo(self, sid: str) -> ImagePayload:
        """Poster image bytes for a movie, resolved through its detail page."""
        key = ResourceKey(ResourceKind.PHOTO, sid)

        async def populate() -> ImagePayload:
            detail = await self.movie(sid)
            if not detail.img:
                raise ResourceNotFound(f'Movie {sid} has no poster')
            return await self.proxy_image(detail.img)

        return await self.cache.get_or_populate(key, populate)

    async def proxy_image(self, url: str) -> ImagePayload:
        """Fetch arbitrary image bytes, uncached."""
        outcome = await self._fetch(url, ResourceKind.PHOTO)
        return ImagePayload(
            content=outcome.body,
            content_type=outcome.content_type or 'application/octet-stream',
            source_url=outcome.url,
        )
