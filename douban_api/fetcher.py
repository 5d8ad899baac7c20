"""
Document fetcher for Douban pages and images.

Issues exactly one outbound GET per call through a shared
``httpx.AsyncClient`` connection pool and reports the result as a
``FetchOutcome`` instead of raising, so callers decide how each failure
class is surfaced.

Usage::

    async with DocumentFetcher(config) as fetcher:
        outcome = await fetcher.fetch(url, ResourceKind.MOVIE_BRIEF)
        if outcome.ok:
            html = outcome.text
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional
from urllib.parse import urlsplit, urlunsplit

import httpx

from douban_api.config import ServiceConfig, DEFAULT_UPSTREAM_BASE
from douban_api.models import ResourceKind

logger = logging.getLogger(__name__)

# The configured cookie is only ever sent to hosts under this domain.
COOKIE_DOMAIN = '.douban.com'


class FetchStatus(enum.Enum):
    OK = 'ok'
    NOT_FOUND = 'not_found'
    UPSTREAM_ERROR = 'upstream_error'
    TIMEOUT = 'timeout'


@dataclass(frozen=True)
class FetchOutcome:
    """Tagged result of one fetch.

    ``body`` is only meaningful for ``OK``; ``status_code`` carries the HTTP
    status when upstream answered, ``cause`` a short reason otherwise.
    """
    status: FetchStatus
    url: str
    body: bytes = b''
    content_type: str = ''
    encoding: Optional[str] = None
    status_code: Optional[int] = None
    cause: str = ''

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK

    @property
    def text(self) -> str:
        return self.body.decode(self.encoding or 'utf-8', errors='replace')

    @classmethod
    def success(cls, url: str, body: bytes, content_type: str = '',
                encoding: Optional[str] = None, status_code: int = 200) -> 'FetchOutcome':
        return cls(FetchStatus.OK, url, body=body, content_type=content_type,
                   encoding=encoding, status_code=status_code)

    @classmethod
    def not_found(cls, url: str) -> 'FetchOutcome':
        return cls(FetchStatus.NOT_FOUND, url, status_code=404)

    @classmethod
    def upstream_error(cls, url: str, status_code: Optional[int] = None,
                       cause: str = '') -> 'FetchOutcome':
        return cls(FetchStatus.UPSTREAM_ERROR, url, status_code=status_code, cause=cause)

    @classmethod
    def timeout(cls, url: str) -> 'FetchOutcome':
        return cls(FetchStatus.TIMEOUT, url, cause='timeout')


class DocumentFetcher:
    """Fetch Douban HTML pages and image bytes.

    Features:
    - Browser-like headers, with image-specific headers for ``PHOTO``
    - Bounded connect / total timeouts (``ServiceConfig``)
    - Optional cookie string (``a=1; b=2``) sent with every request
    - Optional image proxy: image requests go to the proxy host with the
      original path and query untouched
    """

    USER_AGENT = (
        'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/92.0.4515.131 Safari/537.36'
    )

    PAGE_HEADERS = {
        'User-Agent': USER_AGENT,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'zh-CN,zh;q=0.9,en-US;q=0.8,en;q=0.7',
    }

    IMAGE_HEADERS = {
        'User-Agent': USER_AGENT,
        'Accept': 'image/avif,image/webp,image/apng,image/*,*/*;q=0.8',
    }

    def __init__(self, config: Optional[ServiceConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            config: Timeouts, cookie, proxy and upstream settings.
            transport: Custom httpx transport (``httpx.MockTransport`` in tests).
        """
        self.config = config or ServiceConfig()
        origin = self.config.upstream_base or DEFAULT_UPSTREAM_BASE
        self.origin = origin
        self.referer = origin + '/'
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.fetch_timeout, connect=self.config.connect_timeout),
            cookies=self._parse_cookie(self.config.cookie),
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> 'DocumentFetcher':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _parse_cookie(cookie: str) -> httpx.Cookies:
        """``'bid=abc; ll="108288"'`` → cookies scoped to ``COOKIE_DOMAIN``.

        Proxied image hosts and any other third party never receive them.
        """
        cookies = httpx.Cookies()
        for part in cookie.split(';'):
            name, sep, value = part.strip().partition('=')
            if sep and name:
                cookies.set(name, value, domain=COOKIE_DOMAIN)
        return cookies

    def headers_for(self, kind: ResourceKind) -> Dict[str, str]:
        if kind is ResourceKind.PHOTO:
            headers = dict(self.IMAGE_HEADERS)
            headers['Referer'] = self.referer
            return headers
        headers = dict(self.PAGE_HEADERS)
        headers['Origin'] = self.origin
        headers['Referer'] = self.referer
        return headers

    def rewrite_image_url(self, url: str) -> str:
        """Point *url* at the configured image proxy host.

        Only scheme and host change; path and query are kept so the proxy
        can forward the request unchanged.
        """
        if not self.config.image_proxy:
            return url
        proxy = urlsplit(self.config.image_proxy)
        original = urlsplit(url)
        path = proxy.path.rstrip('/') + original.path
        return urlunsplit((proxy.scheme, proxy.netloc, path, original.query, ''))

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    async def fetch(self, url: str, kind: ResourceKind,
                    params: Optional[Mapping[str, str]] = None) -> FetchOutcome:
        """Issue one GET and classify the response.

        Never raises for network or HTTP errors; the outcome's ``status``
        tells the caller what happened.
        """
        if kind is ResourceKind.PHOTO:
            url = self.rewrite_image_url(url)

        try:
            response = await self._client.get(url, params=params, headers=self.headers_for(kind))
        except httpx.TimeoutException:
            logger.warning('Timeout fetching %s', url)
            return FetchOutcome.timeout(url)
        except httpx.HTTPError as exc:
            logger.warning('Request to %s failed: %s', url, type(exc).__name__)
            return FetchOutcome.upstream_error(url, cause=f'{type(exc).__name__}: {exc}')

        status_code = response.status_code
        if status_code == 404:
            logger.debug('Not found: %s', url)
            return FetchOutcome.not_found(url)
        if status_code >= 400:
            logger.warning('Upstream returned HTTP %d for %s', status_code, url)
            return FetchOutcome.upstream_error(url, status_code=status_code)

        logger.debug('Fetched %s (%d bytes)', url, len(response.content))
        return FetchOutcome.success(
            url,
            response.content,
            content_type=response.headers.get('content-type', ''),
            encoding=response.encoding,
            status_code=status_code,
        )
