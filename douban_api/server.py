"""
FastAPI REST layer over ``ScrapeService``.

Run with::

    uvicorn douban_api.server:app --port 8080

or through ``scripts/serve.py`` which also applies command-line flags.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Header, Query, Request
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel

from douban_api.config import ServiceConfig, load_config
from douban_api.errors import ResourceNotFound, UpstreamUnavailable
from douban_api.fetcher import DocumentFetcher
from douban_api.selectors import DEFAULT_RULES, load_rules
from douban_api.service import ScrapeService, is_douban_image_url

logger = logging.getLogger(__name__)

INDEX_HTML = """
接口列表：<br/>
/movies?q={movie_name}<br/>
/movies?q={movie_name}&type=full<br/>
/movies/{sid}<br/>
/movies/{sid}?type=full<br/>
/movies/{sid}/celebrities<br/>
/movies/{sid}/photos<br/>
/celebrities/{cid}<br/>
/photo/{sid}<br/>
/proxy?url={image_url}<br/>
"""


def build_service(config: ServiceConfig) -> ScrapeService:
    """Wire fetcher, rules and cache from *config*."""
    rules = load_rules(config.selectors_file) if config.selectors_file else DEFAULT_RULES
    return ScrapeService(DocumentFetcher(config), rules=rules, config=config)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = 'ok'
    cache_size: int = 0
    cache_capacity: int = 0
    cache_ttl: float = 0.0


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

def create_app(config: Optional[ServiceConfig] = None,
               service: Optional[ScrapeService] = None) -> FastAPI:
    """Create the application.

    When *service* is given it is used as-is (and not closed on shutdown);
    otherwise one is built from *config* (or ``load_config()``) at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, 'service', None) is None:
            owned = build_service(config or load_config())
            app.state.service = owned
            logger.info('Service started (cache capacity=%d, ttl=%ss)',
                        owned.cache.capacity, owned.cache.ttl)
        try:
            yield
        finally:
            if owned is not None:
                await owned.aclose()
                app.state.service = None

    app = FastAPI(
        title='Douban API',
        version='0.3.0',
        description='Structured JSON API for Douban movie pages.',
        lifespan=lifespan,
    )
    app.state.service = service

    def _service(request: Request) -> ScrapeService:
        return request.app.state.service

    # -----------------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------------

    @app.get('/', response_class=HTMLResponse)
    async def index():
        return INDEX_HTML

    @app.get('/health', response_model=HealthResponse)
    async def health_check(request: Request):
        """Liveness probe with cache statistics."""
        cache = _service(request).cache
        return HealthResponse(cache_size=len(cache), cache_capacity=cache.capacity,
                              cache_ttl=cache.ttl)

    @app.get('/movies')
    async def movies(
        request: Request,
        q: str = '',
        search_type: str = Query('', alias='type'),
        s: str = '',
        count: Optional[int] = None,
        user_agent: Optional[str] = Header(None),
    ):
        """Search movies; ``type=full`` expands every hit into its detail."""
        if not q:
            return []
        service = _service(request)

        count = count or 0
        # Clients without a User-Agent (the Jellyfin plugin) get the
        # configured limit instead of the built-in default.
        if count == 0 and not user_agent:
            count = service.config.search_limit

        try:
            if search_type == 'full':
                results = await service.search_full(q, count)
            else:
                results = await service.search(q, count, proxy=s)
        except ResourceNotFound:
            return []
        except UpstreamUnavailable as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return [r.to_dict() for r in results]

    @app.get('/movies/{sid}')
    async def movie(request: Request, sid: str,
                    detail_type: str = Query('', alias='type')):
        """Movie detail; ``type=full`` embeds the cast list."""
        try:
            result = await _service(request).movie(sid, full=detail_type == 'full')
        except ResourceNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except UpstreamUnavailable as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return result.to_dict()

    @app.get('/movies/{sid}/celebrities')
    async def celebrities(request: Request, sid: str):
        try:
            result = await _service(request).celebrities(sid)
        except ResourceNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except UpstreamUnavailable as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return [c.to_dict() for c in result]

    @app.get('/movies/{sid}/photos')
    async def wallpapers(request: Request, sid: str):
        """Wallpaper-sized stills of a movie."""
        try:
            result = await _service(request).wallpapers(sid)
        except ResourceNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except UpstreamUnavailable as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return [w.to_dict() for w in result]

    @app.get('/celebrities/{cid}')
    async def celebrity(request: Request, cid: str):
        try:
            result = await _service(request).celebrity(cid)
        except ResourceNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except UpstreamUnavailable as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return result.to_dict()

    @app.get('/photo/{sid}')
    async def photo(request: Request, sid: str):
        """Poster image bytes with the upstream content type."""
        try:
            payload = await _service(request).photo(sid)
        except ResourceNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except UpstreamUnavailable as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return Response(content=payload.content, media_type=payload.content_type)

    @app.get('/proxy')
    async def proxy(request: Request, url: str):
        """Pass a Douban image through with Douban's Referer.

        Only Douban hosts are accepted; anything else is a 400.
        """
        if not is_douban_image_url(url):
            raise HTTPException(status_code=400, detail=f'Not a Douban image URL: {url}')
        try:
            payload = await _service(request).proxy_image(url)
        except ResourceNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except UpstreamUnavailable as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return Response(content=payload.content, media_type=payload.content_type)

    return app


app = create_app()
