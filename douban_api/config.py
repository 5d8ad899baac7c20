"""
Service configuration.

Values are resolved in this order, later sources winning:

1. ``ServiceConfig`` defaults
2. an optional ``config.py`` at the project root (copy ``config.example.py``)
3. environment variables (``DOUBAN_API_LIMIT_SIZE``, ``DOUBAN_COOKIE`` …)
4. explicit keyword overrides, e.g. from command-line flags
"""

from __future__ import annotations

import importlib
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_UPSTREAM_BASE = 'https://movie.douban.com'
DEFAULT_SEARCH_URL = 'https://www.douban.com/search'


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration consumed by the fetch–parse–cache pipeline."""
    host: str = '0.0.0.0'
    port: int = 8080
    search_limit: int = 3
    cache_capacity: int = 100
    cache_ttl: float = 600.0
    fetch_timeout: float = 30.0
    connect_timeout: float = 10.0
    image_proxy: str = ''
    upstream_base: str = DEFAULT_UPSTREAM_BASE
    search_url: str = DEFAULT_SEARCH_URL
    cookie: str = ''
    selectors_file: Optional[str] = None
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    def __post_init__(self):
        if self.cache_capacity <= 0:
            raise ValueError('cache_capacity must be positive')
        if self.cache_ttl <= 0:
            raise ValueError('cache_ttl must be positive')
        if self.fetch_timeout <= 0:
            raise ValueError('fetch_timeout must be positive')
        # Normalise trailing slashes so URL building can always add one.
        object.__setattr__(self, 'upstream_base', self.upstream_base.rstrip('/'))
        object.__setattr__(self, 'image_proxy', self.image_proxy.rstrip('/'))


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value not in (None, '') else None


# field name -> (config.py constant, environment variable, caster)
_SOURCES: Dict[str, Tuple[str, str, Callable[[Any], Any]]] = {
    'host': ('HOST', 'DOUBAN_API_HOST', str),
    'port': ('PORT', 'DOUBAN_API_PORT', int),
    'search_limit': ('SEARCH_LIMIT', 'DOUBAN_API_LIMIT_SIZE', int),
    'cache_capacity': ('CACHE_SIZE', 'DOUBAN_CACHE_SIZE', int),
    'cache_ttl': ('CACHE_TTL', 'DOUBAN_CACHE_TTL', float),
    'fetch_timeout': ('FETCH_TIMEOUT', 'DOUBAN_FETCH_TIMEOUT', float),
    'connect_timeout': ('CONNECT_TIMEOUT', 'DOUBAN_CONNECT_TIMEOUT', float),
    'image_proxy': ('PROXY_IMG', 'DOUBAN_PROXY_IMG', str),
    'upstream_base': ('UPSTREAM_BASE', 'DOUBAN_UPSTREAM_BASE', str),
    'search_url': ('SEARCH_URL', 'DOUBAN_SEARCH_URL', str),
    'cookie': ('DOUBAN_COOKIE', 'DOUBAN_COOKIE', str),
    'selectors_file': ('SELECTORS_FILE', 'DOUBAN_SELECTORS_FILE', _optional_str),
    'log_level': ('LOG_LEVEL', 'LOG_LEVEL', str),
    'log_file': ('LOG_FILE', 'DOUBAN_LOG_FILE', _optional_str),
}


def _from_module(module_name: str) -> Dict[str, Any]:
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return {}
    values = {}
    for name, (constant, _env, caster) in _SOURCES.items():
        if hasattr(module, constant):
            values[name] = caster(getattr(module, constant))
    logger.debug('Loaded %d settings from %s.py', len(values), module_name)
    return values


def _from_environ(environ) -> Dict[str, Any]:
    values = {}
    for name, (_constant, env, caster) in _SOURCES.items():
        raw = environ.get(env)
        if raw is None or raw == '':
            continue
        try:
            values[name] = caster(raw)
        except ValueError:
            logger.warning('Ignoring invalid value for %s: %r', env, raw)
    return values


def load_config(module_name: Optional[str] = 'config', environ=None, **overrides) -> ServiceConfig:
    """Build a ``ServiceConfig`` from all configuration sources.

    Args:
        module_name: Python module holding uppercase settings; ``None``
            skips the module lookup.
        environ: Mapping used instead of ``os.environ`` (tests).
        **overrides: Field values that win over every other source.
            ``None`` values are ignored so unset CLI flags fall through.
    """
    values: Dict[str, Any] = {}
    if module_name:
        values.update(_from_module(module_name))
    values.update(_from_environ(os.environ if environ is None else environ))

    known = {f.name for f in fields(ServiceConfig)}
    for name, value in overrides.items():
        if name not in known:
            raise TypeError(f'Unknown configuration field: {name}')
        if value is not None:
            values[name] = value

    return replace(ServiceConfig(), **values)
