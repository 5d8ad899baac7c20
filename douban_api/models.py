"""
Data models for the Douban scraping API.

Records use dataclasses for lightweight internal usage and easy
serialisation to dicts / JSON (for the FastAPI REST layer).  Every string
field defaults to ``''`` so JSON consumers never see ``null``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, asdict
from typing import List, Optional


# ---------------------------------------------------------------------------
# Cache keys
# ---------------------------------------------------------------------------

class ResourceKind(enum.Enum):
    """Which upstream page / endpoint a cached value belongs to."""
    SEARCH = 'search'
    MOVIE_BRIEF = 'movie_brief'
    MOVIE_FULL = 'movie_full'
    CELEBRITIES = 'celebrities'
    CELEBRITY = 'celebrity'
    PHOTO = 'photo'
    WALLPAPERS = 'wallpapers'


class Variant(enum.Enum):
    BRIEF = 'brief'
    FULL = 'full'


@dataclass(frozen=True)
class ResourceKey:
    """Identifies one cacheable unit of work.

    Hashes and compares by value, so two keys built independently for the
    same request hit the same cache slot.
    """
    kind: ResourceKind
    identifier: str
    variant: Variant = Variant.BRIEF

    def __str__(self) -> str:
        return f'{self.kind.value}:{self.identifier}:{self.variant.value}'


# ---------------------------------------------------------------------------
# Cast member (standalone list and embedded in MovieDetail)
# ---------------------------------------------------------------------------

@dataclass
class CastMember:
    """One person from a movie's celebrities page."""
    id: str = ''
    img: str = ''
    name: str = ''
    role: str = ''

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Search result
# ---------------------------------------------------------------------------

@dataclass
class MovieSummary:
    """One search hit.  ``rating`` and ``year`` are kept as page text."""
    cat: str = ''
    sid: str = ''
    name: str = ''
    rating: str = ''
    img: str = ''
    year: str = ''

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Movie detail
# ---------------------------------------------------------------------------

@dataclass
class MovieDetail:
    """All metadata extracted from a movie's subject page.

    ``celebrities`` is only filled for the full variant, which also scrapes
    the celebrities page.  ``cast_complete`` reports whether that secondary
    scrape succeeded; it is not part of the JSON body.
    """
    sid: str = ''
    name: str = ''
    rating: str = ''
    img: str = ''
    year: str = ''
    intro: str = ''
    director: str = ''
    writer: str = ''
    actor: str = ''
    genre: str = ''
    site: str = ''
    country: str = ''
    language: str = ''
    screen: str = ''
    duration: str = ''
    subname: str = ''
    imdb: str = ''
    celebrities: List[CastMember] = field(default_factory=list)
    cast_complete: bool = True

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop('cast_complete')
        return data


# ---------------------------------------------------------------------------
# Celebrity detail
# ---------------------------------------------------------------------------

@dataclass
class CelebrityDetail:
    """Everything shown on a celebrity's own page."""
    id: str = ''
    img: str = ''
    name: str = ''
    role: str = ''
    intro: str = ''
    gender: str = ''
    constellation: str = ''
    birthdate: str = ''
    birthplace: str = ''
    nickname: str = ''
    imdb: str = ''
    family: str = ''

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Wallpapers / images
# ---------------------------------------------------------------------------

@dataclass
class Wallpaper:
    """A wallpaper-sized still from a movie's photos page."""
    id: str = ''
    small: str = ''
    medium: str = ''
    large: str = ''
    size: str = ''
    width: str = ''
    height: str = ''

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ImagePayload:
    """Raw image bytes passed through to the client untouched."""
    content: bytes
    content_type: str = 'application/octet-stream'
    source_url: Optional[str] = None
