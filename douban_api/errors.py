"""
Exception hierarchy for the fetch–parse–cache pipeline.

Fetch and parse failures are raised close to where they happen and are
translated by ``ScrapeService`` into one of the two caller-visible outcomes:
``ResourceNotFound`` or ``UpstreamUnavailable``.
"""

from __future__ import annotations

from typing import Optional


class DoubanApiError(Exception):
    """Base class for every error raised by the ``douban_api`` package."""


# ---------------------------------------------------------------------------
# Fetch errors
# ---------------------------------------------------------------------------

class FetchError(DoubanApiError):
    """The upstream document could not be retrieved."""

    def __init__(self, url: str, message: str = ''):
        self.url = url
        super().__init__(message or f'Failed to fetch {url}')


class FetchTimeout(FetchError):
    def __init__(self, url: str):
        super().__init__(url, f'Timed out fetching {url}')


class FetchUpstreamError(FetchError):
    """Upstream answered with an error status or the transport failed."""

    def __init__(self, url: str, status: Optional[int] = None, cause: str = ''):
        self.status = status
        self.cause = cause
        if status is not None:
            message = f'Upstream returned HTTP {status} for {url}'
        else:
            message = f'Upstream request failed for {url}: {cause}'
        super().__init__(url, message)


# ---------------------------------------------------------------------------
# Parse errors
# ---------------------------------------------------------------------------

class ParseError(DoubanApiError):
    """The document was fetched but could not be turned into a record."""


class ParseMissingField(ParseError):
    """A required field (id, name …) was not found in the document."""

    def __init__(self, field: str, record: str = ''):
        self.field = field
        self.record = record
        where = f' in {record} page' if record else ''
        super().__init__(f'Required field {field!r} missing{where}')


class ParseMalformedDocument(ParseError):
    """The body is empty or contains no HTML markup at all."""


# ---------------------------------------------------------------------------
# Caller-visible outcomes
# ---------------------------------------------------------------------------

class ResourceNotFound(DoubanApiError):
    """The requested movie / celebrity does not exist upstream."""


class UpstreamUnavailable(DoubanApiError):
    """Upstream timed out, failed, or returned an unusable document."""
