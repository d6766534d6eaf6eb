"""HTTP client module for rak.

Provides the :class:`Fetcher` interface and :class:`HttpFetcher`, a
blocking implementation that wraps :mod:`httpx` with plain-text
negotiation, retry with exponential backoff, and error mapping.

Example::

    from rak.client import HttpFetcher

    with HttpFetcher() as fetcher:
        body = fetcher.download("https://wttr.in/Oslo", "rak/0.3.0")
"""

from rak.client.fetcher import Fetcher, HttpFetcher, normalize_url

__all__ = ["Fetcher", "HttpFetcher", "normalize_url"]
