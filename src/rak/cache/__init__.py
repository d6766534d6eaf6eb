"""Disk-based content caching for rak.

This package provides :class:`CacheStore`, a persistent store that keeps
the last successful response for every URL using :mod:`diskcache`, and
:func:`locator_for_url`, which maps a URL onto its cache slot.

The store is consumed by :class:`~rak.retrieval.Retriever`, which decides
when an entry is fresh enough to serve and when a stale one is used as a
fallback.
"""

from rak.cache.store import CacheStore, locator_for_url

__all__ = ["CacheStore", "locator_for_url"]
