"""Disk-based content cache addressed by :class:`~rak.models.Locator`.

Uses :mod:`diskcache` to persist response bodies on the filesystem.  Every
locator namespace (one per origin) is its own :class:`diskcache.Cache`
directory under the cache root, and the locator key is the entry key
inside it.  The time of the last write is kept as the entry's diskcache
tag, which is what :meth:`CacheStore.check` compares against ``max_age``.

Entries are only ever overwritten, never expired or deleted: staleness
changes whether an entry is preferred over the network, nothing else.

Locators are derived from URLs by :func:`locator_for_url`.  Both parts are
URL-safe base64, so a namespace is always a single safe directory name.
"""

from __future__ import annotations

import base64
import sqlite3
import time
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlsplit

import diskcache

from rak.exceptions import CacheReadError, CacheWriteError
from rak.models import Locator

_STORE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")


def locator_for_url(url: str) -> Locator:
    """Derive the cache locator for an absolute URL.

    The namespace encodes ``scheme://host[:port]`` and the key encodes the
    path (``/`` when empty).  Query string and fragment are ignored, so one
    origin+path always maps to one slot.

    Example::

        locator_for_url("https://wttr.in/Oslo?format=3")
        # Locator(namespace=b64("https://wttr.in"), key=b64("/Oslo"))
    """
    parts = urlsplit(url)
    origin = f"{parts.scheme}://{parts.netloc}"
    return Locator(namespace=_b64(origin), key=_b64(parts.path or "/"))


class CacheStore:
    """Persistent locator -> bytes store with age-based freshness.

    Args:
        root: Directory holding one sub-directory per namespace.  It is
            created on the first write.
        clock: Returns the current time in seconds since the epoch.
            Defaults to :func:`time.time`; tests inject a fake clock.

    Example::

        with CacheStore("/tmp/rak-cache") as store:
            loc = locator_for_url("https://wttr.in/Oslo")
            store.write(loc, b"Sunny")
            store.check(loc, max_age=60)   # (True, True)
            store.read(loc)                # b"Sunny"
    """

    def __init__(self, root: str | Path, clock: Callable[[], float] = time.time) -> None:
        self._root = Path(root)
        self._clock = clock
        self._caches: dict[str, diskcache.Cache] = {}

    @property
    def root(self) -> Path:
        return self._root

    def __enter__(self) -> CacheStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def check(self, locator: Locator, max_age: int) -> tuple[bool, bool]:
        """Report whether an entry exists and whether it is fresh.

        Never raises: a missing namespace, a missing key, or an unreadable
        store all report ``(False, False)``.

        Args:
            locator: The slot to look up.
            max_age: Maximum age in minutes.  An entry exactly ``max_age``
                minutes old is still fresh.

        Returns:
            ``(exists, is_fresh)``.
        """
        try:
            cache = self._open(locator.namespace, create=False)
            if cache is None:
                return False, False
            _, written_at = cache.get(locator.key, default=None, tag=True, retry=True)
        except _STORE_ERRORS:
            return False, False

        if written_at is None:
            return False, False
        age = self._clock() - written_at
        return True, age <= max_age * 60

    def read(self, locator: Locator) -> bytes:
        """Return the stored content for *locator*.

        Raises:
            CacheReadError: If there is no entry or it cannot be read.
        """
        try:
            cache = self._open(locator.namespace, create=False)
            content = None
            if cache is not None:
                content = cache.get(locator.key, default=None, retry=True)
        except _STORE_ERRORS as exc:
            raise CacheReadError(f"Failed to read cache entry: {exc}") from exc

        if content is None:
            raise CacheReadError(f"No cache entry for {locator.namespace}/{locator.key}")
        return content

    def write(self, locator: Locator, content: bytes) -> None:
        """Store *content*, replacing any previous entry for *locator*.

        Creates the namespace directory if needed.  The entry and its
        write time are stored in one diskcache transaction.

        Raises:
            CacheWriteError: If the namespace cannot be created or the
                write fails.
        """
        try:
            cache = self._open(locator.namespace, create=True)
            cache.set(locator.key, bytes(content), tag=self._clock(), retry=True)
        except _STORE_ERRORS as exc:
            raise CacheWriteError(f"Failed to write cache entry: {exc}") from exc

    def close(self) -> None:
        """Close every open :class:`diskcache.Cache` and release resources."""
        for cache in self._caches.values():
            cache.close()
        self._caches.clear()

    def _open(self, namespace: str, create: bool) -> Optional[diskcache.Cache]:
        """Return the cache for *namespace*, or None if absent and not *create*."""
        cache = self._caches.get(namespace)
        if cache is not None:
            return cache

        directory = self._root / namespace
        if not directory.is_dir():
            if not create:
                return None
            directory.mkdir(mode=0o700, parents=True, exist_ok=True)

        cache = diskcache.Cache(str(directory))
        self._caches[namespace] = cache
        return cache
