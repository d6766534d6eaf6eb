"""Cache-first retrieval with stale-cache fallback.

:class:`Retriever` turns resolved :class:`~rak.models.RequestParams` into
content by walking a small state machine::

    INIT -> CACHE_CHECK -> CACHED                      (fresh entry)
                        -> FETCH -> RECEIVED           (download ok)
                                 -> CACHE_BACKUP       (download failed, entry exists)
                                 -> FAILED             (download failed, no entry)

``CACHE_CHECK`` is skipped when cache reads are disabled, which also means
no backup is known and a failed download ends in ``FAILED``.  Fresh
network data is preferred, a stale entry beats no answer, and content is
never made up when both sources are unavailable.
"""

from __future__ import annotations

from rak.cache import CacheStore, locator_for_url
from rak.client import Fetcher, normalize_url
from rak.exceptions import CacheWriteError, FetchError
from rak.models import Provenance, RequestParams, Retrieval
from rak.output import debug, warning


class Retriever:
    """Serve a request from the cache or the network.

    Args:
        cache: Store holding the last successful response per URL.
        fetcher: Downloads content when the cache cannot answer.
    """

    def __init__(self, cache: CacheStore, fetcher: Fetcher) -> None:
        self._cache = cache
        self._fetcher = fetcher

    def retrieve(self, params: RequestParams) -> Retrieval:
        """Return content for ``params.query`` and where it came from.

        Args:
            params: Effective request settings.  ``cache_read`` enables the
                cache check, ``cache_write`` stores fresh downloads, and
                ``max_age`` (minutes) decides freshness.

        Returns:
            A :class:`~rak.models.Retrieval` tagged ``cached``,
            ``received``, or ``cache-backup``.

        Raises:
            InvalidUsageError: If the query is not a usable URL.
            CacheReadError: If an entry reported to exist cannot be read.
            FetchError: If the download failed and no entry existed.
        """
        url = normalize_url(params.query)
        locator = locator_for_url(url)

        exists = False
        if params.cache_read:
            exists, fresh = self._cache.check(locator, params.max_age)
            debug(f"Cache check for {url}: exists={exists} fresh={fresh}")
            if exists and fresh:
                return Retrieval(content=self._cache.read(locator), provenance=Provenance.CACHED)

        try:
            content = self._fetcher.download(url, params.user_agent)
        except FetchError as exc:
            if not exists:
                raise
            warning(f"Using old cache due to server failure: {exc}")
            return Retrieval(
                content=self._cache.read(locator), provenance=Provenance.CACHE_BACKUP
            )

        if params.cache_write:
            try:
                self._cache.write(locator, content)
            except CacheWriteError as exc:
                warning(f"Unable to write to cache: {exc}")

        return Retrieval(content=content, provenance=Provenance.RECEIVED)
