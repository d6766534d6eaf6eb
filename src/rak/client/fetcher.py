"""Download URLs over HTTP.

This module provides the :class:`Fetcher` interface consumed by
:class:`~rak.retrieval.Retriever` and :class:`HttpFetcher`, its
implementation on top of :class:`httpx.Client`.  ``HttpFetcher`` layers on:

- **Plain-text negotiation** -- sends ``Accept: text/plain`` so services
  such as ``wttr.in`` and ``cht.sh`` answer with terminal output.
- **User-Agent** -- taken per request; an empty value keeps httpx's default.
- **Retry with backoff** -- retries network errors and timeouts with
  exponential delay (1 s, 2 s, 4 s, ...), ``max_retries`` times.
- **Error mapping** -- network failures and HTTP status >= 400 become
  :class:`~rak.exceptions.FetchError`, which lets the retriever fall back
  to a cached copy.

:func:`normalize_url` turns a user query such as ``wttr.in/Oslo`` into an
absolute URL before it is fetched or mapped to a cache locator.
"""

from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import urlsplit

import httpx

from rak.exceptions import FetchError, InvalidUsageError
from rak.models import RequestConfig
from rak.output import get_output

_SCHEME_PREFIX = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def normalize_url(query: str) -> str:
    """Return *query* as an absolute URL, defaulting the scheme to ``https``.

    Only a leading ``scheme://`` counts, so ``://`` inside the path or query
    (``example.com/r?to=https://x.org``) still gets the default scheme.

    Raises:
        InvalidUsageError: If the query has no host or an unsupported scheme.
    """
    url = query.strip()
    if not _SCHEME_PREFIX.match(url):
        url = f"https://{url}"

    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        raise InvalidUsageError(f"Unsupported URL scheme '{parts.scheme}' in '{query}'")
    if not parts.netloc:
        raise InvalidUsageError(f"Invalid URL '{query}': missing host")
    return url


class Fetcher(ABC):
    """Something that can download a URL.

    Implementations must raise :class:`~rak.exceptions.FetchError` for
    every failure the caller may want to recover from.  Fetchers are
    context managers; the default enter/exit do nothing.
    """

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(self, *args: object) -> None:
        return None

    @abstractmethod
    def download(self, url: str, user_agent: str) -> bytes:
        """Fetch *url* and return the response body.

        Args:
            url: Absolute URL.
            user_agent: Value for the ``User-Agent`` header; empty means
                the implementation's default.

        Raises:
            FetchError: If the content could not be retrieved.
        """
        ...


class HttpFetcher(Fetcher):
    """:class:`Fetcher` backed by :class:`httpx.Client`.

    Can be used as a context manager, in which case one connection pool is
    shared by every download; otherwise a client is opened per call.

    Args:
        config: Timeout, SSL verification, and retry settings.
        transport: Optional httpx transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        with HttpFetcher(RequestConfig(timeout=10)) as fetcher:
            body = fetcher.download("https://wttr.in/Oslo", "rak/0.3.0")
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpFetcher:
        self._client = self._make_client()
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Fetcher interface
    # ------------------------------------------------------------------ #

    def download(self, url: str, user_agent: str) -> bytes:
        headers = {"Accept": "text/plain"}
        if user_agent:
            headers["User-Agent"] = user_agent

        if self._client is not None:
            response = self._execute_with_retry(self._client, url, headers)
        else:
            with self._make_client() as client:
                response = self._execute_with_retry(client, url, headers)

        if response.status_code >= 400:
            raise FetchError(f"HTTP {response.status_code} from {url}")
        return response.content

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _make_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )

    def _execute_with_retry(
        self, client: httpx.Client, url: str, headers: dict[str, str]
    ) -> httpx.Response:
        """GET *url*, retrying network errors with exponential backoff."""
        max_retries = self._config.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                return client.get(url, headers=headers)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt  # 1, 2, 4, ...
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise FetchError(f"Failed to get {url}: {exc}") from exc
            except httpx.HTTPError as exc:
                raise FetchError(f"Failed to get {url}: {exc}") from exc

        raise FetchError(f"Failed to get {url}")  # pragma: no cover
