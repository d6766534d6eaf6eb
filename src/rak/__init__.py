"""rak -- fetch text from the web through named shortcuts and a local cache.

A query is either a URL (``rak wttr.in/Oslo``) or a template invocation
(``rak @weather Oslo``). Templates expand into URLs, the response is served
from the cache when it is recent enough, and a stale cached copy is used
when the network is unavailable.

Modules:
    app: Typer application and CLI entry point.
    query: Placeholder pattern compiler.
    templates: Template loading and resolution.
    cache: Disk-backed cache store.
    client: HTTP fetcher.
    retrieval: Cache/fetch/fallback orchestration.
    config: XDG-aware configuration and the application context.
    models: Pydantic models shared across the package.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr output system with Rich support.
"""

__version__ = "0.3.0"
