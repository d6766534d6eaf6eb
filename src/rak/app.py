"""Typer application and CLI entry point for rak.

This module wires the pieces together for one invocation::

    rak [OPTIONS] QUERY [ARGS]...

``QUERY`` is either a URL (``wttr.in/Oslo``) or ``@name`` followed by the
template's parameters (``@weather Oslo``).  ``@help`` and ``@?`` list the
templates.  The fetched content is written verbatim to stdout.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs a signal handler, invokes the Typer app,
and maps :class:`~rak.exceptions.RakError` to its exit code.  Unhandled
exceptions are written to a crash log under the data directory.

See Also:
    :mod:`rak.config`: Context, config file, and parameter precedence.
    :mod:`rak.retrieval`: The cache/fetch/fallback policy.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn, Optional

import typer

from rak import __version__
from rak.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from rak.models import RequestConfig, RequestParams

if TYPE_CHECKING:
    from rak.client import Fetcher

app = typer.Typer(
    name="rak",
    help="Fetch a URL or @template through a local cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"rak {__version__}")
        raise typer.Exit()


def _make_fetcher(config: RequestConfig) -> Fetcher:
    """Return the fetcher used for downloads (replaced in tests)."""
    from rak.client import HttpFetcher

    return HttpFetcher(config)


@app.command()
def fetch_command(
    query: str = typer.Argument(
        help="URL to fetch, or @name of a template (@help lists them)."
    ),
    args: Optional[list[str]] = typer.Argument(
        None, help="Template parameters, in order.", show_default=False
    ),
    max_age: Optional[int] = typer.Option(
        None, "--max-age", "-m", min=0, help="Maximum cache age in minutes."
    ),
    user_agent: Optional[str] = typer.Option(
        None, "--user-agent", "-a", help="User-Agent header (empty for the client default)."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Always fetch; never answer from the cache."
    ),
    no_store: bool = typer.Option(
        False, "--no-store", help="Do not write the response to the cache."
    ),
    prefix: str = typer.Option(
        "", "--prefix", "-p", help="Prefix prepended to a plain URL query."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write content to this file instead of stdout."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output for the template list."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Plain diagnostics without colour."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Hide informational messages on stderr."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Report where the content came from."
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Fetch QUERY and print it, using the cache when it is fresh enough.

    Explicit flags win over template overrides, which win over
    ``RAK_MAX_AGE``/``RAK_USER_AGENT`` and the config file.

    Raises:
        typer.Exit: After listing templates for ``@help``/``@?``.
        RakError: On any failure; mapped to an exit code by :func:`main`.
    """
    from rak.cache import CacheStore
    from rak.config import base_params, build_context, ensure_config, template_lines
    from rak.exceptions import InvalidUsageError
    from rak.output import OutputFormat, OutputManager, debug, report, set_output, write_content
    from rak.retrieval import Retriever
    from rak.templates import is_template_invocation, load_templates, resolve

    set_output(
        OutputManager(
            format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )

    ctx = build_context()
    config = ensure_config(ctx)
    params = base_params(config).model_copy(update={"verbose": verbose})
    extra = list(args or [])

    if is_template_invocation(query):
        templates = load_templates(template_lines(config))
        resolved = resolve(templates, query[1:], extra, params)
        if resolved is None:
            raise typer.Exit()
        params = resolved
    else:
        if extra:
            raise InvalidUsageError(
                f"Unexpected arguments {extra}: only @template queries take parameters"
            )
        params = params.model_copy(update={"query": prefix + query})

    params = _apply_flags(params, max_age, user_agent, force, no_store)
    debug(f"Request: {params.model_dump()}")

    with CacheStore(ctx.cache_dir) as cache, _make_fetcher(config.request) as fetcher:
        retrieval = Retriever(cache, fetcher).retrieve(params)

    write_content(retrieval.content)
    if params.verbose:
        report(
            f"mode={retrieval.provenance.value} "
            f"R={_flag(params.cache_read)} W={_flag(params.cache_write)}"
        )


def _apply_flags(
    params: RequestParams,
    max_age: Optional[int],
    user_agent: Optional[str],
    force: bool,
    no_store: bool,
) -> RequestParams:
    """Apply the flags given on the command line on top of *params*."""
    updates: dict[str, Any] = {}
    if max_age is not None:
        updates["max_age"] = max_age
    if user_agent is not None:
        updates["user_agent"] = user_agent
    if force:
        updates["cache_read"] = False
    if no_store:
        updates["cache_write"] = False
    return params.model_copy(update=updates)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _cancelled() -> NoReturn:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_INTERRUPTED)


def _setup_signal_handlers() -> None:
    """Exit with 130 on Ctrl-C instead of printing a traceback."""
    signal.signal(signal.SIGINT, lambda signum, frame: _cancelled())


def _write_crash_log() -> Path:
    """Save the traceback being handled under ``<data dir>/logs``."""
    from rak.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(traceback.format_exc(), encoding="utf-8")
    return log_path


def main() -> None:
    """Entry point of the ``rak`` console script.

    A :class:`~rak.exceptions.RakError` prints ``Error: <message>`` to
    stderr and exits with the error's code; stdout stays empty.  Anything
    else is a bug: the traceback goes to a crash log and the exit code is 1.
    """
    from rak.exceptions import RakError
    from rak.output import error

    _setup_signal_handlers()
    try:
        app()
    except RakError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        _cancelled()
    except Exception:
        error(f"Unexpected error, traceback written to {_write_crash_log()}")
        sys.exit(EXIT_GENERIC_FAILURE)
