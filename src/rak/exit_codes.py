"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~rak.exceptions.RakError` subclass.  Shell wrappers
can inspect the exit code to tell a network failure from a bad template
invocation without parsing stderr.

Example::

    $ rak @weather
    $ echo $?
    2   # EXIT_INVALID_USAGE -- no 'weather' template takes zero parameters
"""

EXIT_SUCCESS = 0
"""Content was printed (fresh, cached, or cache backup), or the template list was shown."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments, unknown template, or wrong number of template parameters."""

EXIT_CONNECTION_ERROR = 6
"""The fetch failed and no cached copy was available."""

EXIT_TEMPLATE_PARSE_ERROR = 7
"""A template line or pattern could not be parsed."""

EXIT_CACHE_ERROR = 8
"""The cache claimed an entry exists but it could not be read or written."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C."""
