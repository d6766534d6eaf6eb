"""Exception hierarchy for rak.

All exceptions inherit from :class:`RakError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`rak.exit_codes`.
The top-level error handler in :func:`rak.app.main` catches ``RakError``
and exits with the appropriate code, while unexpected exceptions produce a
crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    RakError (exit 1)
    +-- InvalidUsageError      (exit 2)
    |   +-- ResolutionError    (exit 2)
    |   +-- ArityError         (exit 2)
    +-- FetchError             (exit 6)
    +-- TemplateParseError     (exit 7)
    +-- CacheError             (exit 8)
    |   +-- CacheReadError
    |   +-- CacheWriteError
    +-- ConfigError            (exit 1)
"""

from rak.exit_codes import (
    EXIT_CACHE_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_TEMPLATE_PARSE_ERROR,
)


class RakError(Exception):
    """Base exception for all rak errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`rak.exit_codes`. The entry point catches this
    exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RakError):
    """Raised for invalid CLI arguments or a query that is not a usable URL."""

    exit_code = EXIT_INVALID_USAGE


class ResolutionError(InvalidUsageError):
    """Raised when a ``@name`` invocation matches no template, or more than one."""


class ArityError(InvalidUsageError):
    """Raised when a pattern is built with the wrong number of values."""


class TemplateParseError(RakError):
    """Raised for a malformed template line or placeholder pattern.

    While loading templates this is caught per line: the line is skipped
    with a warning and loading continues.
    """

    exit_code = EXIT_TEMPLATE_PARSE_ERROR


class FetchError(RakError):
    """Raised on network-level failures or an HTTP error status from the server."""

    exit_code = EXIT_CONNECTION_ERROR


class CacheError(RakError):
    """Base class for cache store failures."""

    exit_code = EXIT_CACHE_ERROR


class CacheReadError(CacheError):
    """Raised when a cache entry is missing or cannot be read."""


class CacheWriteError(CacheError):
    """Raised when a cache entry cannot be written."""


class ConfigError(RakError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE
