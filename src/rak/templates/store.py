"""Parse template lines into :class:`~rak.models.Template` records.

A template line reads ``name[,CODE=value]*,pattern``::

    weather,M=120,wttr.in/<city>
    ip,F=1,https://ifconfig.me

The first field is the name, the last is a placeholder pattern (see
:mod:`rak.query`), and every field in between is an override:

* ``M=<minutes>`` -- maximum cache age (non-negative integer).
* ``A=<agent>`` -- User-Agent header; empty keeps the HTTP client default.
* ``F=<bool>`` -- when true, always fetch instead of reading the cache.
  Booleans follow Pydantic's lax rules: ``1/true/t/yes/y/on`` and
  ``0/false/f/no/n/off``, case-insensitive.

Fields are split on ``,`` so a pattern cannot contain a comma. Override
values are validated here, so a line with a bad value never reaches the
resolver. :func:`load_templates` skips invalid lines with a warning.
"""

from __future__ import annotations

from typing import Iterable

from pydantic import ValidationError

from rak.exceptions import TemplateParseError
from rak.models import (
    ForceBypassOverride,
    MaxAgeOverride,
    Override,
    OverrideKind,
    Template,
    UserAgentOverride,
)
from rak.output import warning
from rak.query import parse_pattern

BUILTIN_TEMPLATES: tuple[str, ...] = (
    "go,https://cht.sh/go/<entry>",
    "rust,https://cht.sh/rust/<entry>",
    "python,https://cht.sh/python/<entry>",
    "cht,https://cht.sh/<lang>/<entry>",
    "news,M=30,http://getnews.tech",
    "ip,F=1,https://ifconfig.me",
    "city,ifconfig.co/city",
    "weather,M=120,wttr.in/",
    "weather,M=120,wttr.in/<city>",
    "moon,M=720,wttr.in/moon",
    "eth,M=60,rate.sx/ETH",
    "btc,M=60,rate.sx/BTC",
    "whois,F=1,ipinfo.io/<what>",
    "qrcode,M=99999,qrenco.de/<item>",
)

_OVERRIDE_FIELDS: dict[OverrideKind, tuple[type[Override], str]] = {
    OverrideKind.MAX_AGE: (MaxAgeOverride, "minutes"),
    OverrideKind.USER_AGENT: (UserAgentOverride, "user_agent"),
    OverrideKind.FORCE_BYPASS: (ForceBypassOverride, "enabled"),
}


def parse_template(line: str) -> Template:
    """Parse one template line.

    Args:
        line: A line in ``name[,CODE=value]*,pattern`` form. Surrounding
            whitespace on the line and on each field is ignored.

    Returns:
        The parsed :class:`~rak.models.Template`.

    Raises:
        TemplateParseError: If the line has fewer than two fields, an empty
            name, an unknown or malformed override, or a bad pattern.
    """
    source = line.strip()
    fields = [field.strip() for field in source.split(",")]
    if len(fields) < 2:
        raise TemplateParseError(f"Not a valid template: '{source}'")

    name = fields[0]
    if not name:
        raise TemplateParseError(f"Missing template name in '{source}'")

    overrides = tuple(_parse_override(field, source) for field in fields[1:-1])
    pattern = parse_pattern(fields[-1])

    return Template(name=name, pattern=pattern, overrides=overrides, source=source)


def _parse_override(field: str, source: str) -> Override:
    """Parse a single ``CODE=value`` field into its typed override."""
    code, sep, value = field.partition("=")
    try:
        kind = OverrideKind(code)
    except ValueError:
        kind = None
    if not sep or kind is None:
        raise TemplateParseError(f"Unknown configuration '{field}' in template '{source}'")

    model, attr = _OVERRIDE_FIELDS[kind]
    try:
        return model.model_validate({attr: value})
    except ValidationError as exc:
        detail = exc.errors()[0]["msg"]
        raise TemplateParseError(
            f"Invalid value for '{code}' in template '{source}': {detail}"
        ) from exc


def load_templates(lines: Iterable[str]) -> list[Template]:
    """Parse every template line, skipping comments and invalid lines.

    Blank lines and lines starting with ``#`` are ignored. A line that
    fails to parse is reported with :func:`~rak.output.warning` and
    skipped; it never stops the remaining lines from loading.

    Args:
        lines: Raw template lines, e.g. :data:`BUILTIN_TEMPLATES` followed
            by the ``templates`` list of the user's config.

    Returns:
        The valid templates in input order.
    """
    templates: list[Template] = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            templates.append(parse_template(line))
        except TemplateParseError as exc:
            warning(f"Skipping invalid template '{line}': {exc}")
    return templates
