"""Named query templates -- parse, load, and resolve ``@name`` shortcuts.

Typical usage::

    from rak.templates import BUILTIN_TEMPLATES, load_templates, resolve

    templates = load_templates(BUILTIN_TEMPLATES)
    params = resolve(templates, "weather", ["Oslo"], RequestParams())

Sub-modules:

* :mod:`~rak.templates.store` -- template line grammar and loading.
* :mod:`~rak.templates.resolver` -- name/arity matching and override
  application.
"""

from rak.templates.resolver import apply_template, is_template_invocation, resolve, show_templates
from rak.templates.store import BUILTIN_TEMPLATES, load_templates, parse_template

__all__ = [
    "BUILTIN_TEMPLATES",
    "apply_template",
    "is_template_invocation",
    "load_templates",
    "parse_template",
    "resolve",
    "show_templates",
]
