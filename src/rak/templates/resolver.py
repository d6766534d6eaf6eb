"""Select a template for an ``@name`` invocation and apply it.

Templates are matched on name and on the number of arguments supplied.
Resolution never guesses: a name with no template of the right arity, and
a name+arity defined twice, are both errors.
"""

from __future__ import annotations

from typing import Optional, Sequence

from rak.exceptions import ResolutionError
from rak.models import RequestParams, Template
from rak.output import print_table

HELP_NAMES = frozenset({"help", "?"})


def is_template_invocation(query: str) -> bool:
    """Return True if *query* names a template (``@name``)."""
    return query.startswith("@")


def resolve(
    templates: Sequence[Template],
    name: str,
    args: Sequence[str],
    params: RequestParams,
) -> Optional[RequestParams]:
    """Resolve ``@name args...`` against *templates*.

    Args:
        templates: All loaded templates.
        name: Template name without the leading ``@``.
        args: Positional values, one per placeholder.
        params: Base request parameters the template is applied to.

    Returns:
        A copy of *params* with ``query`` set to the built URL and the
        template's overrides applied, or ``None`` if *name* is ``help`` or
        ``?``, in which case the template list has been printed and the
        caller should stop without fetching.

    Raises:
        ResolutionError: If no template has this name, none of them takes
            ``len(args)`` parameters, or more than one does.
    """
    if name in HELP_NAMES:
        show_templates(templates)
        return None

    named = [t for t in templates if t.name == name]
    if not named:
        raise ResolutionError(f"Template '{name}' not found (try @help)")

    matches = [t for t in named if t.arity == len(args)]
    if not matches:
        usages = ", ".join(_usage(t) for t in named)
        raise ResolutionError(
            f"Template '{name}' does not take {len(args)} parameter(s); use {usages}"
        )
    if len(matches) > 1:
        sources = "; ".join(f"'{t.source}'" for t in matches)
        raise ResolutionError(
            f"Template '{name}' with {len(args)} parameter(s) is defined "
            f"{len(matches)} times: {sources}"
        )

    return apply_template(matches[0], args, params)


def apply_template(
    template: Template, args: Sequence[str], params: RequestParams
) -> RequestParams:
    """Build the template's query from *args* and apply its overrides in order."""
    resolved = params.model_copy(update={"query": template.pattern.build(args)})
    for override in template.overrides:
        resolved = override.apply(resolved)
    return resolved


def show_templates(templates: Sequence[Template]) -> None:
    """Print every template with its parameters to stdout."""
    rows = [[f"@{t.name}", " ".join(f"<{p}>" for p in t.pattern.params), t.pattern.source]
            for t in templates]
    print_table(["Template", "Parameters", "Pattern"], rows, title="Valid templates")


def _usage(template: Template) -> str:
    return " ".join([f"@{template.name}", *(f"<{p}>" for p in template.pattern.params)])
