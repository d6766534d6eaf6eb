"""Placeholder patterns such as ``https://cht.sh/<lang>/<topic>``.

A pattern is compiled once by :func:`parse_pattern` into alternating
literal segments and parameter names, then filled in by
:meth:`Pattern.build`::

    pattern = parse_pattern("wttr.in/<city>?format=<fmt>")
    pattern.params                   # ("city", "fmt")
    pattern.build(["Oslo", "3"])     # "wttr.in/Oslo?format=3"

There is no escape syntax: a literal ``<`` or ``>`` cannot appear in a
pattern.
"""

from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel, ConfigDict, model_validator

from rak.exceptions import ArityError, TemplateParseError


class Pattern(BaseModel):
    """A compiled placeholder pattern.

    ``segments`` always holds exactly one more entry than ``params``: the
    literal text before the first placeholder, between each pair of
    placeholders, and after the last one (any of which may be empty).
    """

    model_config = ConfigDict(frozen=True)

    source: str
    segments: tuple[str, ...]
    params: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_shape(self) -> Pattern:
        if len(self.segments) != len(self.params) + 1:
            raise ValueError(
                f"expected {len(self.params) + 1} segments for "
                f"{len(self.params)} parameters, got {len(self.segments)}"
            )
        return self

    @property
    def arity(self) -> int:
        """Number of placeholders in the pattern."""
        return len(self.params)

    def build(self, values: Sequence[str]) -> str:
        """Interleave *values* with the literal segments.

        Args:
            values: One value per placeholder, in declaration order.

        Returns:
            ``segments[0] + values[0] + segments[1] + ... + segments[-1]``.

        Raises:
            ArityError: If ``len(values)`` differs from :attr:`arity`.
        """
        if len(values) != self.arity:
            raise ArityError(
                f"Expected {self.arity} parameters, got {len(values)} for '{self.source}'"
            )
        parts = [self.segments[0]]
        for value, literal in zip(values, self.segments[1:]):
            parts.append(value)
            parts.append(literal)
        return "".join(parts)


def parse_pattern(source: str) -> Pattern:
    """Compile *source* into a :class:`Pattern`.

    Raises:
        TemplateParseError: If a ``<`` has no closing ``>``.
    """
    chunks = source.split("<")
    segments = [chunks[0]]
    params: list[str] = []

    for chunk in chunks[1:]:
        name, sep, literal = chunk.partition(">")
        if not sep:
            raise TemplateParseError(f"missing '>' in '{source}'")
        params.append(name)
        segments.append(literal)

    return Pattern(source=source, segments=tuple(segments), params=tuple(params))
