"""Canonical Pydantic models shared across all rak modules.

The models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`RequestConfig` and :class:`RakConfig`.

**Template models** -- produced by :mod:`rak.templates.store` and consumed
by :mod:`rak.templates.resolver`: the override variants
(:class:`MaxAgeOverride`, :class:`UserAgentOverride`,
:class:`ForceBypassOverride`) and :class:`Template`.

**Request models** -- flowing through a single invocation:
:class:`RequestParams`, :class:`Locator`, :class:`Provenance`, and
:class:`Retrieval`.

Everything except the configuration models is frozen. Code that needs a
changed request builds a new one with ``model_copy(update=...)``.
"""

from __future__ import annotations

import enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from rak import __version__
from rak.query import Pattern

DEFAULT_MAX_AGE = 60
DEFAULT_USER_AGENT = f"rak/{__version__}"


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every fetch."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(
        default=0, ge=0, description="Retries on connection errors and timeouts"
    )


class RakConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/rak/config.json``.

    Loaded and saved by :func:`~rak.config.load_config` and
    :func:`~rak.config.save_config`. ``templates`` holds extra template
    lines in the same ``name[,CODE=value]*,pattern`` grammar as the
    built-ins; they are loaded after the built-ins.
    """

    default_max_age: int = Field(
        default=DEFAULT_MAX_AGE, ge=0, description="Maximum cache age in minutes"
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header; empty string keeps the HTTP client default",
    )
    use_builtin_templates: bool = True
    templates: list[str] = Field(default_factory=list)
    request: RequestConfig = Field(default_factory=RequestConfig)


# --- Templates ---


class OverrideKind(str, enum.Enum):
    """Single-letter codes accepted in a template line."""

    MAX_AGE = "M"
    USER_AGENT = "A"
    FORCE_BYPASS = "F"


class MaxAgeOverride(BaseModel):
    """``M=<minutes>``: replace the maximum cache age."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[OverrideKind.MAX_AGE] = OverrideKind.MAX_AGE
    minutes: int = Field(ge=0)

    def apply(self, params: RequestParams) -> RequestParams:
        return params.model_copy(update={"max_age": self.minutes})


class UserAgentOverride(BaseModel):
    """``A=<agent>``: replace the User-Agent; empty means the client default."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[OverrideKind.USER_AGENT] = OverrideKind.USER_AGENT
    user_agent: str

    def apply(self, params: RequestParams) -> RequestParams:
        return params.model_copy(update={"user_agent": self.user_agent})


class ForceBypassOverride(BaseModel):
    """``F=<bool>``: when true, never answer from the cache."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[OverrideKind.FORCE_BYPASS] = OverrideKind.FORCE_BYPASS
    enabled: bool

    def apply(self, params: RequestParams) -> RequestParams:
        if not self.enabled:
            return params
        return params.model_copy(update={"cache_read": False})


Override = Union[MaxAgeOverride, UserAgentOverride, ForceBypassOverride]


class Template(BaseModel):
    """A named shortcut: a compiled pattern plus overrides applied in order.

    Several templates may share a ``name`` as long as their patterns take
    a different number of parameters; this is checked when resolving, not
    when loading.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    pattern: Pattern
    overrides: tuple[Override, ...] = ()
    source: str = Field(default="", description="The line the template was parsed from")

    @property
    def arity(self) -> int:
        return self.pattern.arity


# --- Requests ---


class RequestParams(BaseModel):
    """Effective settings for one invocation."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    max_age: int = Field(default=DEFAULT_MAX_AGE, ge=0)
    cache_read: bool = True
    cache_write: bool = True
    verbose: bool = False


class Locator(BaseModel):
    """Address of one cache slot: ``namespace`` groups entries by origin."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    key: str


class Provenance(str, enum.Enum):
    """Where the returned content came from."""

    CACHED = "cached"
    RECEIVED = "received"
    CACHE_BACKUP = "cache-backup"


class Retrieval(BaseModel):
    """Content produced by :class:`~rak.retrieval.Retriever` and its origin."""

    model_config = ConfigDict(frozen=True)

    content: bytes
    provenance: Provenance
