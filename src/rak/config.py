"""Where rak keeps its files, and how settings are layered.

Three directories are used, each created on first use:

========  ================================  ======================
kind      Linux/BSD (XDG)                   macOS, Windows
========  ================================  ======================
config    ``$XDG_CONFIG_HOME/rak``          ``~/.rak``
cache     ``$XDG_CACHE_HOME/rak``           ``~/.rak/cache``
data      ``$XDG_DATA_HOME/rak``            ``~/.rak/data``
========  ================================  ======================

The config directory holds ``config.json`` (a :class:`~rak.models.RakConfig`),
written atomically and created with defaults on the first run.  The cache
directory is private to the user (mode ``0700``).

Request settings are layered, lowest first: defaults, config file,
``RAK_MAX_AGE``/``RAK_USER_AGENT``, template overrides, command-line
flags.  :func:`base_params` covers the first three; the CLI applies the rest.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from rak.exceptions import ConfigError
from rak.models import RakConfig, RequestParams
from rak.templates import BUILTIN_TEMPLATES

_APP_NAME = "rak"
_CONFIG_FILENAME = "config.json"

ENV_MAX_AGE = "RAK_MAX_AGE"
ENV_USER_AGENT = "RAK_USER_AGENT"

# kind -> (XDG variable, default below $HOME, sub-directory of ~/.rak)
_DIRECTORIES: dict[str, tuple[str, tuple[str, ...], str]] = {
    "config": ("XDG_CONFIG_HOME", (".config",), ""),
    "cache": ("XDG_CACHE_HOME", (".cache",), "cache"),
    "data": ("XDG_DATA_HOME", (".local", "share"), "data"),
}


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str, mode: int = 0o777) -> Path:
    """Resolve and create the rak directory of *kind* (see module table)."""
    env_var, home_default, fallback = _DIRECTORIES[kind]
    if _is_xdg_platform():
        base = os.environ.get(env_var) or Path.home().joinpath(*home_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / fallback
    path.mkdir(mode=mode, parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Return the cache root.  Nothing in rak deletes from it."""
    return _app_dir("cache", mode=0o700)


def get_data_dir() -> Path:
    """Return the directory crash logs are written under."""
    return _app_dir("data")


class AppContext(BaseModel):
    """Directories used by one rak process.

    Built once by :func:`build_context` (or directly in tests) and handed
    to the components that need it, instead of module-level globals.
    """

    model_config = ConfigDict(frozen=True)

    config_dir: Path
    cache_dir: Path
    data_dir: Path

    @property
    def config_path(self) -> Path:
        return self.config_dir / _CONFIG_FILENAME


def build_context() -> AppContext:
    return AppContext(
        config_dir=get_config_dir(),
        cache_dir=get_cache_dir(),
        data_dir=get_data_dir(),
    )


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* through a sibling temp file and ``os.replace``.

    Readers see either the old file or the complete new one.  The temp
    file is removed if anything fails, including a KeyboardInterrupt.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


# --- Config file ---


def load_config(ctx: AppContext) -> RakConfig:
    """Load the configuration file of *ctx*.

    Returns:
        The deserialised :class:`~rak.models.RakConfig`, or a default
        instance if the file does not exist.

    Raises:
        ConfigError: If the file exists but cannot be read, contains
            invalid JSON, or fails Pydantic validation.
    """
    path = ctx.config_path
    if not path.is_file():
        return RakConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return RakConfig.model_validate(data)
    except (OSError, json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(ctx: AppContext, config: RakConfig) -> None:
    """Persist *config* atomically to the configuration file of *ctx*."""
    data = config.model_dump(mode="json")
    _atomic_write(ctx.config_path, json.dumps(data, indent=2) + "\n")


def ensure_config(ctx: AppContext) -> RakConfig:
    """Load the config, writing the defaults first if no file exists yet."""
    if not ctx.config_path.is_file():
        save_config(ctx, RakConfig())
    return load_config(ctx)


# --- Precedence resolution ---


def template_lines(config: RakConfig) -> list[str]:
    """Return the template lines to load: built-ins first, then the user's."""
    lines = list(BUILTIN_TEMPLATES) if config.use_builtin_templates else []
    lines.extend(config.templates)
    return lines


def base_params(config: RakConfig) -> RequestParams:
    """Build request parameters from the config file and environment.

    Precedence (high to low):
        1. Environment variables (``RAK_MAX_AGE``, ``RAK_USER_AGENT``)
        2. Config file (``default_max_age``, ``user_agent``)
        3. Defaults

    Template overrides and CLI flags are applied later by the caller.

    Raises:
        ConfigError: If ``RAK_MAX_AGE`` is not a non-negative integer.
    """
    max_age = config.default_max_age
    env_max_age = os.environ.get(ENV_MAX_AGE)
    if env_max_age:
        try:
            max_age = int(env_max_age)
        except ValueError as exc:
            raise ConfigError(f"{ENV_MAX_AGE} must be an integer, got '{env_max_age}'") from exc
        if max_age < 0:
            raise ConfigError(f"{ENV_MAX_AGE} must not be negative, got {max_age}")

    user_agent = config.user_agent
    env_user_agent = os.environ.get(ENV_USER_AGENT)
    if env_user_agent is not None:
        user_agent = env_user_agent

    return RequestParams(max_age=max_age, user_agent=user_agent)
