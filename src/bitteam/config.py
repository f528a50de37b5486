"""Settings loading: a YAML file overlaid with ``BITTEAM_*`` environment variables.

``BITTEAM_EXCHANGE__TIMEOUT=5`` sets ``exchange.timeout``; double underscores
separate nesting levels and values are parsed as YAML scalars. A few short
aliases (``BITTEAM_LOG_LEVEL``, ``BITTEAM_API_KEY``...) map to their nested
paths. Secrets are never parsed, so ``BITTEAM_API_KEY=0123`` stays a string.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterator, Mapping

import yaml
from pydantic import ValidationError

from .settings import Settings

logger = logging.getLogger(__name__)

ENV_PREFIX = "BITTEAM_"
CONFIG_ENV = f"{ENV_PREFIX}CONFIG"
DEFAULT_CONFIG = "config.yml"

ENV_ALIASES: dict[str, tuple[str, ...]] = {
    "LOG_LEVEL": ("log", "level"),
    "LOG_DIR": ("log", "dir"),
    "API_KEY": ("exchange", "credentials", "api_key"),
    "API_SECRET": ("exchange", "credentials", "api_secret"),
}

SECRET_FIELDS = {"api_key", "api_secret", "password"}


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        logger.debug("Config file %s not found, using defaults", path)
        return {}
    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be a mapping, got: {type(loaded).__name__}")
    return loaded


def _env_overrides(environ: Mapping[str, str]) -> Iterator[tuple[tuple[str, ...], Any]]:
    """Yield ``(path, value)`` for every ``BITTEAM_*`` variable except the config path."""
    for key, raw in sorted(environ.items()):
        if not key.startswith(ENV_PREFIX) or key == CONFIG_ENV:
            continue
        name = key[len(ENV_PREFIX):]
        path = ENV_ALIASES.get(name) or tuple(p.lower() for p in name.split("__") if p)
        if not path:
            continue
        if path[-1] in SECRET_FIELDS:
            yield path, raw
            continue
        try:
            yield path, yaml.safe_load(raw)
        except yaml.YAMLError:
            yield path, raw


def _merge(data: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    node = data
    for key in path[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = node[key] = {}
        node = child
    node[path[-1]] = value


def resolve_config_path(config_path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Path:
    environ = os.environ if environ is None else environ
    return Path(config_path or environ.get(CONFIG_ENV) or DEFAULT_CONFIG)


def load_settings(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from ``config_path``, ``$BITTEAM_CONFIG`` or ``./config.yml``.

    Raises:
        ValueError: The file is not a mapping or the merged settings fail validation
    """
    environ = os.environ if environ is None else environ
    path = resolve_config_path(config_path, environ)
    data = _read_yaml(path)

    overridden = []
    for key_path, value in _env_overrides(environ):
        _merge(data, key_path, value)
        overridden.append(".".join(key_path))
    if overridden:
        logger.debug("Environment overrides: %s", ", ".join(overridden))

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {path}: {exc}") from exc
