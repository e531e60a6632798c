"""Merge configuration sources into a validated :class:`FilechatConfig`."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Dict, Iterator

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import FilechatConfig

ENV_PREFIX = "FILECHAT__"


def resolve_with_precedence(
    *,
    defaults: FilechatConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> FilechatConfig:
    """Layer overrides on top of ``defaults`` and validate the result.

    Later sources win: file, then environment, then CLI. Keys may be nested
    mappings or dotted paths such as ``"llm.model"``.

    Raises:
        ConfigError: If an override is malformed or the merged values fail validation.
    """
    merged: dict[str, Any] = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for label, layer in layers:
        if layer is None:
            continue
        merged = merge_mappings(merged, expand_dotted(layer, label=label))

    try:
        return FilechatConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: FilechatConfig) -> Dict[str, str]:
    """Render ``config`` as ``FILECHAT__SECTION__KEY`` environment mappings."""
    flat: Dict[str, str] = {}
    for path, value in _walk_leaves(config.model_dump(mode="python"), []):
        key = ENV_PREFIX + "__".join(segment.upper() for segment in path)
        if isinstance(value, list):
            flat[key] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif value is None:
            flat[key] = "null"
        else:
            flat[key] = str(value)
    return flat


def parse_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``FILECHAT__``-prefixed variables into a nested override mapping."""
    overrides: dict[str, Any] = {}
    for key, raw in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        segments = [part.lower() for part in key[len(ENV_PREFIX) :].split("__") if part]
        if not segments:
            continue
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        set_path(overrides, segments, value)
    return overrides


def expand_dotted(source: Mapping[str, Any], *, label: str) -> dict[str, Any]:
    """Return ``source`` with dotted keys expanded into nested mappings."""
    if not isinstance(source, Mapping):
        raise ConfigError(f"{label.capitalize()} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label.capitalize()} override keys must be strings.")
        if isinstance(value, Mapping):
            value = expand_dotted(value, label=label)
        try:
            set_path(expanded, key.split("."), value, merge=True)
        except ConfigError as exc:
            raise ConfigError(f"{label.capitalize()} override for {key}: {exc}") from exc
    return expanded


def set_path(target: dict[str, Any], path: list[str], value: Any, *, merge: bool = False) -> None:
    """Assign ``value`` at ``path`` inside ``target``, creating parents on demand.

    Raises:
        ConfigError: If a non-mapping value already occupies a parent segment.
    """
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(f"'{segment}' is not a mapping.")
        node = child
    leaf = path[-1]
    if merge and isinstance(value, dict) and isinstance(node.get(leaf), dict):
        node[leaf] = merge_mappings(node[leaf], value)
    else:
        node[leaf] = value


def merge_mappings(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``overrides`` into a copy of ``base``."""
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_mappings(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _walk_leaves(value: Any, prefix: list[str]) -> Iterator[tuple[list[str], Any]]:
    if isinstance(value, dict):
        for key, child in value.items():
            yield from _walk_leaves(child, [*prefix, str(key)])
    else:
        yield prefix, value


__all__ = [
    "ENV_PREFIX",
    "resolve_with_precedence",
    "flatten_for_env",
    "parse_env",
    "expand_dotted",
    "set_path",
    "merge_mappings",
]
