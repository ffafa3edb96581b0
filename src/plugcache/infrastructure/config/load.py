"""Layered config loading: defaults < YAML file < env vars < CLI overrides."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml
from dotenv import load_dotenv
from pydantic import AliasChoices, AliasPath

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides


def _section_paths() -> dict[str, tuple[str, str]]:
    """Map each flat AppConfig field to its ``(section, key)`` YAML location.

    Read from the ``AliasPath`` entries declared on the schema, so adding a
    field there is enough for every layer to understand it.
    """
    paths: dict[str, tuple[str, str]] = {}
    for name, field in AppConfig.model_fields.items():
        alias = field.validation_alias
        if not isinstance(alias, AliasChoices):
            continue
        for choice in alias.choices:
            if isinstance(choice, AliasPath) and len(choice.path) == 2:
                section, key = choice.path
                paths[name] = (str(section), str(key))
    return paths


_SECTION_PATHS = _section_paths()
_SECTIONS = frozenset(section for section, _ in _SECTION_PATHS.values())
_TOP_LEVEL = frozenset(AppConfig.model_fields) - frozenset(_SECTION_PATHS)


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Rewrite a layer so flat keys land in their section.

    Sectioned blocks are copied as they are; flat keys win over the same
    key given inside a section of that layer.
    """
    out: dict[str, Any] = {}
    for key, value in layer.items():
        if key in _SECTIONS and isinstance(value, Mapping):
            out.setdefault(key, {}).update(value)
        elif key in _TOP_LEVEL:
            out[key] = value

    for flat_key, (section, key) in _SECTION_PATHS.items():
        if flat_key in layer:
            out.setdefault(section, {})[key] = layer[flat_key]
    return out


def _merged(layers: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Fold sectioned layers left to right; later layers win per key."""
    result: dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            current = result.get(key)
            if isinstance(current, dict) and isinstance(value, Mapping):
                result[key] = {**current, **value}
            elif isinstance(value, Mapping):
                result[key] = dict(value)
            else:
                result[key] = value
    return result


def _read_yaml_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)

    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")

    unknown = sorted(
        str(key)
        for key in parsed
        if key not in _SECTIONS and key not in _TOP_LEVEL and key not in _SECTION_PATHS
    )
    if unknown:
        raise ValueError(f"Unknown config key(s) in {config_path}: {', '.join(unknown)}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """
    Build the effective AppConfig.

    Precedence, lowest first: DEFAULT_CONFIG, the YAML file, PLUGCACHE_*
    environment variables (a dotenv file feeds this layer without replacing
    variables already set), then cli_overrides. Every layer may use flat
    keys (``cache_dir``) or sections (``cache: {dir: ...}``).

    Nothing is created on disk; cache_dir is only resolved later by the run.

    Raises:
        FileNotFoundError: config_path or dotenv_path does not exist.
        ValueError: The YAML file is not a mapping or names unknown keys.
        pydantic.ValidationError: The merged values fail validation.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [DEFAULT_CONFIG]
    if config_path is not None:
        layers.append(_read_yaml_config(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    return AppConfig.model_validate(_merged(_sectioned(layer) for layer in layers))
