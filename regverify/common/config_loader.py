"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from regverify.batch.config import BatchConfig
from regverify.common.errors import ConfigError, ContractError
from regverify.common.fs import read_yaml
from regverify.common.schema import validate_settings_config
from regverify.ingest.extract import FieldMappings

CONFIG_FILENAME = "regverify.yml"

# Environment variable -> (section, key, cast)
ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "REGVERIFY_API_URL": ("api", "url", str),
    "REGVERIFY_REQUEST_TIMEOUT": ("batch", "request_timeout", float),
    "REGVERIFY_MAX_RETRIES": ("batch", "max_retries", int),
    "REGVERIFY_BATCH_CONCURRENCY": ("batch", "batch_concurrency", int),
    "REGVERIFY_INTER_WAVE_DELAY": ("batch", "inter_wave_delay", float),
}


@dataclass(frozen=True)
class Settings:
    api_url: str
    batch: BatchConfig
    field_mappings: dict[str, FieldMappings]
    required_council: str | None
    supported_extensions: tuple[str, ...]


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    return _deep_merge(base, overlay)


def apply_env_overrides(cfg: dict, environ: Mapping[str, str]) -> dict:
    out = dict(cfg)
    for env_name, (section, key, cast) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            value = cast(raw.strip())
        except ValueError as exc:
            raise ConfigError(f"{env_name} is not a valid {cast.__name__}: {raw!r}") from exc
        out[section] = {**(out.get(section) or {}), key: value}
    return out


def build_settings(cfg: dict) -> Settings:
    try:
        batch = BatchConfig.from_mapping(dict(cfg["batch"]))
    except ContractError as exc:
        raise ConfigError(f"Invalid batch settings: {exc}") from exc

    ingest = cfg["ingest"]
    mappings = {
        file_type: FieldMappings(
            attended=tuple(values.get("attended", ())),
            council_name=tuple(values.get("council_name", ())),
            registration=tuple(values["registration"]),
        )
        for file_type, values in ingest["field_mappings"].items()
    }
    return Settings(
        api_url=cfg["api"]["url"],
        batch=batch,
        field_mappings=mappings,
        required_council=ingest["required_council"] or None,
        supported_extensions=tuple(ext.lower() for ext in ingest["supported_extensions"]),
    )


def load_settings(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    overlay_path = overlay_config_dir / CONFIG_FILENAME if overlay_config_dir is not None else None
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    cfg = apply_env_overrides(cfg, os.environ if environ is None else environ)
    return build_settings(validate_settings_config(cfg, allow_unknown=allow_unknown))
