"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from regverify.common.errors import ConfigError

FILE_TYPES = ("csv", "excel")
MAPPING_FIELDS = ("attended", "council_name", "registration")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_string_list(value: object, ctx: str, *, allow_empty: bool) -> None:
    if not isinstance(value, list) or not all(isinstance(item, str) and item for item in value):
        raise ConfigError(f"{ctx} must be a list of non-empty strings")
    if not allow_empty and not value:
        raise ConfigError(f"{ctx} must not be empty")


def validate_settings_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"api", "batch", "ingest"}
    _assert_required_keys(cfg, top_required, "config")
    _assert_no_unknown_keys(cfg, top_required, "config", allow_unknown)

    _assert_required_keys(cfg["api"], {"url"}, "api")
    _assert_no_unknown_keys(cfg["api"], {"url"}, "api", allow_unknown)
    if not isinstance(cfg["api"]["url"], str) or not cfg["api"]["url"].startswith(("http://", "https://")):
        raise ConfigError("api.url must be an http(s) URL")

    batch_keys = {"batch_concurrency", "inter_wave_delay", "request_timeout", "max_retries", "retry_backoff"}
    if not isinstance(cfg["batch"], dict):
        raise ConfigError("batch must be a mapping")
    _assert_no_unknown_keys(cfg["batch"], batch_keys, "batch", allow_unknown=False)

    ingest = cfg["ingest"]
    _assert_required_keys(ingest, {"supported_extensions", "required_council", "field_mappings"}, "ingest")
    _assert_no_unknown_keys(
        ingest, {"supported_extensions", "required_council", "field_mappings"}, "ingest", allow_unknown
    )
    _assert_string_list(ingest["supported_extensions"], "ingest.supported_extensions", allow_empty=False)

    mappings = ingest["field_mappings"]
    _assert_required_keys(mappings, set(FILE_TYPES), "ingest.field_mappings")
    _assert_no_unknown_keys(mappings, set(FILE_TYPES), "ingest.field_mappings", allow_unknown=False)
    for file_type in FILE_TYPES:
        ctx = f"ingest.field_mappings.{file_type}"
        _assert_required_keys(mappings[file_type], {"registration"}, ctx)
        _assert_no_unknown_keys(mappings[file_type], set(MAPPING_FIELDS), ctx, allow_unknown=False)
        _assert_string_list(mappings[file_type]["registration"], f"{ctx}.registration", allow_empty=False)
        for optional in ("attended", "council_name"):
            if optional in mappings[file_type]:
                _assert_string_list(mappings[file_type][optional], f"{ctx}.{optional}", allow_empty=True)

    return cfg
