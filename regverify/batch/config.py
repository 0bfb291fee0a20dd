"""Batch dispatch settings."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

from regverify.common.errors import ContractError

DEFAULT_BATCH_CONCURRENCY = 5
DEFAULT_INTER_WAVE_DELAY = 0.2
DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BACKOFF = 0.5


@dataclass(frozen=True)
class BatchConfig:
    """Limits applied to one batch run.

    ``max_retries`` is accepted and validated but the retry wrapper always makes
    exactly one extra attempt.
    """

    batch_concurrency: int = DEFAULT_BATCH_CONCURRENCY
    inter_wave_delay: float = DEFAULT_INTER_WAVE_DELAY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_backoff: float = DEFAULT_RETRY_BACKOFF

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> "BatchConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ContractError(f"Unknown batch settings: {', '.join(sorted(unknown))}")
        return cls(**values).validate()

    def with_overrides(self, **overrides: Any) -> "BatchConfig":
        present = {key: value for key, value in overrides.items() if value is not None}
        if not present:
            return self
        known = {f.name for f in fields(self)}
        unknown = set(present) - known
        if unknown:
            raise ContractError(f"Unknown batch settings: {', '.join(sorted(unknown))}")
        return replace(self, **present).validate()

    def validate(self) -> "BatchConfig":
        _require_int(self.batch_concurrency, "batch_concurrency", minimum=1)
        _require_int(self.max_retries, "max_retries", minimum=0)
        _require_number(self.request_timeout, "request_timeout", positive=True)
        _require_number(self.inter_wave_delay, "inter_wave_delay", positive=False)
        _require_number(self.retry_backoff, "retry_backoff", positive=False)
        return self


def _require_int(value: object, name: str, *, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ContractError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ContractError(f"{name} must be >= {minimum}, got {value}")


def _require_number(value: object, name: str, *, positive: bool) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ContractError(f"{name} must be a number, got {value!r}")
    if positive and value <= 0:
        raise ContractError(f"{name} must be > 0, got {value}")
    if value < 0:
        raise ContractError(f"{name} must be >= 0, got {value}")
