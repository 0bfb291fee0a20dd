"""Single-identifier lookup with one retry, degrading to not-found."""

from __future__ import annotations

import logging
import time
from typing import Callable

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from regverify.common.errors import LookupFailure
from regverify.common.logging import log_event
from regverify.common.models import Outcome
from regverify.lookup.client import LookupClient

# First try plus exactly one retry; independent of BatchConfig.max_retries.
RETRY_ATTEMPTS = 2

_logger = logging.getLogger(__name__)


def _log_retry(identifier: str, logger: logging.Logger) -> Callable[[RetryCallState], None]:
    def _before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome is not None else None
        log_event(
            logger,
            f"retrying lookup for {identifier}: {exc}",
            level=logging.WARNING,
            stage="lookup",
            event="LOOKUP_RETRY",
            status="retry",
            identifier=identifier,
            attempt=state.attempt_number,
            error_code=getattr(exc, "error_code", None),
        )

    return _before_sleep


def lookup_outcome(
    client: LookupClient,
    identifier: str,
    *,
    timeout: float,
    backoff: float,
    logger: logging.Logger | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Outcome:
    """Look up one identifier, absorbing transient failures.

    Zero rows gives ``found=False``; otherwise the first row is authoritative.
    A ``LookupTimeout`` or ``UpstreamError`` is retried once after ``backoff``
    seconds. If the retry fails too the identifier is reported as not found and a
    ``LOOKUP_DEGRADED`` event is logged so outages stay visible to operators.
    """
    logger = logger or _logger
    retrying = Retrying(
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        wait=wait_fixed(backoff),
        retry=retry_if_exception_type(LookupFailure),
        before_sleep=_log_retry(identifier, logger),
        sleep=sleep,
        reraise=True,
    )
    try:
        records = retrying(client.lookup, identifier, timeout)
    except LookupFailure as exc:
        log_event(
            logger,
            f"lookup for {identifier} failed after retry, reporting not found: {exc}",
            level=logging.WARNING,
            stage="lookup",
            event="LOOKUP_DEGRADED",
            status="error",
            identifier=identifier,
            attempt=RETRY_ATTEMPTS,
            error_code=exc.error_code,
        )
        return Outcome.not_found(identifier)

    if not records:
        return Outcome.not_found(identifier)
    return Outcome.from_record(records[0])
