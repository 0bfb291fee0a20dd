"""Batch verification: dispatch through the retry wrapper, then aggregate."""

from __future__ import annotations

import logging
import time
from functools import partial
from typing import Any, Callable, Sequence

from regverify.batch.config import BatchConfig
from regverify.batch.dispatcher import ProgressCallback, dispatch
from regverify.batch.statistics import aggregate
from regverify.common.logging import log_event
from regverify.common.models import BatchResponse
from regverify.lookup.client import LookupClient
from regverify.lookup.retry import lookup_outcome

_logger = logging.getLogger(__name__)


class BatchProcessor:
    def __init__(
        self,
        client: LookupClient,
        config: BatchConfig | None = None,
        *,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.config = (config or BatchConfig()).validate()
        self.logger = logger or _logger
        self.sleep = sleep

    def process(
        self,
        identifiers: Sequence[str],
        *,
        on_progress: ProgressCallback | None = None,
        **overrides: Any,
    ) -> BatchResponse:
        """Verify ``identifiers`` and summarise the outcomes.

        Keyword overrides replace fields of the processor's ``BatchConfig`` for
        this call only. Raises ``ContractError`` for malformed input or settings;
        individual lookup failures never escape.
        """
        config = self.config.with_overrides(**overrides)
        lookup = partial(
            lookup_outcome,
            self.client,
            timeout=config.request_timeout,
            backoff=config.retry_backoff,
            logger=self.logger,
            sleep=self.sleep,
        )
        results = dispatch(
            identifiers,
            lookup,
            config,
            on_progress=on_progress,
            sleep=self.sleep,
            logger=self.logger,
        )
        statistics = aggregate(results)
        log_event(
            self.logger,
            (
                f"batch complete: {statistics.total_processed} results "
                f"({statistics.active_count} active, {statistics.inactive_count} inactive, "
                f"{statistics.not_found_count} not found)"
            ),
            stage="batch",
            event="BATCH_COMPLETE",
            status="ok",
            rows_in=len(identifiers),
            rows_out=statistics.total_processed,
        )
        return BatchResponse(results=results, statistics=statistics)
