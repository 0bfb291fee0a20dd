"""Single identifier search."""

from __future__ import annotations

import logging

from regverify.common.errors import ContractError, LookupFailure
from regverify.common.logging import log_event
from regverify.common.models import LookupRecord
from regverify.lookup.client import LookupClient

_logger = logging.getLogger(__name__)


def search(
    client: LookupClient,
    identifier: str,
    *,
    timeout: float,
    logger: logging.Logger | None = None,
) -> list[LookupRecord]:
    """Return every matching record for ``identifier``.

    Single attempt, no retry. A transient failure is logged and yields an empty
    list, the same answer as a genuine miss.
    """
    logger = logger or _logger
    if not isinstance(identifier, str) or not identifier.strip():
        raise ContractError("Registration number is required")

    identifier = identifier.strip()
    try:
        records = client.lookup(identifier, timeout)
    except LookupFailure as exc:
        log_event(
            logger,
            f"search for {identifier} failed: {exc}",
            level=logging.ERROR,
            stage="search",
            event="SEARCH_FAILED",
            status="error",
            identifier=identifier,
            error_code=exc.error_code,
        )
        return []

    log_event(
        logger,
        f"search for {identifier} returned {len(records)} record(s)",
        stage="search",
        event="SEARCH_END",
        status="ok",
        identifier=identifier,
        rows_out=len(records),
    )
    return records
