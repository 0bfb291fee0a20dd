"""Wave-based batch dispatch.

Identifiers are split into consecutive waves of ``batch_concurrency``. Every
lookup in a wave runs on the thread pool and the wave is a barrier: nothing from
the next wave starts until each lookup in the current one has produced an
``Outcome``. Waves are separated by ``inter_wave_delay`` to pace the remote
endpoint; no pause follows the final wave.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, Sequence

from regverify.batch.config import BatchConfig
from regverify.common.errors import ContractError
from regverify.common.logging import log_event
from regverify.common.models import Outcome
from regverify.common.time_utils import elapsed_ms

ProgressCallback = Callable[[int, int], None]
LookupFn = Callable[[str], Outcome]

_logger = logging.getLogger(__name__)


def validate_identifiers(identifiers: Sequence[str]) -> None:
    if isinstance(identifiers, (str, bytes)) or not isinstance(identifiers, Sequence):
        raise ContractError("identifiers must be a sequence of strings")
    for index, identifier in enumerate(identifiers):
        if not isinstance(identifier, str) or not identifier.strip():
            raise ContractError(f"identifier at position {index} is empty or not a string: {identifier!r}")


def iter_waves(identifiers: Sequence[str], size: int) -> Iterator[tuple[int, Sequence[str]]]:
    """Yield ``(start_index, wave)`` pairs; the last wave may be shorter."""
    for start in range(0, len(identifiers), size):
        yield start, identifiers[start : start + size]


def dispatch(
    identifiers: Sequence[str],
    lookup: LookupFn,
    config: BatchConfig,
    *,
    on_progress: ProgressCallback | None = None,
    sleep: Callable[[float], None] = time.sleep,
    logger: logging.Logger | None = None,
) -> list[Outcome]:
    logger = logger or _logger
    validate_identifiers(identifiers)
    config.validate()

    total = len(identifiers)
    size = config.batch_concurrency
    wave_count = -(-total // size)
    results: list[Outcome] = []
    if total == 0:
        return results

    log_event(
        logger,
        f"dispatching {total} identifiers in {wave_count} waves of up to {size}",
        stage="dispatch",
        event="DISPATCH_START",
        status="ok",
        rows_in=total,
    )
    dispatch_started = time.monotonic()

    with ThreadPoolExecutor(max_workers=size, thread_name_prefix="regverify-wave") as executor:
        for wave_number, (start, wave) in enumerate(iter_waves(identifiers, size), start=1):
            wave_started = time.monotonic()
            # map() yields in submission order, so outcomes line up with the wave.
            wave_results = list(executor.map(lookup, wave))
            results.extend(wave_results)

            found = sum(1 for outcome in wave_results if outcome.found)
            log_event(
                logger,
                f"wave {wave_number}/{wave_count} complete: {found}/{len(wave)} found",
                stage="dispatch",
                event="WAVE_END",
                status="ok",
                wave=wave_number,
                rows_in=len(wave),
                rows_out=found,
                duration_ms=elapsed_ms(wave_started),
            )

            if on_progress is not None:
                on_progress(min(start + size, total), total)

            if start + size < total:
                sleep(config.inter_wave_delay)

    log_event(
        logger,
        f"dispatch complete: {sum(1 for o in results if o.found)}/{total} found",
        stage="dispatch",
        event="DISPATCH_END",
        status="ok",
        rows_in=total,
        rows_out=len(results),
        duration_ms=elapsed_ms(dispatch_started),
    )
    return results
