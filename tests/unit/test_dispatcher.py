from __future__ import annotations

import threading
import time

import pytest

from regverify.batch.config import BatchConfig
from regverify.batch.dispatcher import dispatch, iter_waves
from regverify.common.errors import ContractError
from regverify.common.models import Outcome


def found_lookup(identifier: str) -> Outcome:
    return Outcome(identifier=identifier, found=True, status="Active")


class RecordingLookup:
    def __init__(self, delays: dict[str, float] | None = None):
        self.delays = delays or {}
        self.events: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.lock = threading.Lock()

    def __call__(self, identifier: str) -> Outcome:
        with self.lock:
            self.events.append(("start", identifier))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        time.sleep(self.delays.get(identifier, 0.0))
        with self.lock:
            self.in_flight -= 1
            self.events.append(("end", identifier))
        return Outcome.not_found(identifier)


def test_iter_waves_partitions_consecutively():
    waves = list(iter_waves(["a", "b", "c", "d", "e"], 2))
    assert waves == [(0, ["a", "b"]), (2, ["c", "d"]), (4, ["e"])]


def test_five_identifiers_concurrency_two_gives_three_waves_and_progress():
    progress: list[tuple[int, int]] = []
    sleeps: list[float] = []
    ids = [f"MP000{i}" for i in range(1, 6)]

    results = dispatch(
        ids,
        found_lookup,
        BatchConfig(batch_concurrency=2, inter_wave_delay=0.1),
        on_progress=lambda done, total: progress.append((done, total)),
        sleep=sleeps.append,
    )

    assert [r.identifier for r in results] == ids
    assert progress == [(2, 5), (4, 5), (5, 5)]
    assert sleeps == [0.1, 0.1]


def test_waves_are_barriers_and_concurrency_is_bounded():
    lookup = RecordingLookup(delays={"a": 0.05})
    dispatch(["a", "b", "c", "d"], lookup, BatchConfig(batch_concurrency=2, inter_wave_delay=0), sleep=lambda _s: None)

    first_wave_end = max(i for i, event in enumerate(lookup.events) if event in {("end", "a"), ("end", "b")})
    second_wave_start = min(i for i, event in enumerate(lookup.events) if event in {("start", "c"), ("start", "d")})
    assert first_wave_end < second_wave_start
    assert lookup.max_in_flight <= 2


def test_order_is_input_order_even_when_completion_is_reversed():
    delays = {"first": 0.06, "second": 0.03, "third": 0.0}
    results = dispatch(
        ["first", "second", "third"],
        RecordingLookup(delays=delays),
        BatchConfig(batch_concurrency=3, inter_wave_delay=0),
    )
    assert [r.identifier for r in results] == ["first", "second", "third"]


def test_inter_wave_delay_elapses_between_waves_only():
    started = time.monotonic()
    dispatch(["a", "b", "c"], found_lookup, BatchConfig(batch_concurrency=1, inter_wave_delay=0.1))
    assert time.monotonic() - started >= 0.2


def test_empty_list_dispatches_nothing():
    progress: list[tuple[int, int]] = []
    sleeps: list[float] = []
    results = dispatch([], found_lookup, BatchConfig(), on_progress=lambda *a: progress.append(a), sleep=sleeps.append)
    assert results == []
    assert progress == []
    assert sleeps == []


def test_single_identifier_is_one_wave_without_delay():
    progress: list[tuple[int, int]] = []
    sleeps: list[float] = []
    results = dispatch(["MP0001"], found_lookup, BatchConfig(), on_progress=lambda *a: progress.append(a), sleep=sleeps.append)
    assert len(results) == 1
    assert progress == [(1, 1)]
    assert sleeps == []


@pytest.mark.parametrize("bad", [["MP0001", ""], ["  "], [None], "MP0001"])
def test_invalid_identifiers_fail_loudly(bad):
    with pytest.raises(ContractError):
        dispatch(bad, found_lookup, BatchConfig())


def test_invalid_config_fails_before_dispatch():
    calls: list[str] = []

    def lookup(identifier: str) -> Outcome:
        calls.append(identifier)
        return Outcome.not_found(identifier)

    with pytest.raises(ContractError):
        dispatch(["MP0001"], lookup, BatchConfig(batch_concurrency=0))
    assert calls == []
