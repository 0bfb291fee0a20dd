from __future__ import annotations

import threading

import pytest

from regverify.batch.config import BatchConfig
from regverify.batch.processor import BatchProcessor
from regverify.common.errors import ContractError, LookupTimeout
from regverify.common.models import BatchStatistics
from regverify.lookup.client import LookupClient


def register_row(identifier: str, status: str) -> list:
    return ["Dr", "Test", "Person", identifier, "Johannesburg", "2000", "Medical Practitioner", status]


class FakeRegisterHttp:
    """Stands in for the register endpoint, keyed by the posted form field."""

    def __init__(self, rows_by_id: dict[str, list], failures: dict[str, int] | None = None):
        self.rows_by_id = rows_by_id
        self.failures = dict(failures or {})
        self.posted: list[str] = []
        self.lock = threading.Lock()

    def post_form_json(self, url: str, *, data: dict, timeout=None, headers=None):
        identifier = data["regNumber"]
        with self.lock:
            self.posted.append(identifier)
            remaining = self.failures.get(identifier, 0)
            if remaining:
                self.failures[identifier] = remaining - 1
                raise LookupTimeout(f"timeout for {identifier}")
        rows = self.rows_by_id.get(identifier, [])
        return {"data": rows, "headers": ["Title", "Surname", "Names", "Registration"], "error": None}


def build_processor(http: FakeRegisterHttp, **config) -> BatchProcessor:
    client = LookupClient(http, "https://register.example/lookup")
    return BatchProcessor(client, BatchConfig(**config), sleep=lambda _s: None)


@pytest.mark.integration
def test_mixed_batch_statistics():
    http = FakeRegisterHttp(
        {
            "MP0001": [register_row("MP 0001", "Active")],
            "MP0002": [register_row("MP0002", "Inactive")],
        }
    )
    processor = build_processor(http)

    response = processor.process(["MP0001", "MP0002", "ZZ9999"])

    assert response.statistics == BatchStatistics(active_count=1, inactive_count=1, not_found_count=1, total_processed=3)
    assert [r.identifier for r in response.results] == ["MP0001", "MP0002", "ZZ9999"]
    assert response.results[0].name == "Dr Test Person"
    assert response.results[0].location == "Johannesburg"
    assert response.results[2].found is False


@pytest.mark.integration
def test_transient_failures_degrade_without_aborting_batch():
    ids = [f"MP{i:04d}" for i in range(1, 8)]
    http = FakeRegisterHttp(
        {identifier: [register_row(identifier, "Active")] for identifier in ids},
        failures={"MP0002": 1, "MP0005": 2},
    )
    progress: list[tuple[int, int]] = []

    response = build_processor(http, batch_concurrency=3).process(
        ids, on_progress=lambda done, total: progress.append((done, total))
    )

    assert len(response.results) == len(ids)
    assert [r.identifier for r in response.results] == ids
    assert response.results[1].found is True
    assert response.results[4].found is False
    assert response.statistics.active_count == 6
    assert response.statistics.not_found_count == 1
    assert progress == [(3, 7), (6, 7), (7, 7)]
    assert http.posted.count("MP0005") == 2


@pytest.mark.integration
def test_per_call_overrides_do_not_change_processor_defaults():
    http = FakeRegisterHttp({})
    processor = build_processor(http, batch_concurrency=5)
    progress: list[tuple[int, int]] = []

    processor.process(["A", "B", "C"], on_progress=lambda d, t: progress.append((d, t)), batch_concurrency=1)

    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert processor.config.batch_concurrency == 5


@pytest.mark.integration
def test_malformed_override_is_a_contract_error_not_an_empty_batch():
    processor = build_processor(FakeRegisterHttp({}))
    with pytest.raises(ContractError):
        processor.process(["MP0001"], batch_concurrency=-1)
