import json
import logging
from pathlib import Path

import pytest

from regverify.common.errors import ContractError
from regverify.common.fs import read_identifier_lines, write_csv
from regverify.common.ids import generate_run_id, validate_run_id
from regverify.common.logging import JsonLineFormatter, build_logger, log_event
from regverify.common.models import BatchResponse, BatchStatistics, Outcome


def test_generate_run_id_prefix():
    assert generate_run_id().startswith("batch-")
    assert generate_run_id("search").startswith("search-")


def test_validate_run_id_rejects_path_like_values():
    assert validate_run_id("run-1") == "run-1"
    with pytest.raises(ContractError):
        validate_run_id("../escape")


def test_read_identifier_lines_skips_blanks_and_comments(tmp_path: Path):
    path = tmp_path / "ids.txt"
    path.write_text("# header\nMP0001\n\n  MP0002  \n", encoding="utf-8")
    assert read_identifier_lines(path) == ["MP0001", "MP0002"]


def test_write_csv_returns_row_count(tmp_path: Path):
    count = write_csv(tmp_path / "out.csv", ["a"], [{"a": 1}, {"a": 2, "b": 3}])
    assert count == 2
    assert (tmp_path / "out.csv").read_text(encoding="utf-8").splitlines() == ["a", "1", "2"]


def test_json_line_formatter_has_stable_fields():
    record = logging.LogRecord("regverify", logging.INFO, __file__, 1, "hello", None, None)
    record.event = "WAVE_END"
    payload = json.loads(JsonLineFormatter().format(record))
    assert payload["event"] == "WAVE_END"
    assert payload["message"] == "hello"
    assert payload["identifier"] is None
    assert "timestamp" in payload


def test_build_logger_writes_run_log_with_run_id(tmp_path: Path):
    logger = build_logger("run-test", out_dir=tmp_path)
    log_event(logger, "stage start", stage="batch", event="START", status="ok")
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "run_meta" / "run-test.log.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["run_id"] == "run-test"
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


def test_batch_response_to_dict_shape():
    response = BatchResponse(results=[Outcome.not_found("ZZ9999")], statistics=BatchStatistics(not_found_count=1, total_processed=1))
    assert response.to_dict() == {
        "results": [{"identifier": "ZZ9999", "found": False, "name": "", "location": "", "status": ""}],
        "statistics": {"active_count": 0, "inactive_count": 0, "not_found_count": 1, "total_processed": 1},
    }
