"""Batch result writers."""

from __future__ import annotations

from pathlib import Path

from regverify.common.fs import write_csv, write_json
from regverify.common.models import BatchResponse
from regverify.ingest.extract import ExtractionResult

RESULT_COLUMNS = ["identifier", "name", "location", "status", "found"]


def write_batch_report(
    out_dir: Path,
    run_id: str,
    response: BatchResponse,
    extraction: ExtractionResult | None = None,
) -> Path:
    """Write ``results.csv`` and ``summary.json`` under ``out_dir/<run_id>``."""
    run_dir = out_dir / run_id
    write_csv(run_dir / "results.csv", RESULT_COLUMNS, (outcome.to_dict() for outcome in response.results))

    payload = {
        "run_id": run_id,
        "statistics": response.statistics.to_dict(),
        "extraction": None,
    }
    if extraction is not None:
        payload["extraction"] = {
            "total_rows": extraction.total_rows,
            "skipped_count": extraction.skipped_count,
            "identifier_count": len(extraction.identifiers),
        }
    summary_path = run_dir / "summary.json"
    write_json(summary_path, payload)
    return summary_path
