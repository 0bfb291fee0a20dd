"""Identifier extraction from parsed upload rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from regverify.common.logging import log_event

FALSY_ATTENDANCE = {"no", "false", "0"}

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldMappings:
    """Candidate column headers per logical field, tried in order."""

    registration: tuple[str, ...]
    attended: tuple[str, ...] = ()
    council_name: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExtractionResult:
    identifiers: list[str] = field(default_factory=list)
    skipped_count: int = 0
    total_rows: int = 0


def _as_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def lookup_first(row: Mapping[str, Any], candidates: Iterable[str]) -> Any | None:
    for key in candidates:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def attended(row: Mapping[str, Any], candidates: Iterable[str]) -> bool:
    value = lookup_first(row, candidates)
    if value is None:
        return False
    return _as_text(value).lower() not in FALSY_ATTENDANCE


def council_matches(row: Mapping[str, Any], candidates: Iterable[str], required: str) -> bool:
    value = lookup_first(row, candidates)
    if value is None:
        return False
    return _as_text(value).upper() == required.strip().upper()


def extract_identifiers(
    rows: list[Mapping[str, Any]],
    file_type: str,
    mappings: FieldMappings,
    *,
    required_council: str | None = "HPCSA",
    logger: logging.Logger | None = None,
) -> ExtractionResult:
    """Filter rows and collect unique registration numbers in first-seen order.

    Rows are skipped when attendance is missing or negative, when a CSV row's
    council is not ``required_council``, or when no registration value is
    present. Repeats of an already collected identifier are dropped without
    counting as skipped.
    """
    logger = logger or _logger
    identifiers: list[str] = []
    seen: set[str] = set()
    skipped = 0
    skipped_by_attendance = 0
    skipped_by_council = 0

    for row in rows:
        if mappings.attended and not attended(row, mappings.attended):
            skipped_by_attendance += 1
            skipped += 1
            continue

        if file_type == "csv" and required_council and mappings.council_name:
            if not council_matches(row, mappings.council_name, required_council):
                skipped_by_council += 1
                skipped += 1
                continue

        value = lookup_first(row, mappings.registration)
        identifier = _as_text(value) if value is not None else ""
        if not identifier:
            skipped += 1
            continue
        if identifier not in seen:
            seen.add(identifier)
            identifiers.append(identifier)

    log_event(
        logger,
        (
            f"extraction complete: {len(identifiers)} valid, {skipped_by_attendance} skipped by attendance, "
            f"{skipped_by_council} skipped by council"
        ),
        stage="extract",
        event="EXTRACT_END",
        status="ok",
        rows_in=len(rows),
        rows_out=len(identifiers),
    )
    return ExtractionResult(identifiers=identifiers, skipped_count=skipped, total_rows=len(rows))


def missing_identifiers_message(file_type: str, mappings: FieldMappings, skipped: int, total: int) -> str:
    expected = mappings.registration[0]
    csv_note = ""
    if file_type == "csv":
        csv_note = " Also ensure 'Attended' field is present and set to 'Yes' for rows to process."
    return (
        f"No registration numbers found. Ensure your file has '{expected}' column.{csv_note} "
        f"Skipped {skipped} of {total} rows."
    )
