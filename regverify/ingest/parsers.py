"""Upload parsing: file type detection and CSV/Excel row decoding."""

from __future__ import annotations

import csv
import io
import zipfile
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Literal

from regverify.common.constants import SUPPORTED_EXTENSIONS
from regverify.common.errors import IngestError

FileType = Literal["csv", "excel"]

ATTENDEE_MARKER = "attendee details"
HEADER_MARKERS = ("attended", "professional council number")


@dataclass(frozen=True)
class ParsedFile:
    file_type: FileType
    rows: list[dict[str, Any]] = field(default_factory=list)


def detect_file_type(file_name: str) -> str:
    lower = file_name.lower()
    if lower.endswith(".csv"):
        return "csv"
    # openpyxl reads only the .xlsx format.
    if lower.endswith(".xlsx"):
        return "excel"
    return "unknown"


def is_supported(file_name: str, extensions: Iterable[str] = SUPPORTED_EXTENSIONS) -> bool:
    lower = file_name.lower()
    return any(lower.endswith(ext) for ext in extensions)


def _is_blank(cells: Iterable[Any]) -> bool:
    return all(cell is None or str(cell).strip() == "" for cell in cells)


def _rows_to_dicts(header: list[Any], body: Iterable[list[Any]]) -> list[dict[str, Any]]:
    names = [str(cell).strip() if cell is not None else "" for cell in header]
    out: list[dict[str, Any]] = []
    for cells in body:
        if _is_blank(cells):
            continue
        row: dict[str, Any] = {}
        for name, value in zip(names, cells):
            if not name or name in row:
                continue
            if value is None or (isinstance(value, str) and value == ""):
                continue
            row[name] = value
        out.append(row)
    return out


def find_header_index(rows: list[list[Any]]) -> int:
    """Locate the header row of a meeting attendance export.

    These exports open with metadata blocks. A line reading "Attendee Details"
    precedes the real header; failing that, a row naming both the attendance and
    council number columns is the header itself. Otherwise row 0 is used.
    """
    for index, cells in enumerate(rows):
        text = " ".join(str(cell) for cell in cells if cell is not None).lower()
        if ATTENDEE_MARKER in text:
            return index + 1
        if all(marker in text for marker in HEADER_MARKERS):
            return index
    return 0


def parse_csv(data: bytes) -> ParsedFile:
    # Undecodable bytes become U+FFFD.
    text = data.decode("utf-8-sig", errors="replace")

    raw_rows = [row for row in csv.reader(io.StringIO(text)) if not _is_blank(row)]
    if not raw_rows:
        return ParsedFile(file_type="csv")

    header_index = find_header_index(raw_rows)
    if header_index >= len(raw_rows):
        return ParsedFile(file_type="csv")
    return ParsedFile(
        file_type="csv",
        rows=_rows_to_dicts(raw_rows[header_index], raw_rows[header_index + 1 :]),
    )


def parse_excel(data: bytes) -> ParsedFile:
    from openpyxl import load_workbook
    from openpyxl.utils.exceptions import InvalidFileException

    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise IngestError(f"Unable to read Excel workbook: {exc}") from exc

    try:
        if not workbook.worksheets:
            return ParsedFile(file_type="excel")
        sheet_rows = [list(row) for row in workbook.worksheets[0].iter_rows(values_only=True)]
    finally:
        workbook.close()

    sheet_rows = [row for row in sheet_rows if not _is_blank(row)]
    if not sheet_rows:
        return ParsedFile(file_type="excel")
    return ParsedFile(file_type="excel", rows=_rows_to_dicts(sheet_rows[0], sheet_rows[1:]))


PARSERS: dict[str, Callable[[bytes], ParsedFile]] = {
    "csv": parse_csv,
    "excel": parse_excel,
}


def parse_file(file_name: str, data: bytes, extensions: Iterable[str] = SUPPORTED_EXTENSIONS) -> ParsedFile:
    if not is_supported(file_name, extensions):
        supported = ", ".join(extensions)
        raise IngestError(f"Unsupported file type. Supported formats: {supported}")
    file_type = detect_file_type(file_name)
    parser = PARSERS.get(file_type)
    if parser is None:
        raise IngestError(f"No parser available for {file_type} files")
    return parser(data)
