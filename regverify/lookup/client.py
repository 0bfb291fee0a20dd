"""Remote register lookup: one request per identifier."""

from __future__ import annotations

import re
from typing import Any

from regverify.common.errors import UpstreamError
from regverify.common.http import HttpClient, TimeoutConfig
from regverify.common.models import LookupRecord

# Fixed row positions returned by the register report endpoint.
NAME_POSITIONS = (0, 1, 2)
IDENTIFIER_POSITION = 3
LOCATION_POSITION = 4
STATUS_POSITION = 7

_WHITESPACE_RE = re.compile(r"\s+")


def _cell(row: list[Any], position: int) -> str:
    if position >= len(row):
        return ""
    value = row[position]
    if value is None or value == "":
        return ""
    return str(value)


def parse_row(row: list[Any], identifier: str) -> LookupRecord:
    name = " ".join(_cell(row, pos) for pos in NAME_POSITIONS).strip()
    canonical = _cell(row, IDENTIFIER_POSITION) or identifier
    return LookupRecord(
        name=name,
        identifier=_WHITESPACE_RE.sub("", canonical),
        location=_cell(row, LOCATION_POSITION),
        status=_cell(row, STATUS_POSITION),
    )


def extract_rows(payload: Any) -> list[list[Any]]:
    """Rows of a decoded response; an ``error`` flag or empty ``data`` means no match."""
    if not isinstance(payload, dict):
        raise UpstreamError(f"Unexpected payload type: {type(payload).__name__}")
    if payload.get("error"):
        return []
    data = payload.get("data") or []
    if not isinstance(data, list):
        raise UpstreamError("Payload field 'data' is not a list")
    return [row for row in data if isinstance(row, list)]


class LookupClient:
    def __init__(self, http: HttpClient, api_url: str) -> None:
        self.http = http
        self.api_url = api_url

    def fetch_rows(self, identifier: str, timeout: float) -> list[list[Any]]:
        payload = self.http.post_form_json(
            self.api_url,
            data={"regNumber": identifier},
            timeout=TimeoutConfig.uniform(timeout),
        )
        return extract_rows(payload)

    def lookup(self, identifier: str, timeout: float) -> list[LookupRecord]:
        return [parse_row(row, identifier) for row in self.fetch_rows(identifier, timeout)]
