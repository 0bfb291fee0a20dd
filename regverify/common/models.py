"""Data models shared by the lookup and batch layers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class LookupRecord:
    name: str
    identifier: str
    location: str
    status: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Outcome:
    identifier: str
    found: bool
    name: str = ""
    location: str = ""
    status: str = ""

    @classmethod
    def not_found(cls, identifier: str) -> "Outcome":
        return cls(identifier=identifier, found=False)

    @classmethod
    def from_record(cls, record: LookupRecord) -> "Outcome":
        return cls(
            identifier=record.identifier,
            found=True,
            name=record.name,
            location=record.location,
            status=record.status,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BatchStatistics:
    active_count: int = 0
    inactive_count: int = 0
    not_found_count: int = 0
    total_processed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BatchResponse:
    results: list[Outcome] = field(default_factory=list)
    statistics: BatchStatistics = field(default_factory=BatchStatistics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [outcome.to_dict() for outcome in self.results],
            "statistics": self.statistics.to_dict(),
        }
