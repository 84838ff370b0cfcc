"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any


@dataclass(frozen=True)
class DailyAreaRecord:
    area: str
    cases: int
    date: date

    @property
    def key(self) -> tuple[str, date]:
        return (self.area, self.date)

    def to_dict(self) -> dict[str, Any]:
        return {"area": self.area, "cases": self.cases, "date": self.date.isoformat()}

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "DailyAreaRecord":
        return cls(
            area=row["area"],
            cases=int(row["cases"]),
            date=date.fromisoformat(row["date"]),
        )


@dataclass(frozen=True)
class RawTable:
    """Header-named rows parsed from one source table."""

    headers: list[str]
    rows: list[dict[str, str]]


@dataclass(frozen=True)
class ExtractedBlock:
    position: int
    date: date
    table: RawTable


@dataclass(frozen=True)
class RegionWeeklyRecord:
    region: str
    date: date
    cases: int
    new_cases: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "region": self.region,
            "date": self.date.isoformat(),
            "cases": self.cases,
            "new_cases": self.new_cases,
        }
