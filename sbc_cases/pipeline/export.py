"""Tabular interchange for the cleaned dataset and weekly region series."""

from __future__ import annotations

from pathlib import Path

from sbc_cases.common.constants import CLEANED_HEADERS, WEEKLY_HEADERS
from sbc_cases.common.errors import StageError
from sbc_cases.common.fs import read_csv, write_csv
from sbc_cases.common.models import DailyAreaRecord, RegionWeeklyRecord


def _serialize_row(row: dict, headers: list[str]) -> dict:
    out = {}
    for key in headers:
        value = row.get(key)
        out[key] = "" if value is None else value
    return out


def write_cleaned_csv(path: Path, records: list[DailyAreaRecord]) -> Path:
    sorted_records = sorted(records, key=lambda record: (record.area, record.date))
    write_csv(path, CLEANED_HEADERS, [_serialize_row(record.to_dict(), CLEANED_HEADERS) for record in sorted_records])
    return path


def read_cleaned_csv(path: Path) -> list[DailyAreaRecord]:
    if not path.exists():
        raise StageError(f"Missing CSV input: {path}")
    header, rows = read_csv(path)
    if header != CLEANED_HEADERS:
        raise StageError(f"Unexpected header in {path}: {header}")
    return [DailyAreaRecord.from_dict(row) for row in rows]


def write_weekly_csv(path: Path, records: list[RegionWeeklyRecord]) -> Path:
    sorted_records = sorted(records, key=lambda record: (record.region, record.date))
    write_csv(path, WEEKLY_HEADERS, [_serialize_row(record.to_dict(), WEEKLY_HEADERS) for record in sorted_records])
    return path
