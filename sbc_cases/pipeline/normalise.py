"""Reduce one raw table to clean (area, cases, date) records."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from sbc_cases.common.constants import EM_DASH
from sbc_cases.common.errors import SchemaError, ValueParseError
from sbc_cases.common.models import DailyAreaRecord, RawTable

_COUNT_RE = re.compile(r"^\d{1,3}(,\d{3})+$|^\d+$")


@dataclass
class NormalisedTable:
    records: list[DailyAreaRecord] = field(default_factory=list)
    rejected: list[dict] = field(default_factory=list)


def resolve_case_column(headers: Iterable[str], candidates: Iterable[str]) -> str:
    available = set(headers)
    for candidate in candidates:
        if candidate in available:
            return candidate
    raise SchemaError(f"none of {list(candidates)} present in headers {sorted(available)}")


def is_area_row(area: str, excluded_markers: Iterable[str]) -> bool:
    return not any(marker in area for marker in excluded_markers)


def parse_case_value(raw: str | None, zero_placeholder: str = EM_DASH) -> int:
    text = (raw or "").strip()
    if text == zero_placeholder:
        text = "0"
    if not _COUNT_RE.match(text):
        raise ValueParseError(f"non-numeric case count {raw!r}")
    return int(text.replace(",", ""))


def normalise_table(
    table: RawTable,
    on_date: date,
    *,
    area_column: str,
    case_candidates: Iterable[str],
    excluded_markers: Iterable[str],
    zero_placeholder: str = EM_DASH,
) -> NormalisedTable:
    if area_column not in table.headers:
        raise SchemaError(f"area column {area_column!r} missing from headers {table.headers}")
    case_column = resolve_case_column(table.headers, list(case_candidates))
    markers = list(excluded_markers)

    result = NormalisedTable()
    for row in table.rows:
        area = (row.get(area_column) or "").strip()
        if not is_area_row(area, markers):
            continue
        try:
            if not area:
                raise ValueParseError("blank area name")
            cases = parse_case_value(row.get(case_column), zero_placeholder)
        except ValueParseError as exc:
            result.rejected.append(
                {
                    "area": area,
                    "raw_cases": row.get(case_column),
                    "reason": str(exc),
                    "error_code": exc.error_code,
                }
            )
            continue
        result.records.append(DailyAreaRecord(area=area, cases=cases, date=on_date))

    return result
