from datetime import date

import pytest

from sbc_cases.common.errors import SchemaError, ValueParseError
from sbc_cases.common.models import DailyAreaRecord, RawTable
from sbc_cases.pipeline.normalise import (
    is_area_row,
    normalise_table,
    parse_case_value,
    resolve_case_column,
)

CANDIDATES = ["Total Confirmed Cases", "Confirmed Cases"]
MARKERS = ["Total", "Pending"]
ON_DATE = date(2020, 11, 4)


def _normalise(table: RawTable):
    return normalise_table(
        table,
        ON_DATE,
        area_column="Geographic Area",
        case_candidates=CANDIDATES,
        excluded_markers=MARKERS,
    )


def test_em_dash_placeholder_becomes_zero():
    table = RawTable(
        headers=["Geographic Area", "Confirmed Cases"],
        rows=[{"Geographic Area": "CITY OF GOLETA", "Confirmed Cases": "—"}],
    )
    result = _normalise(table)
    assert result.records == [DailyAreaRecord(area="CITY OF GOLETA", cases=0, date=ON_DATE)]
    assert result.rejected == []


def test_summary_rows_are_excluded_regardless_of_count():
    table = RawTable(
        headers=["Geographic Area", "Confirmed Cases"],
        rows=[
            {"Geographic Area": "Total Confirmed Cases", "Confirmed Cases": "8200"},
            {"Geographic Area": "Pending", "Confirmed Cases": "not a number"},
            {"Geographic Area": "CITY OF SANTA MARIA", "Confirmed Cases": "4000"},
        ],
    )
    result = _normalise(table)
    assert [record.area for record in result.records] == ["CITY OF SANTA MARIA"]
    assert result.rejected == []


def test_total_confirmed_cases_column_is_preferred():
    table = RawTable(
        headers=["Geographic Area", "Confirmed Cases", "Total Confirmed Cases"],
        rows=[{"Geographic Area": "CITY OF LOMPOC", "Confirmed Cases": "3", "Total Confirmed Cases": "250"}],
    )
    assert _normalise(table).records[0].cases == 250


def test_missing_case_column_raises_schema_error():
    table = RawTable(headers=["Geographic Area", "Confirmed Cases (cumulative)"], rows=[])
    with pytest.raises(SchemaError):
        _normalise(table)


def test_missing_area_column_raises_schema_error():
    with pytest.raises(SchemaError):
        _normalise(RawTable(headers=["Area", "Confirmed Cases"], rows=[]))


def test_bad_value_skips_row_and_keeps_the_rest():
    table = RawTable(
        headers=["Geographic Area", "Confirmed Cases"],
        rows=[
            {"Geographic Area": "COMMUNITY OF ORCUTT", "Confirmed Cases": "12a"},
            {"Geographic Area": "CITY OF GOLETA", "Confirmed Cases": "300"},
            {"Geographic Area": "", "Confirmed Cases": "5"},
        ],
    )
    result = _normalise(table)
    assert [record.area for record in result.records] == ["CITY OF GOLETA"]
    assert [rejected["area"] for rejected in result.rejected] == ["COMMUNITY OF ORCUTT", ""]
    assert {rejected["error_code"] for rejected in result.rejected} == {"VALUE_PARSE_ERROR"}


def test_resolve_case_column_uses_candidate_order():
    assert resolve_case_column(["Confirmed Cases", "Total Confirmed Cases"], CANDIDATES) == "Total Confirmed Cases"
    assert resolve_case_column(["Confirmed Cases"], CANDIDATES) == "Confirmed Cases"


@pytest.mark.parametrize(("raw", "expected"), [("0", 0), (" 42 ", 42), ("1,024", 1024), ("—", 0)])
def test_parse_case_value_accepts_counts(raw, expected):
    assert parse_case_value(raw) == expected


@pytest.mark.parametrize("raw", ["-3", "", None, "12a", "1,02", "--"])
def test_parse_case_value_rejects_non_counts(raw):
    with pytest.raises(ValueParseError):
        parse_case_value(raw)


def test_is_area_row_is_case_sensitive():
    assert not is_area_row("Total", MARKERS)
    assert not is_area_row("Pending Investigation", MARKERS)
    assert is_area_row("TOTALLY REAL AREA", MARKERS)
