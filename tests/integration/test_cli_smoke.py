from pathlib import Path

import pytest

from sbc_cases.cli import parse_args, run_command
from sbc_cases.common.fs import read_json

FIXTURES = Path("tests/fixtures")


def _args(command: str, data_dir: Path, *extra: str):
    return parse_args(
        [
            command,
            "--config-dir",
            "config",
            "--data-dir",
            str(data_dir),
            "--document",
            str(FIXTURES / "status_page.html"),
            "--historical",
            str(FIXTURES / "historical_cases.csv"),
            "--run-date",
            "2020-11-12",
            "--run-id",
            "run-test",
            *extra,
        ]
    )


@pytest.mark.integration
def test_cli_all_generates_expected_artifacts(tmp_path: Path):
    data_dir = tmp_path / "data"

    exit_code = run_command(_args("all", data_dir))

    assert exit_code == 0
    assert (data_dir / "intermediate" / "extracted.json").exists()
    assert (data_dir / "out" / "sb_county_cases.csv").exists()
    assert (data_dir / "out" / "region_weekly.csv").exists()
    assert (data_dir / "out" / "reports" / "growth.json").exists()
    assert (data_dir / "out" / "reports" / "validation_report.json").exists()
    assert (data_dir / "run_meta" / "run-test.log.jsonl").exists()

    summary = read_json(data_dir / "out" / "reports" / "run_summary.json")
    assert summary["status"] == "partial"
    assert summary["totals"] == {"blocks_located": 5, "blocks_extracted": 4, "scraped_rows": 13, "merged_rows": 17}
    assert summary["skips"] == {
        "not_labels": 1,
        "structural_mismatches": 1,
        "date_errors": 1,
        "schema_errors": 1,
        "rows_rejected": 1,
        "scraped_duplicates": 1,
        "historical_overridden": 1,
    }
    assert summary["warnings"] == ["DECREASING_CUMULATIVE_COUNTS"]


@pytest.mark.integration
def test_extract_records_carry_block_positions(tmp_path: Path):
    data_dir = tmp_path / "data"
    assert run_command(_args("extract", data_dir)) == 0

    extracted = read_json(data_dir / "intermediate" / "extracted.json")
    santa_maria = [row for row in extracted["records"] if row["area"] == "CITY OF SANTA MARIA" and row["date"] == "2020-11-04"]
    assert santa_maria == [
        {"block": 1, "area": "CITY OF SANTA MARIA", "cases": 4000, "date": "2020-11-04"},
        {"block": 2, "area": "CITY OF SANTA MARIA", "cases": 3990, "date": "2020-11-04"},
    ]
    assert extracted["rejected_samples"][0]["area"] == "COMMUNITY OF ORCUTT"


@pytest.mark.integration
def test_growth_report_for_fixture(tmp_path: Path):
    data_dir = tmp_path / "data"
    assert run_command(_args("all", data_dir)) == 0

    growth = {entry["region"]: entry for entry in read_json(data_dir / "out" / "reports" / "growth.json")["growth"]}
    # 2020-10-28 is absent from the fixture, so three samples span three weeks.
    assert growth["south"]["samples"] == 3
    assert growth["south"]["elapsed_weeks"] == pytest.approx(3.0)
    assert growth["south"]["missing_weeks"] == 1
    assert growth["south"]["weekly_growth_rate"] == pytest.approx((3100 / 2400) ** (1 / 3))
    assert growth["north"]["end_cases"] == 4100
