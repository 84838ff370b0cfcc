from __future__ import annotations

from pathlib import Path

import pytest

from sbc_cases.cli import parse_args, run_command


def _stage_args(stage: str, data_dir: Path) -> list[str]:
    return [
        stage,
        "--config-dir",
        "config",
        "--data-dir",
        str(data_dir),
        "--document",
        "tests/fixtures/status_page.html",
        "--historical",
        "tests/fixtures/historical_cases.csv",
        "--run-date",
        "2020-11-12",
        "--run-id",
        "run-fixture",
    ]


@pytest.mark.regression
def test_fixture_pipeline_snapshot_outputs_are_stable(tmp_path: Path):
    data_dir = tmp_path / "data"

    for stage in ("extract", "merge", "aggregate", "validate"):
        assert run_command(parse_args(_stage_args(stage, data_dir))) == 0

    cleaned_actual = (data_dir / "out" / "sb_county_cases.csv").read_text(encoding="utf-8")
    cleaned_expected = Path("tests/fixtures/expected/sb_county_cases.csv").read_text(encoding="utf-8")
    assert cleaned_actual == cleaned_expected

    weekly_actual = (data_dir / "out" / "region_weekly.csv").read_text(encoding="utf-8")
    weekly_expected = Path("tests/fixtures/expected/region_weekly.csv").read_text(encoding="utf-8")
    assert weekly_actual == weekly_expected

    report = (data_dir / "out" / "reports" / "validation_report.json").read_text(encoding="utf-8")
    assert '"duplicate_keys": 0' in report
    assert '"unclassified_areas": []' in report
