"""Validation stage and dataset quality report generation."""

from __future__ import annotations

from collections import Counter, defaultdict
from pathlib import Path

from sbc_cases.common.errors import ContractError
from sbc_cases.common.fs import write_json
from sbc_cases.common.models import DailyAreaRecord
from sbc_cases.pipeline.export import read_cleaned_csv
from sbc_cases.pipeline.regions import RegionMap


def _duplicate_keys(records: list[DailyAreaRecord]) -> int:
    counts = Counter(record.key for record in records)
    return sum(count - 1 for count in counts.values() if count > 1)


def _decreasing_steps(records: list[DailyAreaRecord]) -> dict[str, int]:
    by_area: dict[str, list[DailyAreaRecord]] = defaultdict(list)
    for record in records:
        by_area[record.area].append(record)

    steps: dict[str, int] = {}
    for area, series in sorted(by_area.items()):
        ordered = sorted(series, key=lambda record: record.date)
        drops = sum(1 for prev, cur in zip(ordered, ordered[1:]) if cur.cases < prev.cases)
        if drops:
            steps[area] = drops
    return steps


def run_validate(
    pipeline_config: dict,
    regions_config: dict,
    data_dir: Path,
    run_id: str,
    run_date: str,
) -> Path:
    cleaned_path = data_dir / "out" / pipeline_config["output"]["cleaned_filename"]
    records = read_cleaned_csv(cleaned_path)
    region_map = RegionMap.from_config(regions_config)

    duplicates = _duplicate_keys(records)
    negatives = sum(1 for record in records if record.cases < 0)
    unclassified = region_map.unclassified(record.area for record in records)
    decreasing = _decreasing_steps(records)

    warnings: list[str] = []
    errors: list[str] = []

    if duplicates > 0:
        errors.append("DUPLICATE_AREA_DATE_KEYS")
    if negatives > 0:
        errors.append("NEGATIVE_CASE_COUNTS")
    if unclassified:
        warnings.append("UNCLASSIFIED_AREAS_PRESENT")
    if decreasing:
        warnings.append("DECREASING_CUMULATIVE_COUNTS")

    if errors:
        raise ContractError(";".join(errors))

    region_counts = Counter(region_map.classify(record.area) for record in records)
    dates = [record.date for record in records]
    report_payload = {
        "run_id": run_id,
        "run_date": run_date,
        "counts": {
            "rows": len(records),
            "areas": len({record.area for record in records}),
            "dates": len(set(dates)),
            "rows_by_region": dict(sorted(region_counts.items())),
        },
        "coverage": {
            "first_date": min(dates).isoformat() if dates else None,
            "last_date": max(dates).isoformat() if dates else None,
        },
        "quality": {
            "duplicate_keys": duplicates,
            "negative_counts": negatives,
            "decreasing_steps_by_area": decreasing,
        },
        "unclassified_areas": unclassified,
        "warnings": warnings,
        "errors": errors,
    }

    report_path = data_dir / "out" / "reports" / "validation_report.json"
    write_json(report_path, report_payload)
    return report_path
