"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from sbc_cases.common.constants import INTERMEDIATE_FILENAME
from sbc_cases.common.fs import read_json, write_json


def _read_optional(path: Path) -> dict | None:
    if not path.exists():
        return None
    return read_json(path)


def write_run_summary(
    data_dir: Path,
    run_id: str,
    run_date: str,
    stages: list[str],
    failed_stages: list[str],
) -> Path:
    extracted = _read_optional(data_dir / "intermediate" / INTERMEDIATE_FILENAME)
    merge_stats = _read_optional(data_dir / "intermediate" / "merge_stats.json")
    validation = _read_optional(data_dir / "out" / "reports" / "validation_report.json")
    growth = _read_optional(data_dir / "out" / "reports" / "growth.json")

    skips = dict(extracted.get("skips", {})) if extracted else {}
    if merge_stats:
        skips["scraped_duplicates"] = int(merge_stats.get("scraped_duplicates", 0))
        skips["historical_overridden"] = int(merge_stats.get("historical_overridden", 0))

    totals = {
        "blocks_located": int(extracted.get("blocks_located", 0)) if extracted else 0,
        "blocks_extracted": int(extracted.get("blocks_extracted", 0)) if extracted else 0,
        "scraped_rows": int(extracted.get("record_count", 0)) if extracted else 0,
        "merged_rows": int(merge_stats.get("merged_rows", 0)) if merge_stats else 0,
    }

    warnings = list(validation.get("warnings", [])) if validation else []
    errors = [f"STAGE_FAILED:{stage}" for stage in failed_stages]

    status = "success"
    if errors:
        status = "error"
    elif warnings or sum(skips.values()) > 0:
        status = "partial"

    summary_path = data_dir / "out" / "reports" / "run_summary.json"
    payload = {
        "run_id": run_id,
        "run_date": run_date,
        "status": status,
        "stages": stages,
        "totals": totals,
        "skips": skips,
        "warnings": warnings,
        "errors": errors,
        "growth": growth.get("growth", []) if growth else [],
    }
    write_json(summary_path, payload)
    return summary_path
