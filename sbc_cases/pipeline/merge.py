"""Deduplicate scraped records and merge the historical supplement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from sbc_cases.common.constants import INTERMEDIATE_FILENAME
from sbc_cases.common.deterministic import first_seen, stable_sorted
from sbc_cases.common.errors import StageError
from sbc_cases.common.fs import read_csv, read_json, write_json
from sbc_cases.common.logging import log_event
from sbc_cases.common.models import DailyAreaRecord
from sbc_cases.pipeline.export import write_cleaned_csv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeResult:
    records: list[DailyAreaRecord]
    scraped_duplicates: int
    historical_overridden: int


def dedupe_first_seen(records: list[DailyAreaRecord]) -> tuple[list[DailyAreaRecord], list[DailyAreaRecord]]:
    """First record per (area, date) in document order wins; later edits are dropped."""
    return first_seen(records, key=lambda record: record.key)


def merge_records(scraped: list[DailyAreaRecord], historical: list[DailyAreaRecord]) -> MergeResult:
    kept_scraped, dropped_scraped = dedupe_first_seen(scraped)
    scraped_keys = {record.key for record in kept_scraped}

    # Overlap across the historical boundary resolves in favour of scraped rows.
    kept_historical, _ = dedupe_first_seen([record for record in historical if record.key not in scraped_keys])
    overridden = sum(1 for record in historical if record.key in scraped_keys)

    merged = stable_sorted(kept_scraped + kept_historical, key=lambda record: (record.area, record.date))
    return MergeResult(
        records=merged,
        scraped_duplicates=len(dropped_scraped),
        historical_overridden=overridden,
    )


def load_historical(path: Path) -> list[DailyAreaRecord]:
    if not path.exists():
        return []
    _header, rows = read_csv(path)
    return [
        DailyAreaRecord(area=row["area"], cases=int(row["cases"]), date=date.fromisoformat(row["date"]))
        for row in rows
    ]


def load_scraped(data_dir: Path) -> list[DailyAreaRecord]:
    path = data_dir / "intermediate" / INTERMEDIATE_FILENAME
    if not path.exists():
        raise StageError(f"Missing extraction output: {path}")
    payload = read_json(path)
    rows = stable_sorted(payload.get("records", []), key=lambda row: row["block"])
    return [DailyAreaRecord.from_dict(row) for row in rows]


def run_merge(pipeline_config: dict, data_dir: Path, run_id: str, historical_path: Path) -> dict:
    scraped = load_scraped(data_dir)
    historical = load_historical(historical_path)
    if not historical_path.exists():
        logger.warning(
            f"historical supplement not found at {historical_path}; merging scraped rows only",
            extra={"stage": "merge", "event": "HISTORICAL_MISSING", "status": "warning"},
        )

    result = merge_records(scraped, historical)
    out_path = data_dir / "out" / pipeline_config["output"]["cleaned_filename"]
    write_cleaned_csv(out_path, result.records)

    dates = [record.date for record in result.records]
    payload = {
        "run_id": run_id,
        "scraped_rows": len(scraped),
        "historical_rows": len(historical),
        "scraped_duplicates": result.scraped_duplicates,
        "historical_overridden": result.historical_overridden,
        "merged_rows": len(result.records),
        "first_date": min(dates).isoformat() if dates else None,
        "last_date": max(dates).isoformat() if dates else None,
        "output": str(out_path),
    }
    write_json(data_dir / "intermediate" / "merge_stats.json", payload)

    log_event(
        logger,
        "merge complete",
        stage="merge",
        event="MERGE_DONE",
        status="ok",
        rows_in=len(scraped) + len(historical),
        rows_out=len(result.records),
    )
    return payload
