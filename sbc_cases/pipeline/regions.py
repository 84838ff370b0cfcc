"""Region classification, weekly downsampling and growth-rate arithmetic."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import date
from pathlib import Path
from typing import Iterable

from sbc_cases.common.constants import REGIONS, REPORTED_REGIONS
from sbc_cases.common.fs import write_json
from sbc_cases.common.logging import log_event
from sbc_cases.common.models import DailyAreaRecord, RegionWeeklyRecord
from sbc_cases.common.time_utils import weekday_index
from sbc_cases.pipeline.export import read_cleaned_csv, write_weekly_csv

logger = logging.getLogger(__name__)


class RegionMap:
    """Exact-match area to region lookup; anything unlisted is excluded."""

    def __init__(self, areas_by_region: dict[str, list[str]], version: str | None = None) -> None:
        self.version = version
        self._region_by_area: dict[str, str] = {}
        for region in REGIONS:
            for area in areas_by_region.get(region) or []:
                self._region_by_area[area] = region

    @classmethod
    def from_config(cls, regions_config: dict) -> "RegionMap":
        return cls(regions_config["regions"], version=str(regions_config.get("version")))

    def classify(self, area: str) -> str:
        return self._region_by_area.get(area, "excluded")

    def is_known(self, area: str) -> bool:
        return area in self._region_by_area

    def unclassified(self, areas: Iterable[str]) -> list[str]:
        return sorted({area for area in areas if not self.is_known(area)})


def sum_by_region(records: Iterable[DailyAreaRecord], region_map: RegionMap) -> dict[tuple[str, date], int]:
    totals: dict[tuple[str, date], int] = defaultdict(int)
    for record in records:
        region = region_map.classify(record.area)
        if region == "excluded":
            continue
        totals[(region, record.date)] += record.cases
    return dict(totals)


def weekly_series(
    records: Iterable[DailyAreaRecord],
    region_map: RegionMap,
    reference_weekday: int,
) -> list[RegionWeeklyRecord]:
    totals = sum_by_region(records, region_map)

    by_region: dict[str, list[tuple[date, int]]] = defaultdict(list)
    for (region, day), cases in totals.items():
        if day.weekday() == reference_weekday:
            by_region[region].append((day, cases))

    out: list[RegionWeeklyRecord] = []
    for region in sorted(by_region):
        previous: int | None = None
        for day, cases in sorted(by_region[region]):
            new_cases = None if previous is None else cases - previous
            out.append(RegionWeeklyRecord(region=region, date=day, cases=cases, new_cases=new_cases))
            previous = cases
    return out


def with_deltas(records: Iterable[RegionWeeklyRecord]) -> list[RegionWeeklyRecord]:
    return [record for record in records if record.new_cases is not None]


def growth_rate(totals: list[int], weeks: float | None = None) -> float | None:
    """Per-week multiplicative rate r solving ``c_1 * r ** weeks == c_w``.

    ``weeks`` is the time elapsed between the first and last total; it defaults
    to ``len(totals) - 1``, which holds only for consecutive weekly samples.
    """
    if len(totals) < 2 or totals[0] <= 0 or totals[-1] < 0:
        return None
    if weeks is None:
        weeks = len(totals) - 1
    if weeks <= 0:
        return None
    return (totals[-1] / totals[0]) ** (1 / weeks)


def doubling_time(rate: float | None) -> float | None:
    if rate is None or rate <= 1:
        return None
    return math.log(2) / math.log(rate)


def growth_summary(weekly: list[RegionWeeklyRecord], region: str, window: int) -> dict:
    series = [record for record in sorted(weekly, key=lambda record: record.date) if record.region == region]
    # The window spans calendar weeks back from the latest sample, so missing weeks shrink it.
    sample = [record for record in series if (series[-1].date - record.date).days <= (window - 1) * 7]
    totals = [record.cases for record in sample]
    elapsed = (sample[-1].date - sample[0].date).days / 7 if sample else None
    rate = growth_rate(totals, elapsed)
    return {
        "region": region,
        "window_weeks": window,
        "samples": len(sample),
        "elapsed_weeks": elapsed,
        "missing_weeks": int(elapsed) + 1 - len(sample) if sample else 0,
        "start_date": sample[0].date.isoformat() if sample else None,
        "end_date": sample[-1].date.isoformat() if sample else None,
        "start_cases": totals[0] if totals else None,
        "end_cases": totals[-1] if totals else None,
        "weekly_growth_rate": rate,
        "doubling_time_weeks": doubling_time(rate),
    }


def run_aggregate(pipeline_config: dict, regions_config: dict, data_dir: Path, run_id: str) -> dict:
    aggregation = pipeline_config["aggregation"]
    output = pipeline_config["output"]

    dataset = read_cleaned_csv(data_dir / "out" / output["cleaned_filename"])
    region_map = RegionMap.from_config(regions_config)
    weekly = weekly_series(dataset, region_map, weekday_index(aggregation["reference_weekday"]))

    weekly_path = data_dir / "out" / output["weekly_filename"]
    write_weekly_csv(weekly_path, weekly)

    window = int(aggregation["growth_window_weeks"])
    payload = {
        "run_id": run_id,
        "regions_version": region_map.version,
        "reference_weekday": aggregation["reference_weekday"],
        "weekly_rows": len(weekly),
        "growth": [growth_summary(weekly, region, window) for region in REPORTED_REGIONS],
    }
    write_json(data_dir / "out" / "reports" / "growth.json", payload)

    log_event(
        logger,
        "aggregation complete",
        stage="aggregate",
        event="AGGREGATE_DONE",
        status="ok",
        rows_in=len(dataset),
        rows_out=len(weekly),
    )
    return payload
