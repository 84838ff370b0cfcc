"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from sbc_cases.common.constants import REGIONS
from sbc_cases.common.errors import ConfigError
from sbc_cases.common.time_utils import weekday_index


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"Expected a mapping for {ctx}")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_non_empty_list(value, ctx: str) -> None:
    if not isinstance(value, list) or not value:
        raise ConfigError(f"{ctx} must be a non-empty list")


def validate_pipeline_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {
        "inputs",
        "blocks",
        "columns",
        "dates",
        "schema_failure_ratio",
        "aggregation",
        "output",
    }
    _assert_required_keys(cfg, top_required, "pipeline config")
    _assert_no_unknown_keys(cfg, top_required, "pipeline config", allow_unknown)

    _assert_required_keys(cfg["inputs"], {"document", "historical_csv"}, "inputs")
    _assert_required_keys(cfg["blocks"], {"label_selector", "required_columns"}, "blocks")
    _assert_non_empty_list(cfg["blocks"]["required_columns"], "blocks.required_columns")
    _assert_required_keys(
        cfg["columns"],
        {"area", "case_candidates", "excluded_area_markers", "zero_placeholder"},
        "columns",
    )
    _assert_non_empty_list(cfg["columns"]["case_candidates"], "columns.case_candidates")
    _assert_required_keys(cfg["dates"], {"formats"}, "dates")
    _assert_non_empty_list(cfg["dates"]["formats"], "dates.formats")
    _assert_required_keys(cfg["aggregation"], {"reference_weekday", "growth_window_weeks"}, "aggregation")
    _assert_required_keys(cfg["output"], {"cleaned_filename", "weekly_filename"}, "output")

    ratio = cfg["schema_failure_ratio"]
    if not isinstance(ratio, (int, float)) or not 0 < ratio <= 1:
        raise ConfigError("schema_failure_ratio must be a number in (0, 1]")

    try:
        weekday_index(str(cfg["aggregation"]["reference_weekday"]))
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    window = cfg["aggregation"]["growth_window_weeks"]
    if not isinstance(window, int) or window < 2:
        raise ConfigError("aggregation.growth_window_weeks must be an integer >= 2")

    return cfg


def validate_regions_config(cfg: dict) -> dict:
    _assert_required_keys(cfg, {"version", "regions"}, "regions config")
    regions = cfg["regions"]
    _assert_required_keys(regions, set(REGIONS), "regions")
    _assert_no_unknown_keys(regions, set(REGIONS), "regions", allow_unknown=False)

    owner: dict[str, str] = {}
    for region in REGIONS:
        areas = regions[region] or []
        if not isinstance(areas, list):
            raise ConfigError(f"regions.{region} must be a list")
        for area in areas:
            if area in owner:
                raise ConfigError(f"Area listed under both {owner[area]} and {region}: {area}")
            owner[area] = region

    return cfg
