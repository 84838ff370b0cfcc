import copy

import pytest

from sbc_cases.common.errors import ConfigError
from sbc_cases.common.schema import validate_pipeline_config, validate_regions_config


BASE_PIPELINE = {
    "inputs": {"document": "a.html", "historical_csv": "b.csv"},
    "blocks": {"label_selector": "[id^='heading']", "required_columns": ["Geographic Area", "Confirmed Cases"]},
    "columns": {
        "area": "Geographic Area",
        "case_candidates": ["Total Confirmed Cases", "Confirmed Cases"],
        "excluded_area_markers": ["Total", "Pending"],
        "zero_placeholder": "—",
    },
    "dates": {"formats": ["%B %d, %Y"]},
    "schema_failure_ratio": 0.5,
    "aggregation": {"reference_weekday": "Wednesday", "growth_window_weeks": 13},
    "output": {"cleaned_filename": "a.csv", "weekly_filename": "b.csv"},
}


def test_validate_pipeline_config_accepts_valid_shape():
    validated = validate_pipeline_config(copy.deepcopy(BASE_PIPELINE))
    assert validated["columns"]["area"] == "Geographic Area"


def test_validate_pipeline_config_rejects_unknown_key_by_default():
    bad = copy.deepcopy(BASE_PIPELINE)
    bad["unexpected"] = True
    with pytest.raises(ConfigError):
        validate_pipeline_config(bad)


def test_validate_pipeline_config_allows_unknown_when_enabled():
    okay = copy.deepcopy(BASE_PIPELINE)
    okay["extra"] = 1
    validate_pipeline_config(okay, allow_unknown=True)


@pytest.mark.parametrize(
    ("section", "key", "value"),
    [
        ("aggregation", "reference_weekday", "Hump day"),
        ("aggregation", "growth_window_weeks", 1),
        ("columns", "case_candidates", []),
    ],
)
def test_validate_pipeline_config_rejects_bad_values(section, key, value):
    bad = copy.deepcopy(BASE_PIPELINE)
    bad[section][key] = value
    with pytest.raises(ConfigError):
        validate_pipeline_config(bad)


def test_validate_pipeline_config_rejects_ratio_out_of_range():
    bad = copy.deepcopy(BASE_PIPELINE)
    bad["schema_failure_ratio"] = 0
    with pytest.raises(ConfigError):
        validate_pipeline_config(bad)


def test_validate_regions_config_rejects_area_in_two_regions():
    cfg = {
        "version": "1",
        "regions": {"south": ["CITY OF GOLETA"], "north": ["CITY OF GOLETA"], "excluded": []},
    }
    with pytest.raises(ConfigError):
        validate_regions_config(cfg)


def test_validate_regions_config_rejects_unknown_region():
    cfg = {
        "version": "1",
        "regions": {"south": [], "north": [], "excluded": [], "central": ["CITY OF BUELLTON"]},
    }
    with pytest.raises(ConfigError):
        validate_regions_config(cfg)
