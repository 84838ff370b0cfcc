"""Application constants."""

STAGES = (
    "extract",
    "merge",
    "aggregate",
    "validate",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20

NBSP = "\u00a0"
EM_DASH = "\u2014"

REGIONS = ("south", "north", "excluded")
REPORTED_REGIONS = ("north", "south")
CLEANED_HEADERS = ["area", "cases", "date"]
WEEKLY_HEADERS = ["region", "date", "cases", "new_cases"]

INTERMEDIATE_FILENAME = "extracted.json"

JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "block",
    "event",
    "status",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
