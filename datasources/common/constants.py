"""Application constants."""

USER_AGENT = "arcgis-datasource/1.0 (+import pipeline)"
DATASOURCE_NAME = "arcgis"
MINIMUM_SUPPORTED_VERSION = 10.1
DEFAULT_MAX_RECORDS_PER_QUERY = 500
OUTPUT_WKID = 4326
COMMANDS = ("metadata", "fetch")
EXIT_SUCCESS = 0
EXIT_UPSTREAM_FAIL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "operation",
    "source",
    "event",
    "status",
    "url",
    "status_code",
    "duration_ms",
    "rows_out",
    "error_code",
    "message",
)
