"""Application constants."""

USER_AGENT = "covid-ingest/1.0 (+daily-report loader)"
BATCH_SIZE = 500
DEFAULT_SUFFIX = ".csv"
DEFAULT_CHECKPOINT_PATH = "./.last"
# Before the oldest daily report.
DEFAULT_LAST_RUN = "2020-01-01T00:00:00"

LAST_UPDATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%y %H:%M",
)
FILENAME_DATE_FORMAT = "%m-%d-%Y"
CANONICAL_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S +0000 UTC"

RESUME_STRATEGIES = ("timestamp", "filename")
CHECKPOINT_KEYS = {
    "timestamp": "LAST_RUN",
    "filename": "LAST_FILE",
}

GOOGLE_GEOCODE_ENDPOINT = "https://maps.googleapis.com/maps/api/geocode/json"
DEFAULT_GEOCODE_RATE = 10.0
DEFAULT_SPATIAL_LEVEL = 30

EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 2
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "file",
    "event",
    "status",
    "attempt",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
