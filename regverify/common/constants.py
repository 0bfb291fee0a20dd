"""Application constants."""

USER_AGENT = "regverify/1.0 (+registration-verification)"
SUPPORTED_EXTENSIONS = (".csv", ".xlsx")
COMMANDS = ("search", "batch")
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "event",
    "status",
    "identifier",
    "attempt",
    "wave",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
