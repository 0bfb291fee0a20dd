"""Domain errors and failure typing."""


class RegverifyError(Exception):
    """Base class for verification failures."""

    error_code = "REGVERIFY_ERROR"


class ConfigError(RegverifyError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(RegverifyError):
    """Raised when a caller hands the dispatcher malformed input or settings."""

    error_code = "CONTRACT_ERROR"


class IngestError(RegverifyError):
    """Raised when an uploaded file cannot be read."""

    error_code = "INGEST_ERROR"


class LookupFailure(RegverifyError):
    """Transient failure of a single remote lookup."""

    error_code = "LOOKUP_ERROR"


class UpstreamError(LookupFailure):
    error_code = "HTTP_ERROR"


class LookupTimeout(LookupFailure):
    error_code = "TIMEOUT"
