"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for loader failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class FilesystemError(PipelineError):
    """Raised when the data directory or a data file cannot be used."""

    error_code = "FILESYSTEM_ERROR"


class ParseError(PipelineError):
    """Raised when a row holds a value that cannot be interpreted."""

    error_code = "PARSE_ERROR"

    def __init__(self, message: str, *, source_file: str | None = None, row_number: int | None = None) -> None:
        self.source_file = source_file
        self.row_number = row_number
        if source_file is not None and row_number is not None:
            message = f"{source_file} row {row_number}: {message}"
        super().__init__(message)


class GeocodeError(PipelineError):
    """Raised when the geocoding provider cannot place a location."""

    error_code = "GEOCODE_ERROR"


class WriteError(PipelineError):
    """Raised when the telemetry sink rejects or cannot receive a batch."""

    error_code = "WRITE_ERROR"
