"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class StageError(PipelineError):
    """Raised for failures that halt the current command."""

    error_code = "STAGE_ERROR"


class SourceParseError(StageError):
    """Raised when a source CSV is missing or malformed."""

    error_code = "PARSE_ERROR"


class OverlayLoadError(PipelineError):
    """Raised when the multi-airport-city map cannot be loaded."""

    error_code = "OVERLAY_LOAD_ERROR"


class GeocodeSoftMiss(StageError):
    """Raised when the geocoder answers with zero results."""

    error_code = "GEOCODE_ZERO_RESULTS"


class GeocodeHardFailure(StageError):
    """Raised for any geocoder status other than OK or ZERO_RESULTS."""

    error_code = "GEOCODE_FAILED"

    def __init__(self, message: str, status: str | None = None) -> None:
        super().__init__(message)
        self.status = status
