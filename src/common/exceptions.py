class TelemetryError(Exception):
    """Base exception for all telemetry pipeline errors."""
    pass

class ParseError(TelemetryError):
    """Raised when a raw timestamp does not match the expected format."""
    pass

class FatalInputError(TelemetryError):
    """Raised when the run cannot proceed (no regions, no observations)."""
    pass

class RegionError(FatalInputError):
    """Raised when a region boundary is invalid or duplicated."""
    pass

class ConfigurationError(TelemetryError):
    """Raised when configuration is invalid."""
    pass

class BinningError(TelemetryError):
    """Raised when a value falls outside the fitted bins."""
    pass
