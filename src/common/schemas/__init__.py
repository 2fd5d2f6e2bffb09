from .telemetry import ObservationRecord, PositionRow, GridRow

__all__ = [
    "ObservationRecord",
    "PositionRow",
    "GridRow",
]
