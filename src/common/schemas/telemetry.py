import math
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

class ObservationRecord(BaseModel):
    """
    Represents one vehicle position log row after timestamp normalisation.
    Corresponds to the observation table handed over by ingestion.
    """
    instant: datetime = Field(..., description="Observation instant (timezone-aware)")
    playback_instant: Optional[datetime] = Field(None, description="Playback instant (timezone-aware)")
    longitude: float = Field(..., description="Longitude / x in the region projection")
    latitude: float = Field(..., description="Latitude / y in the region projection")
    speed: float = Field(..., description="Average speed, same units across the dataset")
    deviation_minutes: float = Field(..., description="Predicted schedule deviation in minutes (signed)")
    vehicle_id: str = Field(..., min_length=1, description="Vehicle identifier")

    @field_validator('vehicle_id', mode='before')
    def vehicle_id_as_string(cls, v):
        if v is None or v != v:
            raise ValueError('vehicle_id is missing')
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        return str(v).strip()

    @field_validator('longitude', 'latitude', 'speed', 'deviation_minutes')
    def must_be_finite(cls, v):
        if not math.isfinite(v):
            raise ValueError('value must be finite')
        return v

    @field_validator('instant', 'playback_instant')
    def must_be_timezone_aware(cls, v):
        if v is not None and v.tzinfo is None:
            raise ValueError('instant must be timezone-aware')
        return v

class PositionRow(BaseModel):
    """
    One vehicle position per 5-minute bucket.
    """
    time_bucket: datetime = Field(..., description="Start of the 5-minute bucket")
    vehicle_id: str = Field(..., description="Vehicle identifier")
    longitude: float = Field(..., description="Mean longitude in the bucket")
    latitude: float = Field(..., description="Mean latitude in the bucket")

class GridRow(BaseModel):
    """
    One dense choropleth row for a region vertex at a time bucket.
    Empty cells carry None for both the value and the bin.
    """
    time_bucket: datetime = Field(..., description="Hour bucket")
    region: str = Field(..., description="Region name")
    vertex_order: int = Field(..., ge=0, description="Rendering order of the boundary vertex")
    x: float = Field(..., description="Vertex x coordinate")
    y: float = Field(..., description="Vertex y coordinate")
    value: Optional[float] = Field(None, description="Aggregated statistic, None when no data")
    bin: Optional[str] = Field(None, description="Ordinal bin label, None when no data")
