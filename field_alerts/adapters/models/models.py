"""
Pydantic models for FastAPI request/response serialization.
These models handle the conversion between HTTP and domain objects.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict, Any
from datetime import datetime

from ...core.domain.measurement import FieldMeasurement


class AddFieldMeasurementRequest(BaseModel):
    """Request model for a new field sensor reading."""
    field_id: str = Field(..., min_length=1, description="Field identifier")
    soil_moisture: float = Field(..., ge=0, le=100, description="Soil moisture in percent")
    air_temperature: float = Field(..., ge=-50, le=80, description="Air temperature in °C")
    precipitation: float = Field(..., ge=0, description="Precipitation in mm")
    collected_at: datetime = Field(..., description="Collection timestamp (ISO format)")
    user_id: Optional[str] = Field(None, description="User that submitted the reading")
    alert_email_to: Optional[str] = Field(None, description="Recipient of alerts raised by this reading")

    @field_validator('field_id')
    @classmethod
    def validate_field_id(cls, v):
        """Reject blank field identifiers."""
        if not v.strip():
            raise ValueError("field_id cannot be empty")
        return v.strip()

    def to_domain(self) -> FieldMeasurement:
        """Convert to domain object. Domain validation errors surface as ValueError."""
        return FieldMeasurement(
            field_id=self.field_id,
            soil_moisture=self.soil_moisture,
            air_temperature=self.air_temperature,
            precipitation=self.precipitation,
            collected_at=self.collected_at,
            user_id=self.user_id,
            alert_email_to=self.alert_email_to
        )


class FieldMeasurementResponse(BaseModel):
    """Response model for a stored measurement."""
    id: str = Field(..., description="Measurement identifier")
    field_id: str = Field(..., description="Field identifier")
    soil_moisture: float = Field(..., description="Soil moisture in percent")
    air_temperature: float = Field(..., description="Air temperature in °C")
    precipitation: float = Field(..., description="Precipitation in mm")
    collected_at: datetime = Field(..., description="Collection timestamp")
    received_at: datetime = Field(..., description="Ingestion timestamp")
    user_id: Optional[str] = Field(None, description="User that submitted the reading")

    @classmethod
    def from_domain(cls, measurement: FieldMeasurement) -> "FieldMeasurementResponse":
        """Convert from domain object to model."""
        return cls(
            id=measurement.id,
            field_id=measurement.field_id,
            soil_moisture=measurement.soil_moisture,
            air_temperature=measurement.air_temperature,
            precipitation=measurement.precipitation,
            collected_at=measurement.collected_at,
            received_at=measurement.received_at,
            user_id=measurement.user_id
        )


class FieldMeasurementListResponse(BaseModel):
    """Response model for a field's measurement history."""
    field_id: str = Field(..., description="Field identifier")
    start_time: datetime = Field(..., description="Inclusive lower bound")
    end_time: datetime = Field(..., description="Inclusive upper bound")
    count: int = Field(..., description="Number of measurements returned")
    measurements: List[FieldMeasurementResponse] = Field(..., description="Measurements in collection order")


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error type or category")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=datetime.now, description="Error timestamp")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    timestamp: datetime = Field(..., description="Health check timestamp")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional health information")
