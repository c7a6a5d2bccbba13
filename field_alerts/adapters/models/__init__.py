"""
Models package for infrastructure layer.
Contains Pydantic models for request/response serialization.
"""

from .models import (
    AddFieldMeasurementRequest,
    FieldMeasurementResponse,
    FieldMeasurementListResponse,
    ErrorResponse,
    HealthResponse
)

__all__ = [
    "AddFieldMeasurementRequest",
    "FieldMeasurementResponse",
    "FieldMeasurementListResponse",
    "ErrorResponse",
    "HealthResponse"
]
