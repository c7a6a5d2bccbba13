from datetime import datetime, timezone
from typing import Optional
from dataclasses import dataclass, field
import uuid


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class FieldMeasurement:
    """
    Domain entity representing a single field-sensor reading.
    Immutable once created; invalid readings are rejected at construction time.
    """
    field_id: str
    soil_moisture: float
    air_temperature: float
    precipitation: float
    collected_at: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    received_at: datetime = field(default_factory=utc_now)
    user_id: Optional[str] = None
    alert_email_to: Optional[str] = None

    def __post_init__(self):
        """Validate measurement data after initialization."""
        if not self.field_id or not str(self.field_id).strip():
            raise ValueError("field_id is required")

        if self.collected_at is None:
            raise ValueError("collected_at is required")

        # Normalise timestamps to UTC on the frozen instance
        object.__setattr__(self, "collected_at", ensure_utc(self.collected_at))
        object.__setattr__(self, "received_at", ensure_utc(self.received_at))

        if not 0 <= self.soil_moisture <= 100:
            raise ValueError("soil_moisture must be between 0 and 100")

        if not -50 <= self.air_temperature <= 80:
            raise ValueError("air_temperature must be between -50 and 80 degrees Celsius")

        if self.precipitation < 0:
            raise ValueError("precipitation must be non-negative")

        if self.collected_at > utc_now():
            raise ValueError("collected_at cannot be in the future")

    @property
    def recipients(self) -> list:
        """Alert recipients for this measurement (empty when no address was given)."""
        return [self.alert_email_to] if self.alert_email_to else []
