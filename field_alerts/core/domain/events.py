"""
Domain events (occurrences) raised by the core.
Each event carries a tag from DomainEventType; the dispatcher routes on that tag.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .measurement import FieldMeasurement, utc_now


class DomainEventType(str, Enum):
    """Closed set of occurrence tags known to the dispatcher."""
    MEASUREMENT_CREATED = "measurement_created"


@dataclass(frozen=True)
class DomainEvent(ABC):
    """Base class for immutable domain events."""
    occurred_on: datetime = field(default_factory=utc_now, init=False)

    @property
    @abstractmethod
    def event_type(self) -> DomainEventType:
        pass


@dataclass(frozen=True)
class MeasurementCreated(DomainEvent):
    """
    Raised once a field measurement has been durably stored.
    Carries the complete measurement so handlers never re-fetch it.
    """
    measurement: FieldMeasurement

    def __post_init__(self):
        if self.measurement is None:
            raise ValueError("measurement is required")

    @property
    def event_type(self) -> DomainEventType:
        return DomainEventType.MEASUREMENT_CREATED
