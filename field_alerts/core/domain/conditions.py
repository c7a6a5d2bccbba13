"""
Condition value objects produced by the analysis functions.
Every condition is immutable and derived purely from a measurement history.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum, IntEnum
from typing import Optional, Tuple


class HeatStressLevel(str, Enum):
    NONE = "None"
    MODERATE = "Moderate"
    HIGH = "High"
    SEVERE = "Severe"


class PestRiskLevel(IntEnum):
    """Ordered pest risk scale."""
    MINIMAL = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


class IrrigationUrgency(IntEnum):
    """Ordered irrigation urgency scale."""
    NONE = 0      # no irrigation needed
    LOW = 1       # irrigate within 48-72h
    MEDIUM = 2    # irrigate within 24-48h
    HIGH = 3      # irrigate within 12-24h
    CRITICAL = 4  # irrigate now

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class DroughtCondition:
    """Continuous low soil moisture ending at the latest measurement."""
    start_time: datetime
    duration: timedelta

    @property
    def end_time(self) -> datetime:
        return self.start_time + self.duration

    @property
    def duration_hours(self) -> float:
        return self.duration.total_seconds() / 3600


@dataclass(frozen=True)
class HeatStressCondition:
    """Sustained air temperature at or above the critical value."""
    level: HeatStressLevel
    average_temperature: float
    peak_temperature: float
    duration: timedelta
    start_time: datetime

    @property
    def duration_hours(self) -> float:
        return self.duration.total_seconds() / 3600


@dataclass(frozen=True)
class PestRiskAssessment:
    """Pest-favourable weather assessment over consecutive days."""
    risk_level: PestRiskLevel
    favorable_days_count: int
    average_temperature: float
    average_moisture: float
    risk_factors: Tuple[str, ...] = ()

    @property
    def risk_factors_text(self) -> str:
        return ", ".join(self.risk_factors)


@dataclass(frozen=True)
class IrrigationRecommendation:
    """Irrigation recommendation derived from soil moisture deficit and trend."""
    urgency: IrrigationUrgency
    water_amount_mm: float
    current_moisture: float
    target_moisture: float
    reason: str

    @property
    def estimated_duration(self) -> timedelta:
        """Estimated irrigation time, assuming 1 mm takes 10 minutes."""
        return timedelta(minutes=self.water_amount_mm * 10)

    @property
    def moisture_deficit(self) -> float:
        return self.target_moisture - self.current_moisture


@dataclass(frozen=True)
class ThresholdBreach:
    """A single reading that crossed a configured threshold."""
    value: float
    threshold: float

    @property
    def excess(self) -> float:
        return abs(self.value - self.threshold)

    @property
    def percent_above(self) -> Optional[float]:
        if self.threshold == 0:
            return None
        return (self.value - self.threshold) / self.threshold * 100
