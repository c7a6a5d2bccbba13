"""
Test configuration and fixtures for unit tests.
"""

import sys
from pathlib import Path

# Add project root directory to Python path so the field_alerts package can be found
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from field_alerts.core.domain.context import CorrelationContext
from field_alerts.core.domain.measurement import FieldMeasurement
from field_alerts.core.ports.logger import Logger
from field_alerts.core.ports.measurement_repository import MeasurementRepository
from field_alerts.core.ports.message_publisher import MessagePublisher, PublisherRegistry, Transport


# Fixed reference instant, well in the past so no reading is rejected as "future"
BASE_TIME = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_measurement(
    collected_at: datetime,
    soil_moisture: float = 50.0,
    air_temperature: float = 25.0,
    precipitation: float = 0.0,
    field_id: str = "field-1",
    alert_email_to: str = "farmer@example.com"
) -> FieldMeasurement:
    return FieldMeasurement(
        field_id=field_id,
        soil_moisture=soil_moisture,
        air_temperature=air_temperature,
        precipitation=precipitation,
        collected_at=collected_at,
        alert_email_to=alert_email_to
    )


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def sample_measurements():
    """Six hourly readings of one field with moderate conditions."""
    return [
        make_measurement(BASE_TIME + timedelta(hours=i), soil_moisture=50.0 - i, air_temperature=25.0 + i)
        for i in range(6)
    ]


@pytest.fixture
def drought_history():
    """Soil moisture at 25% for 30 hours, sampled every 6 hours."""
    return [
        make_measurement(BASE_TIME + timedelta(hours=h), soil_moisture=25.0)
        for h in range(0, 31, 6)
    ]


@pytest.fixture
def mock_measurement_repository(sample_measurements):
    """Fixture providing a mock MeasurementRepository."""
    mock_repo = MagicMock(spec=MeasurementRepository)

    mock_repo.add = AsyncMock(side_effect=lambda measurement: measurement)
    mock_repo.get_by_field_and_range = AsyncMock(return_value=sample_measurements)
    mock_repo.health_check = AsyncMock(return_value=True)

    return mock_repo


@pytest.fixture
def mock_publisher():
    """Fixture providing a mock MessagePublisher."""
    publisher = MagicMock(spec=MessagePublisher)
    publisher.publish = AsyncMock(return_value=None)
    publisher.close = AsyncMock(return_value=None)
    return publisher


@pytest.fixture
def publisher_registry(mock_publisher):
    return PublisherRegistry({Transport.REDIS_STREAMS: mock_publisher})


@pytest.fixture
def correlation_context():
    return CorrelationContext(
        correlation_id="corr-123",
        trace_parent="00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"
    )


@pytest.fixture
def mock_logger():
    """Fixture providing a mock Logger."""
    mock_logger = MagicMock(spec=Logger)
    return mock_logger
