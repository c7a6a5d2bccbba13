"""
Unit tests for the FastAPI measurement handlers.
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from fastapi import FastAPI
from fastapi.testclient import TestClient

from field_alerts.adapters.handlers.measurement_handlers import MeasurementHandlers
from field_alerts.core.domain.measurement import utc_now
from field_alerts.core.ports.exceptions import DispatchError, RepositoryError
from field_alerts.core.services.measurement_service import MeasurementService
from field_alerts.core.util.errorhandling import register_error_handlers

from conftest import BASE_TIME


@pytest.fixture
def mock_service(sample_measurements):
    service = MagicMock(spec=MeasurementService)
    service.add_measurement = AsyncMock(side_effect=lambda measurement, context: measurement)
    service.get_measurements = AsyncMock(return_value=sample_measurements)
    return service


@pytest.fixture
def client(mock_service):
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(MeasurementHandlers(mock_service).router)
    return TestClient(app)


def measurement_body(**overrides):
    body = {
        "field_id": "field-1",
        "soil_moisture": 28.5,
        "air_temperature": 31.0,
        "precipitation": 0.0,
        "collected_at": BASE_TIME.isoformat(),
        "alert_email_to": "farmer@example.com"
    }
    body.update(overrides)
    return body


class TestAddMeasurementEndpoint:
    """Test cases for POST /api/v1/measurements."""

    def test_created(self, client, mock_service):
        response = client.post(
            "/api/v1/measurements",
            json=measurement_body(),
            headers={"X-Correlation-ID": "corr-abc", "traceparent": "00-abc-def-01"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["field_id"] == "field-1"
        assert data["soil_moisture"] == 28.5
        assert data["id"]

        measurement, context = mock_service.add_measurement.await_args.args
        assert measurement.field_id == "field-1"
        assert context.correlation_id == "corr-abc"
        assert context.trace_parent == "00-abc-def-01"

    def test_correlation_id_generated(self, client, mock_service):
        response = client.post("/api/v1/measurements", json=measurement_body())

        assert response.status_code == 201
        _, context = mock_service.add_measurement.await_args.args
        assert context.correlation_id

    def test_future_collection_time_rejected(self, client, mock_service):
        future = (utc_now() + timedelta(hours=1)).isoformat()

        response = client.post("/api/v1/measurements", json=measurement_body(collected_at=future))

        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "Validation error"
        mock_service.add_measurement.assert_not_awaited()

    @pytest.mark.parametrize("overrides", [
        {"soil_moisture": 120.0},
        {"soil_moisture": -1.0},
        {"precipitation": -0.5},
        {"field_id": "   "},
    ])
    def test_invalid_reading_rejected(self, client, mock_service, overrides):
        response = client.post("/api/v1/measurements", json=measurement_body(**overrides))

        assert response.status_code == 422
        mock_service.add_measurement.assert_not_awaited()

    def test_dispatch_failure_returns_502(self, client, mock_service):
        mock_service.add_measurement.side_effect = DispatchError(
            "measurement_created", "DroughtAlertHandler", RuntimeError("broker down")
        )

        response = client.post("/api/v1/measurements", json=measurement_body())

        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "Alert dispatch error"
        assert data["details"]["handler"] == "DroughtAlertHandler"
        assert data["details"]["cause"] == "broker down"

    def test_store_failure_returns_500(self, client, mock_service):
        mock_service.add_measurement.side_effect = RepositoryError("write failed", RuntimeError("timeout"))

        response = client.post("/api/v1/measurements", json=measurement_body())

        assert response.status_code == 500
        assert response.json()["error"] == "Data access error"


class TestGetMeasurementsEndpoint:
    """Test cases for GET /api/v1/measurements/{field_id}."""

    def test_history(self, client, mock_service, sample_measurements):
        start = BASE_TIME.isoformat()
        end = (BASE_TIME + timedelta(hours=6)).isoformat()

        response = client.get(
            "/api/v1/measurements/field-1",
            params={"start_time": start, "end_time": end}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["field_id"] == "field-1"
        assert data["count"] == len(sample_measurements)
        assert [m["id"] for m in data["measurements"]] == [m.id for m in sample_measurements]

        field_id, start_time, end_time = mock_service.get_measurements.await_args.args
        assert field_id == "field-1"
        assert start_time == BASE_TIME
        assert end_time - start_time == timedelta(hours=6)

    def test_default_window(self, client, mock_service):
        response = client.get("/api/v1/measurements/field-1")

        assert response.status_code == 200
        _, start_time, end_time = mock_service.get_measurements.await_args.args
        assert end_time - start_time == timedelta(days=7)

    def test_inverted_range_returns_422(self, client, mock_service):
        mock_service.get_measurements.side_effect = ValueError("start_time must not be after end_time")

        response = client.get(
            "/api/v1/measurements/field-1",
            params={"start_time": BASE_TIME.isoformat(), "end_time": (BASE_TIME - timedelta(hours=1)).isoformat()}
        )

        assert response.status_code == 422
        assert response.json()["detail"]["message"] == "start_time must not be after end_time"
