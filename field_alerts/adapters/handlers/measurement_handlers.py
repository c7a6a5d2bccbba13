"""
FastAPI handlers for field measurement endpoints.
Ingestion persists the reading and runs every alert analysis before responding.
"""

from fastapi import APIRouter, HTTPException, Header, Query
from typing import Optional
from datetime import datetime, timedelta
import logging

from ...core.domain.context import CorrelationContext
from ...core.domain.measurement import utc_now
from ...core.services.measurement_service import MeasurementService
from ..models import (
    AddFieldMeasurementRequest,
    FieldMeasurementResponse,
    FieldMeasurementListResponse,
    ErrorResponse
)


DEFAULT_HISTORY_WINDOW = timedelta(days=7)


class MeasurementHandlers:
    """
    FastAPI handlers for measurement endpoints.
    """

    def __init__(self, measurement_service: MeasurementService):
        self.measurement_service = measurement_service
        self.logger = logging.getLogger(__name__)

        self.router = APIRouter(prefix="/api/v1/measurements", tags=["measurements"])
        self._setup_routes()

        route_count = len(self.router.routes)
        self.logger.info(f"Measurement router initialized with {route_count} routes")

    def _setup_routes(self):
        """Setup FastAPI routes."""

        @self.router.post(
            "",
            status_code=201,
            response_model=FieldMeasurementResponse,
            responses={
                422: {"model": ErrorResponse},
                500: {"model": ErrorResponse},
                502: {"model": ErrorResponse}
            },
            summary="Add Field Measurement",
            description="Store a sensor reading and evaluate every field alert against it"
        )
        async def add_measurement(
            request: AddFieldMeasurementRequest,
            x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-ID"),
            traceparent: Optional[str] = Header(None)
        ):
            return await self._handle_add_measurement(request, x_correlation_id, traceparent)

        @self.router.get(
            "/{field_id}",
            response_model=FieldMeasurementListResponse,
            responses={
                422: {"model": ErrorResponse},
                500: {"model": ErrorResponse}
            },
            summary="Field Measurement History",
            description="Measurements of one field within a time range, oldest first"
        )
        async def get_measurements(
            field_id: str,
            start_time: Optional[datetime] = Query(None, description="Start time (ISO format), defaults to 7 days before end_time"),
            end_time: Optional[datetime] = Query(None, description="End time (ISO format), defaults to now")
        ):
            return await self._handle_get_measurements(field_id, start_time, end_time)

    async def _handle_add_measurement(
        self,
        request: AddFieldMeasurementRequest,
        correlation_id: Optional[str],
        trace_parent: Optional[str]
    ) -> FieldMeasurementResponse:
        try:
            measurement = request.to_domain()
        except ValueError as e:
            raise HTTPException(
                status_code=422,
                detail={"error": "Validation error", "message": str(e)}
            )

        context = CorrelationContext.create(
            correlation_id=correlation_id,
            trace_parent=trace_parent,
            user_id=measurement.user_id
        )
        self.logger.info(
            f"POST /measurements field_id={measurement.field_id} correlation_id={context.correlation_id}"
        )

        # RepositoryError and DispatchError reach the registered exception handlers
        saved = await self.measurement_service.add_measurement(measurement, context)
        return FieldMeasurementResponse.from_domain(saved)

    async def _handle_get_measurements(
        self,
        field_id: str,
        start_time: Optional[datetime],
        end_time: Optional[datetime]
    ) -> FieldMeasurementListResponse:
        if not field_id.strip():
            raise HTTPException(
                status_code=422,
                detail={"error": "Validation error", "message": "field_id cannot be empty"}
            )

        end_time = end_time or utc_now()
        start_time = start_time or end_time - DEFAULT_HISTORY_WINDOW

        try:
            measurements = await self.measurement_service.get_measurements(field_id, start_time, end_time)
        except ValueError as e:
            raise HTTPException(
                status_code=422,
                detail={"error": "Validation error", "message": str(e)}
            )

        return FieldMeasurementListResponse(
            field_id=field_id,
            start_time=start_time,
            end_time=end_time,
            count=len(measurements),
            measurements=[FieldMeasurementResponse.from_domain(m) for m in measurements]
        )
