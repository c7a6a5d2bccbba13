"""
Measurement ingestion service.
Persists a measurement, then dispatches MeasurementCreated to the alert handlers.
"""

from datetime import datetime
from typing import List, Optional

from ..domain.context import CorrelationContext
from ..domain.events import MeasurementCreated
from ..domain.measurement import FieldMeasurement, ensure_utc
from ..ports.logger import Logger
from ..ports.measurement_repository import MeasurementRepository
from ..config.config import logger as default_logger
from .event_dispatcher import DomainEventDispatcher


class MeasurementService:
    """
    Orchestrates measurement persistence and event dispatch.

    Dispatch happens only after the store has accepted the measurement, so
    every handler observes it in its history window. A dispatch failure
    propagates to the caller even though the measurement is already stored.
    """

    def __init__(
        self,
        repository: MeasurementRepository,
        dispatcher: DomainEventDispatcher,
        logger: Optional[Logger] = None
    ):
        self.repository = repository
        self.dispatcher = dispatcher
        self.logger = logger or default_logger

    async def add_measurement(
        self,
        measurement: FieldMeasurement,
        context: Optional[CorrelationContext] = None
    ) -> FieldMeasurement:
        context = context or CorrelationContext.create(user_id=measurement.user_id)

        saved = await self.repository.add(measurement)
        self.logger.info(
            "Measurement stored",
            field_id=saved.field_id,
            measurement_id=saved.id,
            correlation_id=context.correlation_id
        )

        await self.dispatcher.dispatch([MeasurementCreated(measurement=saved)], context)
        return saved

    async def get_measurements(
        self,
        field_id: str,
        start_time: datetime,
        end_time: datetime
    ) -> List[FieldMeasurement]:
        start_time = ensure_utc(start_time)
        end_time = ensure_utc(end_time)
        if start_time > end_time:
            raise ValueError("start_time must be before end_time")
        return await self.repository.get_by_field_and_range(field_id, start_time, end_time)

    async def health_check(self) -> bool:
        return await self.repository.health_check()
