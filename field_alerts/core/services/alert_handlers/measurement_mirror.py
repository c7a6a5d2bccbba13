from ...domain.context import CorrelationContext
from ...domain.events import DomainEventType, MeasurementCreated
from ...ports.cache_service import CacheKeyPatterns, CacheService, CacheTTL
from ...config.config import logger as default_logger
from ..event_dispatcher import DomainEventHandler


class MeasurementMirrorHandler(DomainEventHandler):
    """
    Mirrors the latest measurement of each field into the cache.
    Best effort: failures are logged as warnings and never fail the dispatch.
    """

    event_type = DomainEventType.MEASUREMENT_CREATED

    def __init__(self, cache: CacheService, ttl: int = CacheTTL.VERY_LONG, logger=None):
        self.cache = cache
        self.ttl = ttl
        self.logger = logger or default_logger

    async def handle(self, event: MeasurementCreated, context: CorrelationContext) -> None:
        measurement = event.measurement
        document = {
            "id": measurement.id,
            "field_id": measurement.field_id,
            "soil_moisture": measurement.soil_moisture,
            "air_temperature": measurement.air_temperature,
            "precipitation": measurement.precipitation,
            "collected_at": measurement.collected_at.isoformat(),
            "received_at": measurement.received_at.isoformat(),
            "correlation_id": context.correlation_id
        }

        try:
            stored = await self.cache.set_json(
                CacheKeyPatterns.latest_measurement(measurement.field_id), document, self.ttl
            )
        except Exception as e:
            self.logger.warn(
                "Failed to mirror measurement",
                field_id=measurement.field_id,
                measurement_id=measurement.id,
                error=str(e)
            )
            return

        if not stored:
            self.logger.warn(
                "Measurement mirror rejected the write",
                field_id=measurement.field_id,
                measurement_id=measurement.id
            )
